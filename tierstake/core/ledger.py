"""
StakingLedger: single-position staking with tiered time-based rewards.

Each participant holds at most one position. A position is opened by
``stake``, has its reward baseline reset by ``claim_reward`` and is closed by
``unstake``. Rewards are never accrued in the background; they are computed
on demand from the position's baseline and the current clock reading.

Every mutation follows the same shape under the ledger lock:

1. validate against the current position
2. compute the reward, if any
3. run the store write and the token transfer as one LedgerTransaction

Every compensation is something the ledger can do on its own: giving back
tokens it pulled, or reverting its own store write. Payouts go out after the
store write they belong to, so a rejected payout is undone by reverting that
write and never by pulling tokens back from a participant.
"""

import logging
import threading
from typing import Any, Callable, Dict, List, Optional, Tuple

import bittensor as bt

from tierstake.core.event_manager import EventManager
from tierstake.core.reward_schedule import RewardSchedule
from tierstake.core.transaction import LedgerTransaction
from tierstake.database.position_store import InMemoryPositionStore, PositionStore, SQLPositionStore
from tierstake.database.records import CLAIM, RECOVER, STAKE, UNSTAKE, LedgerEntry, Position
from tierstake.errors import (
    AlreadyStaked,
    InsufficientReserve,
    InvalidAmount,
    NothingStaked,
    TransferFailed,
    Unauthorized,
)
from tierstake.tokens.base import FungibleToken
from tierstake.utils.balance import ZERO, Amount, to_rao
from tierstake.utils.clock import SystemClock

logger = logging.getLogger(__name__)


class StakingLedger:
    """
    Custodian of staked principal and the reward reserve.

    The ledger holds tokens under its own ``address`` on both token
    contracts. The reward reserve is simply the ledger's reward-token
    balance.
    """

    def __init__(
        self,
        stake_token: FungibleToken,
        reward_token: FungibleToken,
        administrator: str,
        schedule: Optional[RewardSchedule] = None,
        store: Optional[PositionStore] = None,
        events: Optional[EventManager] = None,
        clock: Optional[Callable[[], int]] = None,
        address: str = "tierstake-ledger",
        enforce_reserve_floor: bool = False
    ):
        """
        Initialize the ledger.

        Args:
            stake_token: Token participants deposit
            reward_token: Token rewards are paid in
            administrator: Identity allowed to recover reserve
            schedule: Reward schedule, defaults to the reference tiers
            store: Position store, defaults to an in-memory store
            events: Notification sink, defaults to a private EventManager
            clock: Callable returning the current time in seconds
            address: The ledger's own holder identity on both tokens
            enforce_reserve_floor: Refuse recoveries that would leave less
                reserve than the rewards accrued so far
        """
        if not administrator:
            raise ValueError("StakingLedger needs an administrator")

        self.stake_token = stake_token
        self.reward_token = reward_token
        self.administrator = administrator
        self.schedule = schedule or RewardSchedule()
        self.store = store if store is not None else InMemoryPositionStore()
        self.events = events if events is not None else EventManager()
        self.clock = clock or SystemClock()
        self.address = address
        self.enforce_reserve_floor = enforce_reserve_floor
        self._lock = threading.RLock()

    @classmethod
    def from_config(
        cls,
        config: Dict[str, Any],
        stake_token: FungibleToken,
        reward_token: FungibleToken,
        events: Optional[EventManager] = None,
        clock: Optional[Callable[[], int]] = None
    ) -> "StakingLedger":
        """
        Build a ledger from a dict returned by load_ledger_config.
        """
        return cls(
            stake_token=stake_token,
            reward_token=reward_token,
            administrator=config["administrator"],
            schedule=RewardSchedule(config["tiers"]),
            store=SQLPositionStore(config["database_url"]),
            events=events,
            clock=clock,
            address=config["address"],
            enforce_reserve_floor=config["enforce_reserve_floor"],
        )

    # Reads

    def now(self) -> int:
        return int(self.clock())

    def get_position(self, participant: str) -> Optional[Position]:
        """Return the participant's active position, or None."""
        return self.store.get(participant)

    def view_reward(self, participant: str) -> bt.Balance:
        """
        Reward the participant would receive if they claimed now.

        Returns 0 for a participant without a position.
        """
        with self._lock:
            position = self.store.get(participant)
            if position is None:
                return ZERO
            return self._accrued(position, self.now())

    def reserve(self) -> bt.Balance:
        """The ledger's reward-token balance."""
        return self.reward_token.balance_of(self.address)

    def accrued_rewards(self) -> bt.Balance:
        """Sum of rewards currently accrued across all active positions."""
        with self._lock:
            now = self.now()
            total = sum(to_rao(self._accrued(position, now)) for position in self.store.positions())
            return bt.Balance.from_rao(total)

    def history(self, participant: Optional[str] = None) -> List[LedgerEntry]:
        """Journal of committed operations, oldest first."""
        return self.store.history(participant)

    # Mutations

    def stake(self, participant: str, amount: Amount) -> Position:
        """
        Open a position by pulling `amount` of stake token into custody.

        Raises:
            InvalidAmount: If amount is zero
            AlreadyStaked: If the participant already has a position
            TransferFailed: If the deposit was rejected
        """
        rao = to_rao(amount)
        if rao == 0:
            raise InvalidAmount("stake: amount cannot be 0")

        with self._lock:
            if self.store.get(participant) is not None:
                logger.warning(f"Rejected stake from {participant}: already staked")
                raise AlreadyStaked(f"stake: {participant} already staked")

            now = self.now()
            principal = bt.Balance.from_rao(rao)
            position = Position(participant=participant, staked_amount=principal, staked_at=now)
            entry = LedgerEntry(STAKE, participant, principal, ZERO, now)

            LedgerTransaction("stake").add(
                f"pull {rao} rao of stake token from {participant}",
                lambda: self.stake_token.transfer_from(self.address, participant, self.address, principal),
                lambda: self.stake_token.transfer(self.address, participant, principal),
            ).add(
                "commit position",
                lambda: self.store.put(position, entry),
            ).execute()

        logger.info(f"{participant} staked {rao} rao at {now}")
        self.events.publish(STAKE, {"participant": participant, "amount": principal})
        return position

    def claim_reward(self, participant: str) -> bt.Balance:
        """
        Pay out the accrued reward and restart the reward baseline.

        The principal stays staked. A zero reward is a successful no-op.

        Raises:
            NothingStaked: If the participant has no position
            InsufficientReserve: If the reserve cannot cover the reward
            TransferFailed: If the payout was rejected
        """
        with self._lock:
            position = self._require_position(participant, "claimReward")
            now = self.now()
            reward = self._accrued(position, now)
            reward_rao = to_rao(reward)

            if reward_rao == 0:
                logger.debug(f"Nothing to claim for {participant}")
                return ZERO

            self._check_custody(self.reward_token, reward_rao, "claimReward")
            self._settle_reward(position, reward, now, "claimReward")

        logger.info(f"{participant} claimed {reward_rao} rao")
        self.events.publish(CLAIM, {"participant": participant, "reward": reward})
        return reward

    def unstake(self, participant: str) -> Tuple[bt.Balance, bt.Balance]:
        """
        Close the position, returning the principal and the accrued reward.

        A non-zero reward is settled first, exactly as ``claim_reward`` would
        settle it, then the position is closed and the principal returned.
        If the principal payout is rejected after the reward went out, the
        position stays open with its baseline reset, so a retry pays the
        principal and nothing of the settled reward.

        Returns:
            (principal, reward)

        Raises:
            NothingStaked: If the participant has no position
            InsufficientReserve: If custody cannot cover principal or reward
            TransferFailed: If either payout was rejected
        """
        reward_settled = False
        try:
            with self._lock:
                position = self._require_position(participant, "unstake")
                now = self.now()
                principal = position.staked_amount
                reward = self._accrued(position, now)
                principal_rao = to_rao(principal)
                reward_rao = to_rao(reward)

                self._check_custody(self.stake_token, principal_rao, "unstake")
                if reward_rao > 0:
                    self._check_custody(self.reward_token, reward_rao, "unstake")
                    position = self._settle_reward(position, reward, now, "unstake")
                    reward_settled = True

                entry = LedgerEntry(UNSTAKE, participant, principal, ZERO, now)

                LedgerTransaction("unstake").add(
                    "close position",
                    lambda: self.store.delete(participant, entry),
                    lambda: self.store.revert(entry, position),
                ).add(
                    f"return {principal_rao} rao of stake token to {participant}",
                    lambda: self.stake_token.transfer(self.address, participant, principal),
                ).execute()
        except TransferFailed:
            if reward_settled:
                logger.warning(
                    f"unstake: reward of {reward_rao} rao paid to {participant}, principal still staked"
                )
                self.events.publish(CLAIM, {"participant": participant, "reward": reward})
            raise

        logger.info(f"{participant} unstaked {principal_rao} rao with {reward_rao} rao reward")
        self.events.publish(UNSTAKE, {"participant": participant, "amount": principal, "reward": reward})
        return principal, reward

    def recover_reserve(self, caller: str, amount: Amount):
        """
        Send `amount` of reward token from the reserve to the administrator.

        Raises:
            Unauthorized: If caller is not the administrator
            InvalidAmount: If amount is zero
            InsufficientReserve: If the reserve (or, with the floor enabled,
                the unearmarked reserve) cannot cover the amount
            TransferFailed: If the transfer was rejected
        """
        if caller != self.administrator:
            logger.warning(f"Rejected reserve recovery from {caller}")
            raise Unauthorized(f"recoverReserve: {caller} is not the administrator")

        rao = to_rao(amount)
        if rao == 0:
            raise InvalidAmount("recoverReserve: amount cannot be 0")

        with self._lock:
            floor = to_rao(self.accrued_rewards()) if self.enforce_reserve_floor else 0
            self._check_custody(self.reward_token, rao + floor, "recoverReserve")

            now = self.now()
            recovered = bt.Balance.from_rao(rao)
            entry = LedgerEntry(RECOVER, caller, recovered, ZERO, now)

            LedgerTransaction("recoverReserve").add(
                "journal recovery",
                lambda: self.store.record(entry),
                lambda: self.store.revert(entry),
            ).add(
                f"send {rao} rao of reward token to {caller}",
                lambda: self.reward_token.transfer(self.address, caller, recovered),
            ).execute()

        logger.info(f"Administrator recovered {rao} rao of reserve")
        self.events.publish(RECOVER, {"administrator": caller, "amount": recovered})

    # Internals

    def _settle_reward(self, position: Position, reward: bt.Balance, now: int, operation: str) -> Position:
        """
        Reset the baseline and journal the claim, then pay the reward.

        A rejected payout reverts the store write. Returns the updated position.
        """
        participant = position.participant
        updated = Position(participant=participant, staked_amount=position.staked_amount, staked_at=now)
        entry = LedgerEntry(CLAIM, participant, ZERO, reward, now)

        LedgerTransaction(operation).add(
            "reset reward baseline",
            lambda: self.store.put(updated, entry),
            lambda: self.store.revert(entry, position),
        ).add(
            f"pay {to_rao(reward)} rao of reward token to {participant}",
            lambda: self.reward_token.transfer(self.address, participant, reward),
        ).execute()
        return updated

    def _require_position(self, participant: str, operation: str) -> Position:
        position = self.store.get(participant)
        if position is None:
            logger.warning(f"Rejected {operation} from {participant}: nothing staked")
            raise NothingStaked(f"{operation}: amount cannot be 0")
        return position

    def _accrued(self, position: Position, now: int) -> bt.Balance:
        elapsed = now - position.staked_at
        if elapsed < 0:
            logger.warning(
                f"Clock reads {now}, before baseline {position.staked_at} of {position.participant}"
            )
            elapsed = 0
        return self.schedule.compute_reward(position.staked_amount, elapsed)

    def _check_custody(self, token: FungibleToken, required_rao: int, operation: str):
        available = to_rao(token.balance_of(self.address))
        if available < required_rao:
            logger.warning(
                f"{operation}: {token.symbol} custody {available} rao "
                f"below required {required_rao} rao"
            )
            raise InsufficientReserve(
                f"{operation}: insufficient reserve ({available} < {required_rao})"
            )
