"""
Plain value types shared by the ledger and its stores.
"""

from dataclasses import dataclass
from typing import Any, Dict

import bittensor as bt

STAKE = "stake"
CLAIM = "claim"
UNSTAKE = "unstake"
RECOVER = "recover"

ENTRY_KINDS = (STAKE, CLAIM, UNSTAKE, RECOVER)


@dataclass(frozen=True)
class Position:
    """A participant's single active stake."""

    participant: str
    staked_amount: bt.Balance
    staked_at: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "participant": self.participant,
            "staked_amount": self.staked_amount,
            "staked_at": self.staked_at,
        }


@dataclass(frozen=True)
class LedgerEntry:
    """Journal record of a committed ledger mutation."""

    kind: str
    participant: str
    amount: bt.Balance
    reward: bt.Balance
    timestamp: int

    def to_dict(self) -> Dict[str, Any]:
        return {
            "kind": self.kind,
            "participant": self.participant,
            "amount": self.amount,
            "reward": self.reward,
            "timestamp": self.timestamp,
        }
