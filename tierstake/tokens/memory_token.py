"""
In-process fungible token with balances and allowances.

Used for simulations and tests. Failures can be injected with
``fail_next`` to exercise the ledger's rollback paths.
"""

import logging
import threading
from collections import defaultdict
from typing import Dict, List, Optional, Tuple

import bittensor as bt

from tierstake.tokens.base import FungibleToken, TokenError
from tierstake.utils.balance import Amount, to_rao

logger = logging.getLogger(__name__)


class InMemoryToken(FungibleToken):
    """
    Minimal ERC20-style token kept in memory.
    """

    def __init__(self, symbol: str = "TOKEN"):
        self.symbol = symbol
        self._balances: Dict[str, int] = defaultdict(int)
        self._allowances: Dict[Tuple[str, str], int] = defaultdict(int)
        self._total_supply = 0
        self._lock = threading.RLock()
        self._pending_failures: List[Optional[str]] = []

    def mint(self, holder: str, amount: Amount):
        """Create new tokens in a holder's balance."""
        rao = to_rao(amount)
        with self._lock:
            self._balances[holder] += rao
            self._total_supply += rao

    def approve(self, owner: str, spender: str, amount: Amount) -> bool:
        """Set the allowance owner grants to spender."""
        with self._lock:
            self._allowances[(owner, spender)] = to_rao(amount)
        return True

    def allowance(self, owner: str, spender: str) -> bt.Balance:
        with self._lock:
            return bt.Balance.from_rao(self._allowances[(owner, spender)])

    def balance_of(self, holder: str) -> bt.Balance:
        with self._lock:
            return bt.Balance.from_rao(self._balances.get(holder, 0))

    def total_supply(self) -> bt.Balance:
        with self._lock:
            return bt.Balance.from_rao(self._total_supply)

    def fail_next(self, count: int = 1, method: Optional[str] = None):
        """
        Make the next transfers fail.

        Args:
            count: Number of failing calls to queue
            method: "transfer" or "transfer_from" to only fail that call,
                None to fail whichever comes next
        """
        with self._lock:
            self._pending_failures.extend([method] * count)

    def _should_fail(self, method: str) -> bool:
        for i, target in enumerate(self._pending_failures):
            if target is None or target == method:
                del self._pending_failures[i]
                return True
        return False

    def transfer(self, sender: str, recipient: str, amount: Amount) -> bool:
        rao = to_rao(amount)
        with self._lock:
            if self._should_fail("transfer"):
                logger.debug(f"{self.symbol}: injected failure on transfer {sender} -> {recipient}")
                return False
            if self._balances.get(sender, 0) < rao:
                raise TokenError(f"{self.symbol}: transfer amount exceeds balance of {sender}")
            self._move(sender, recipient, rao)
        return True

    def transfer_from(self, spender: str, owner: str, recipient: str, amount: Amount) -> bool:
        rao = to_rao(amount)
        with self._lock:
            if self._should_fail("transfer_from"):
                logger.debug(f"{self.symbol}: injected failure on transfer_from {owner} -> {recipient}")
                return False
            if self._allowances[(owner, spender)] < rao:
                raise TokenError(f"{self.symbol}: insufficient allowance from {owner} to {spender}")
            if self._balances.get(owner, 0) < rao:
                raise TokenError(f"{self.symbol}: transfer amount exceeds balance of {owner}")
            self._allowances[(owner, spender)] -= rao
            self._move(owner, recipient, rao)
        return True

    def _move(self, sender: str, recipient: str, rao: int):
        self._balances[sender] -= rao
        self._balances[recipient] += rao
