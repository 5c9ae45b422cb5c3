"""
Single-position staking ledger with tiered, time-based rewards.

A participant stakes one token and accrues another according to how long
the stake has been held. Rates step up at 3, 6 and 12 months.
"""

__version__ = "0.1.0"

from tierstake.errors import (
    LedgerError,
    InvalidAmount,
    NothingStaked,
    AlreadyStaked,
    Unauthorized,
    TransferFailed,
    InsufficientReserve,
    ArithmeticOverflow
)
from tierstake.core import RewardSchedule, EventManager, StakingLedger
from tierstake.database import Position, LedgerEntry, InMemoryPositionStore, SQLPositionStore
from tierstake.tokens import FungibleToken, InMemoryToken

__all__ = [
    "LedgerError",
    "InvalidAmount",
    "NothingStaked",
    "AlreadyStaked",
    "Unauthorized",
    "TransferFailed",
    "InsufficientReserve",
    "ArithmeticOverflow",
    "RewardSchedule",
    "EventManager",
    "StakingLedger",
    "Position",
    "LedgerEntry",
    "InMemoryPositionStore",
    "SQLPositionStore",
    "FungibleToken",
    "InMemoryToken"
]
