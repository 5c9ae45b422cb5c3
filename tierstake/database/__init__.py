"""
Position storage for the staking ledger.
"""

from tierstake.database.records import Position, LedgerEntry
from tierstake.database.models import Base, BalanceType, StakePosition, LedgerRecord
from tierstake.database.position_store import (
    PositionStore,
    InMemoryPositionStore,
    SQLPositionStore
)

__all__ = [
    "Position",
    "LedgerEntry",
    "Base",
    "BalanceType",
    "StakePosition",
    "LedgerRecord",
    "PositionStore",
    "InMemoryPositionStore",
    "SQLPositionStore"
]
