"""
Database models for the staking ledger.

This module defines the tables backing the SQL position store: one row per
active position and an append-only journal of committed ledger entries.
"""

from datetime import datetime, timezone
from typing import Dict, Any

from sqlalchemy import Column, Integer, String, DateTime
from sqlalchemy.orm import declarative_base
from sqlalchemy.types import TypeDecorator

import bittensor as bt

Base = declarative_base()


def _utcnow():
    return datetime.now(timezone.utc)


class BalanceType(TypeDecorator):
    """
    SQLAlchemy type for bittensor.Balance objects.

    Stored as the decimal string of the rao amount so large values survive
    backends without arbitrary-precision integers.
    """
    impl = String(80)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        """Convert Balance to a rao string when storing in database"""
        if value is None:
            return None
        if isinstance(value, bt.Balance):
            return str(int(value.rao))
        return str(int(value))

    def process_result_value(self, value, dialect):
        """Convert a rao string to Balance when loading from database"""
        if value is None:
            return None
        return bt.Balance.from_rao(int(value))


class StakePosition(Base):
    """Active stake position of a participant."""

    __tablename__ = "tierstake_positions"

    participant = Column(String(255), primary_key=True)
    staked_amount = Column(BalanceType, nullable=False)
    staked_at = Column(Integer, nullable=False)  # seconds since epoch
    last_updated = Column(DateTime, default=_utcnow, onupdate=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "participant": self.participant,
            "staked_amount": self.staked_amount,
            "staked_at": self.staked_at,
            "last_updated": self.last_updated
        }


class LedgerRecord(Base):
    """Journal of committed stake, claim, unstake and recover operations."""

    __tablename__ = "tierstake_ledger_entries"

    id = Column(Integer, primary_key=True)
    kind = Column(String(32), index=True)  # "stake", "claim", "unstake", "recover"
    participant = Column(String(255), index=True)
    amount = Column(BalanceType, default="0")
    reward = Column(BalanceType, default="0")
    timestamp = Column(Integer, index=True)
    recorded_at = Column(DateTime, default=_utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary."""
        return {
            "id": self.id,
            "kind": self.kind,
            "participant": self.participant,
            "amount": self.amount,
            "reward": self.reward,
            "timestamp": self.timestamp,
            "recorded_at": self.recorded_at
        }
