"""
Core components for the staking ledger.
"""

from tierstake.core.reward_schedule import (
    RewardSchedule,
    DEFAULT_TIERS,
    parse_tiers
)
from tierstake.core.transaction import LedgerTransaction
from tierstake.core.event_manager import EventManager
from tierstake.core.ledger import StakingLedger

__all__ = [
    "RewardSchedule",
    "DEFAULT_TIERS",
    "parse_tiers",
    "LedgerTransaction",
    "EventManager",
    "StakingLedger"
]
