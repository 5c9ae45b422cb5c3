"""
Shared helpers for amounts and time.
"""

from tierstake.utils.balance import to_rao, ZERO
from tierstake.utils.clock import SystemClock, ManualClock

__all__ = [
    "to_rao",
    "ZERO",
    "SystemClock",
    "ManualClock",
]
