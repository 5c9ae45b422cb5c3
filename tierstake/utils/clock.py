"""
Time sources for the ledger. A clock is any zero-argument callable that
returns the current time in whole seconds since the epoch.
"""

import time


class SystemClock:
    """Wall-clock time, truncated to seconds."""

    def __call__(self) -> int:
        return int(time.time())


class ManualClock:
    """
    Clock that only moves when told to. Used by simulations and tests.
    """

    def __init__(self, start: int = 0):
        self.now = int(start)

    def __call__(self) -> int:
        return self.now

    def advance(self, seconds: int) -> int:
        """Move the clock forward and return the new time."""
        if seconds < 0:
            raise ValueError("ManualClock cannot move backwards")
        self.now += int(seconds)
        return self.now

    def set(self, timestamp: int) -> int:
        """Jump to an absolute time that is not earlier than the current one."""
        if timestamp < self.now:
            raise ValueError("ManualClock cannot move backwards")
        self.now = int(timestamp)
        return self.now
