"""
Time sources for "now" and "today".

All date arithmetic uses the local wall clock of the process; no timezone
canonicalization is attempted.
"""
from datetime import datetime, timedelta
from typing import Protocol


class TimeSource(Protocol):
    def now(self) -> datetime:
        ...


class SystemClock:
    """Local wall-clock time"""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock:
    """A clock frozen at one instant, for tests and demos"""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs):
        self.instant = self.instant + timedelta(**kwargs)
