"""
Wall-clock source for event status computation.

Event dates and times are local to the server, so clocks return naive
local datetimes. Tests swap in a FixedClock to make status deterministic.
"""

from datetime import datetime, timedelta


class Clock:
    """System clock."""

    def now(self) -> datetime:
        return datetime.now()


class FixedClock(Clock):
    """Clock frozen at a given instant, movable with advance()."""

    def __init__(self, instant: datetime):
        self.instant = instant

    def now(self) -> datetime:
        return self.instant

    def advance(self, **kwargs) -> None:
        self.instant = self.instant + timedelta(**kwargs)
