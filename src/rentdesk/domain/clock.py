"""Injectable clock.

All timestamps in rentdesk are naive datetimes in the operator's local time
zone. Services ask a Clock for "now" instead of calling ``datetime.now()``
themselves so tests can pin the current instant.
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta


class Clock(ABC):
    """Source of the current local time."""

    @abstractmethod
    def now(self) -> datetime:
        """Return the current naive local datetime."""


class SystemClock(Clock):
    """Clock backed by the system's local time."""

    def now(self) -> datetime:
        return datetime.now().replace(microsecond=0)


class FixedClock(Clock):
    """Clock that returns a settable instant."""

    def __init__(self, current: datetime):
        self.current = current

    def now(self) -> datetime:
        return self.current

    def set(self, current: datetime) -> None:
        """Move the clock to ``current``."""
        self.current = current

    def advance(self, **kwargs) -> datetime:
        """Move the clock forward by a timedelta built from ``kwargs``."""
        self.current = self.current + timedelta(**kwargs)
        return self.current
