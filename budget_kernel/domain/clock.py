"""
Injectable time.

Overdue detection needs "today" and settlement records need "now"; services
take a ``Clock`` so neither ever reads the system time directly.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta


class Clock(ABC):

    @abstractmethod
    def now(self) -> datetime:
        """Timezone-aware current time."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Pinned clock for tests and reproducible report runs.

    Defaults to 2025-01-01 12:00 UTC.  ``now()`` only moves when
    ``advance_days()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._now = fixed_time or datetime(2025, 1, 1, 12, 0, tzinfo=UTC)

    def now(self) -> datetime:
        return self._now

    def advance_days(self, days: int) -> None:
        self._now += timedelta(days=days)
