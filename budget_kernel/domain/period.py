"""
Reporting periods.

Responsibility:
    Inclusive calendar date ranges used for report windows and budget
    periods, with the overlap/intersection rules every query relies on.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O.

Invariants enforced:
    - ``start <= end``; violating input raises ``InvalidPeriodError``.
    - Both bounds are inclusive.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date

from budget_kernel.exceptions import InvalidPeriodError


@dataclass(frozen=True, order=True)
class ReportingPeriod:
    """An inclusive ``[start, end]`` calendar date range."""

    start: date
    end: date

    def __post_init__(self) -> None:
        if self.start > self.end:
            raise InvalidPeriodError(self.start, self.end)

    @classmethod
    def for_year(cls, year: int) -> ReportingPeriod:
        return cls(date(year, 1, 1), date(year, 12, 31))

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, other: ReportingPeriod) -> bool:
        """Two inclusive ranges overlap iff start1 <= end2 and end1 >= start2."""
        return self.start <= other.end and self.end >= other.start

    def intersection(self, other: ReportingPeriod) -> ReportingPeriod | None:
        if not self.overlaps(other):
            return None
        return ReportingPeriod(max(self.start, other.start), min(self.end, other.end))

    def __str__(self) -> str:
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
