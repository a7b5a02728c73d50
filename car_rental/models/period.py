from dataclasses import dataclass
from datetime import date

from ..utils.dates import as_date


@dataclass(frozen=True)
class RentalPeriod:
    """
    Inclusive calendar-date range [start, end] occupied by a rental.
    A rental from 2025-06-01 to 2025-06-05 occupies five days, both ends included.
    """
    start: date
    end: date

    @classmethod
    def from_values(cls, start, end) -> "RentalPeriod":
        """Build from date-likes; raises ValueError on unparseable input."""
        return cls(as_date(start), as_date(end))

    @classmethod
    def of(cls, rental: dict) -> "RentalPeriod":
        return cls.from_values(rental["start_date"], rental["end_date"])

    @property
    def is_ordered(self) -> bool:
        return self.end >= self.start

    @property
    def days(self) -> int:
        """Billable days; same-day rentals count as one."""
        return (self.end - self.start).days + 1

    def contains(self, day: date) -> bool:
        return self.start <= day <= self.end

    def overlaps(self, other: "RentalPeriod", allow_same_day_turnover: bool = False) -> bool:
        """
        Inclusive intersection: s1 <= e2 and s2 <= e1.
        With `allow_same_day_turnover`, ranges that only share a boundary day
        (one ends on the day the other starts) do not overlap. Two ranges
        starting on the same day always overlap.
        """
        if allow_same_day_turnover:
            if self.start == other.start:
                return True
            return self.start < other.end and other.start < self.end
        return self.start <= other.end and other.start <= self.end
