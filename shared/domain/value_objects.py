"""
Common Value Objects

DateRange is the calendar-day view of a booking used by the blocked-date
endpoints. It is derived from booking instants on demand and never stored.
"""

from dataclasses import dataclass
from datetime import date

from shared.domain.base import ValueObject


@dataclass(frozen=True)
class DateRange(ValueObject):
    """
    Inclusive span of calendar days.

    A booking that starts and ends on the same day is ``(d, d)``.
    """
    start: date
    end: date

    def __post_init__(self):
        if self.start > self.end:
            raise ValueError(f"Range start ({self.start}) is after its end ({self.end})")

    @property
    def days(self) -> int:
        return (self.end - self.start).days + 1

    def touches(self, other: 'DateRange') -> bool:
        """True when the two spans share at least one day."""
        return self.start <= other.end and other.start <= self.end

    def to_dict(self) -> dict:
        return {'start': self.start.isoformat(), 'end': self.end.isoformat()}

    def __str__(self):
        return f"{self.start.isoformat()}..{self.end.isoformat()}"
