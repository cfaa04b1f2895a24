# services/booking-service/src/apps/core/services/time_range.py
"""
TimeRange

Half-open interval [start, end) used for every overlap decision.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Any

from django.utils import timezone

from .exceptions import InvalidRangeError
from .parsers import parse_timestamp


@dataclass(frozen=True)
class TimeRange:
    start: datetime
    end: datetime

    def __post_init__(self):
        if not isinstance(self.start, datetime) or not isinstance(self.end, datetime):
            raise InvalidRangeError("start and end must be datetimes")
        if timezone.is_naive(self.start) or timezone.is_naive(self.end):
            raise InvalidRangeError("start and end must be timezone-aware")
        if self.start >= self.end:
            raise InvalidRangeError(
                "start and end must be valid and start < end",
                details={'start': self.start.isoformat(), 'end': self.end.isoformat()}
            )

    @classmethod
    def parse(cls, start: Any, end: Any) -> 'TimeRange':
        return cls(parse_timestamp(start, 'start'), parse_timestamp(end, 'end'))

    def overlaps(self, other: 'TimeRange') -> bool:
        return overlaps(self, other)

    @property
    def duration_minutes(self) -> int:
        return duration_minutes(self)

    def to_dict(self) -> dict:
        return {'start': self.start.isoformat(), 'end': self.end.isoformat()}


def overlaps(a: TimeRange, b: TimeRange) -> bool:
    """Touching boundaries do not overlap."""
    return a.start < b.end and a.end > b.start


def duration_minutes(time_range: TimeRange) -> int:
    """Whole minutes, half a minute rounding up, never negative."""
    millis = (time_range.end - time_range.start) // timedelta(milliseconds=1)
    return max(0, (millis + 30000) // 60000)
