# services/booking-service/src/apps/core/services/parsers.py
"""
Boundary Parsers

Raw request values are coerced here once; the rest of the service only
sees UUIDs and timezone-aware datetimes.
"""

import uuid
from datetime import datetime, timezone as dt_timezone
from typing import Any

from django.utils import timezone
from django.utils.dateparse import parse_datetime

from .exceptions import InvalidRangeError, InvalidResourceError


def parse_resource_id(raw: Any, kind: str = 'resource') -> uuid.UUID:
    """
    Coerce an external id into a UUID.

    Accepts UUID instances and UUID strings with or without hyphens.
    """
    if isinstance(raw, uuid.UUID):
        return raw
    if not isinstance(raw, str) or not raw.strip():
        raise InvalidResourceError(f"Invalid {kind} id", details={'field': kind})
    try:
        return uuid.UUID(raw.strip())
    except ValueError:
        raise InvalidResourceError(f"Invalid {kind} id", details={'field': kind, 'value': raw})


def parse_timestamp(raw: Any, field: str = 'timestamp') -> datetime:
    """
    Coerce an ISO-8601 string or datetime into an aware datetime.

    Naive values are taken as UTC.
    """
    if isinstance(raw, datetime):
        value = raw
    elif isinstance(raw, str) and raw.strip():
        try:
            value = parse_datetime(raw.strip().replace('Z', '+00:00'))
        except ValueError:
            value = None
        if value is None:
            raise InvalidRangeError(f"Invalid {field}", details={'field': field, 'value': raw})
    else:
        raise InvalidRangeError(f"Invalid {field}", details={'field': field})

    if timezone.is_naive(value):
        value = timezone.make_aware(value, dt_timezone.utc)
    return value
