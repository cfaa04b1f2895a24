# services/booking-service/src/apps/core/services/availability_service.py
"""
Availability Service

Answers whether a court is free for a time range.

The read-time answer is advisory. BookingService repeats the check
under the court lock before it inserts anything.
"""

import uuid
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from apps.core.models import Booking, Court, MaintenanceBlock

from .exceptions import (
    BookingConflictError,
    InvalidResourceError,
    MaintenanceConflictError,
)
from .reference_data import ReferenceDataStore
from .time_range import TimeRange

logger = logging.getLogger(__name__)

BOOKING_CONFLICT = 'booking_conflict'
MAINTENANCE_CONFLICT = 'maintenance_conflict'

NOT_AVAILABLE_MESSAGE = 'Court not available for the requested time'


@dataclass
class AvailabilityResult:
    available: bool
    reason: Optional[str] = None
    conflict: Optional[Dict[str, Any]] = None
    booking_conflict: bool = False
    maintenance_conflict: bool = False

    def to_dict(self) -> Dict[str, Any]:
        data = {
            'available': self.available,
            'booking_conflict': self.booking_conflict,
            'maintenance_conflict': self.maintenance_conflict,
        }
        if self.reason:
            data['reason'] = self.reason
            data['conflict'] = self.conflict
        return data


def describe_booking(booking: Booking) -> Dict[str, Any]:
    return {
        'type': 'booking',
        'id': str(booking.id),
        'status': booking.status,
        'start': booking.scheduled_start.isoformat(),
        'end': booking.scheduled_end.isoformat(),
    }


def describe_maintenance(block: MaintenanceBlock) -> Dict[str, Any]:
    return {
        'type': 'maintenance',
        'id': str(block.id),
        'status': block.status,
        'reason': block.reason,
        'start': block.start.isoformat(),
        'end': block.end.isoformat(),
    }


class AvailabilityService:
    """
    Service for court availability.

    Handles:
    - Court eligibility (only active or maintenance-flagged courts)
    - Overlap against slot-holding bookings
    - Overlap against non-cancelled maintenance blocks
    """

    def __init__(self, reference_data: ReferenceDataStore = None):
        self.reference_data = reference_data or ReferenceDataStore()

    def get_bookable_court(self, court_id: Any) -> Court:
        court = self.reference_data.get_court(court_id)
        if not court.is_bookable:
            raise InvalidResourceError(
                f"Court is {court.status} and does not accept bookings",
                details={'field': 'court', 'id': str(court.id), 'status': court.status}
            )
        return court

    def check_availability(
        self,
        court_id: Any,
        time_range: TimeRange,
        exclude_booking_id: uuid.UUID = None
    ) -> AvailabilityResult:
        """
        Check a court for the range.

        Raises InvalidResourceError for malformed, unknown or retired
        courts. Booking conflicts are reported ahead of maintenance ones.
        """
        court = self.get_bookable_court(court_id)
        return self.evaluate(court, time_range, exclude_booking_id)

    def evaluate(
        self,
        court: Court,
        time_range: TimeRange,
        exclude_booking_id: uuid.UUID = None
    ) -> AvailabilityResult:
        booking = Booking.get_conflicts(
            court.id, time_range.start, time_range.end, exclude_booking_id
        ).order_by('scheduled_start').first()
        block = MaintenanceBlock.get_conflicts(
            court.id, time_range.start, time_range.end
        ).order_by('start').first()

        if booking:
            return AvailabilityResult(
                available=False,
                reason=BOOKING_CONFLICT,
                conflict=describe_booking(booking),
                booking_conflict=True,
                maintenance_conflict=block is not None,
            )
        if block:
            return AvailabilityResult(
                available=False,
                reason=MAINTENANCE_CONFLICT,
                conflict=describe_maintenance(block),
                maintenance_conflict=True,
            )
        return AvailabilityResult(available=True)

    def ensure_available(
        self,
        court: Court,
        time_range: TimeRange,
        exclude_booking_id: uuid.UUID = None
    ) -> None:
        """Raise the matching conflict error unless the range is free."""
        result = self.evaluate(court, time_range, exclude_booking_id)
        if result.available:
            return

        logger.info(
            f"Rejected range on court {court.id}: {result.reason}",
            extra={'court_id': str(court.id), 'reason': result.reason, **time_range.to_dict()}
        )
        error_class = BookingConflictError if result.reason == BOOKING_CONFLICT else MaintenanceConflictError
        raise error_class(NOT_AVAILABLE_MESSAGE, details={'conflict': result.conflict})
