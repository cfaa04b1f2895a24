# services/booking-service/src/apps/core/services/exceptions.py
"""
Booking Service Exceptions

Every error carries a stable machine-readable ``code`` that the API
returns next to the human-readable message.
"""

from typing import Any, Dict, Optional


class BookingServiceError(Exception):
    """Base exception for booking service errors."""

    code = 'booking_error'

    def __init__(self, message: str = '', code: str = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        if code:
            self.code = code
        self.details = details or {}


class InvalidRangeError(BookingServiceError):
    """Malformed or inverted time bounds."""
    code = 'invalid_range'


class InvalidResourceError(BookingServiceError):
    """Resource id malformed, unknown or not bookable."""
    code = 'invalid_resource'

    def __init__(self, message: str = '', code: str = None, details=None, missing: bool = False):
        super().__init__(message, code, details)
        self.missing = missing


class BookingNotFoundError(BookingServiceError):
    code = 'booking_not_found'


class BookingConflictError(BookingServiceError):
    """An overlapping slot-holding booking exists."""
    code = 'booking_conflict'


class MaintenanceConflictError(BookingServiceError):
    """An overlapping maintenance block exists."""
    code = 'maintenance_conflict'


class BookingStateError(BookingServiceError):
    """Transition not allowed from the current status."""
    code = 'invalid_transition'


class StaleTransitionError(BookingServiceError):
    """The status changed underneath us; another writer won."""
    code = 'stale_transition'


class PermissionDeniedError(BookingServiceError):
    code = 'forbidden'
