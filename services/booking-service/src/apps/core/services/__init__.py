# services/booking-service/src/apps/core/services/__init__.py
"""
Booking Service Business Logic
"""

from .exceptions import (
    BookingServiceError,
    InvalidRangeError,
    InvalidResourceError,
    BookingNotFoundError,
    BookingConflictError,
    MaintenanceConflictError,
    BookingStateError,
    StaleTransitionError,
    PermissionDeniedError,
)
from .actor import Actor
from .parsers import parse_resource_id, parse_timestamp
from .time_range import TimeRange, overlaps, duration_minutes
from .reference_data import ReferenceDataStore
from .pricing_service import PricingService, PriceQuote, calculate_quote, match_rule
from .availability_service import AvailabilityService, AvailabilityResult
from .side_effects import SideEffectPort, PlatformSideEffects, best_effort
from .match_request_service import MatchRequestReconciler
from .booking_service import BookingService
from .expiry_service import PendingBookingSweeper
from .maintenance_service import MaintenanceService


__all__ = [
    # Services
    'BookingService',
    'AvailabilityService',
    'PricingService',
    'MaintenanceService',
    'MatchRequestReconciler',
    'PendingBookingSweeper',
    'ReferenceDataStore',

    # Values and helpers
    'Actor',
    'TimeRange',
    'PriceQuote',
    'AvailabilityResult',
    'overlaps',
    'duration_minutes',
    'calculate_quote',
    'match_rule',
    'parse_resource_id',
    'parse_timestamp',

    # Side effects
    'SideEffectPort',
    'PlatformSideEffects',
    'best_effort',

    # Exceptions
    'BookingServiceError',
    'InvalidRangeError',
    'InvalidResourceError',
    'BookingNotFoundError',
    'BookingConflictError',
    'MaintenanceConflictError',
    'BookingStateError',
    'StaleTransitionError',
    'PermissionDeniedError',
]
