# services/booking-service/src/apps/api/serializers/__init__.py
"""
Booking API Serializers
"""

from .booking_serializers import (
    BookingSerializer,
    BookingCreateSerializer,
    StaffBookingCreateSerializer,
    WalkInCustomerSerializer,
    BookingCancelSerializer,
    BookingStatusUpdateSerializer,
)

from .pricing_serializers import (
    PriceQuoteRequestSerializer,
    AvailabilityQuerySerializer,
)

from .maintenance_serializers import (
    MaintenanceBlockSerializer,
    MaintenanceCreateSerializer,
)


__all__ = [
    # Booking
    'BookingSerializer',
    'BookingCreateSerializer',
    'StaffBookingCreateSerializer',
    'WalkInCustomerSerializer',
    'BookingCancelSerializer',
    'BookingStatusUpdateSerializer',

    # Pricing and availability
    'PriceQuoteRequestSerializer',
    'AvailabilityQuerySerializer',

    # Maintenance
    'MaintenanceBlockSerializer',
    'MaintenanceCreateSerializer',
]
