# services/booking-service/src/apps/api/views/__init__.py
"""
Booking API Views
"""

from .booking_views import (
    BookingViewSet,
)

from .staff_views import (
    StaffBookingCreateView,
    StaffBookingStatusView,
    MaintenanceBlockListCreateView,
    MaintenanceBlockActionView,
)

from .availability_views import (
    CourtAvailabilityView,
    PriceQuoteView,
)


__all__ = [
    # Booking
    'BookingViewSet',

    # Staff
    'StaffBookingCreateView',
    'StaffBookingStatusView',
    'MaintenanceBlockListCreateView',
    'MaintenanceBlockActionView',

    # Availability and pricing
    'CourtAvailabilityView',
    'PriceQuoteView',
]
