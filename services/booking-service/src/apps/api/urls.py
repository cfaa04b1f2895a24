# services/booking-service/src/apps/api/urls.py
"""
Booking API URL Configuration

Defines all API routes for the booking service.
"""

from django.urls import path, re_path, include
from rest_framework.routers import DefaultRouter

from .views import (
    # Booking
    BookingViewSet,
    # Staff
    StaffBookingCreateView,
    StaffBookingStatusView,
    MaintenanceBlockListCreateView,
    MaintenanceBlockActionView,
    # Availability and pricing
    CourtAvailabilityView,
    PriceQuoteView,
)

app_name = 'api'

router = DefaultRouter()
router.register(r'bookings', BookingViewSet, basename='booking')

urlpatterns = [
    path('', include(router.urls)),

    # Availability and pricing
    path('courts/<str:court_id>/availability/', CourtAvailabilityView.as_view(), name='court-availability'),
    path('price/quote/', PriceQuoteView.as_view(), name='price-quote'),

    # Staff
    path('staff/bookings/', StaffBookingCreateView.as_view(), name='staff-booking-create'),
    path('staff/bookings/<str:booking_id>/status/', StaffBookingStatusView.as_view(), name='staff-booking-status'),
    path('staff/maintenance/', MaintenanceBlockListCreateView.as_view(), name='staff-maintenance'),
    re_path(
        r'^staff/maintenance/(?P<block_id>[^/]+)/(?P<operation>start|complete|cancel)/$',
        MaintenanceBlockActionView.as_view(),
        name='staff-maintenance-action'
    ),
]
