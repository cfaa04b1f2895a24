# services/booking-service/src/apps/api/views/filters.py
"""
API Filters
"""

import django_filters

from apps.core.models import Booking


class BookingFilter(django_filters.FilterSet):
    """Filter for booking queries."""

    start_after = django_filters.IsoDateTimeFilter(
        field_name='scheduled_start',
        lookup_expr='gte'
    )
    start_before = django_filters.IsoDateTimeFilter(
        field_name='scheduled_start',
        lookup_expr='lt'
    )
    status = django_filters.ChoiceFilter(
        choices=Booking.Status.choices
    )
    status_in = django_filters.BaseInFilter(
        field_name='status'
    )
    court_id = django_filters.UUIDFilter()
    customer_id = django_filters.UUIDFilter()

    class Meta:
        model = Booking
        fields = ['status']
