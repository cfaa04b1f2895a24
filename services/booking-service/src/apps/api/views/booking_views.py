# services/booking-service/src/apps/api/views/booking_views.py
"""
Booking API Views

Customer-facing booking endpoints. Staff endpoints live in staff_views.
"""

import logging

from rest_framework import mixins, status, viewsets, filters
from rest_framework.decorators import action
from rest_framework.response import Response
from django_filters.rest_framework import DjangoFilterBackend

from apps.core.services import (
    BookingService,
    BookingServiceError,
    BookingNotFoundError,
    TimeRange,
    parse_resource_id,
)
from apps.api.serializers import (
    BookingSerializer,
    BookingCreateSerializer,
    BookingCancelSerializer,
)
from shared.common.permissions import IsCustomer, IsCustomerOrStaff

from .base import actor_from_request, error_response
from .filters import BookingFilter

logger = logging.getLogger(__name__)


class BookingViewSet(
    mixins.ListModelMixin,
    mixins.RetrieveModelMixin,
    viewsets.GenericViewSet
):
    """
    Bookings visible to the caller.

    Customers see their own bookings, staff see their facility's and
    admins see all of them.
    """

    serializer_class = BookingSerializer
    permission_classes = [IsCustomerOrStaff]
    filter_backends = [DjangoFilterBackend, filters.OrderingFilter]
    filterset_class = BookingFilter
    ordering_fields = ['scheduled_start', 'created_at', 'status']
    ordering = ['-scheduled_start']

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.booking_service = BookingService()

    def get_permissions(self):
        if self.action in ('create', 'cancel'):
            return [IsCustomer()]
        return super().get_permissions()

    def get_queryset(self):
        return self.booking_service.bookings_visible_to(actor_from_request(self.request))

    def retrieve(self, request, pk=None):
        try:
            booking_id = parse_resource_id(pk, 'booking')
            booking = self.get_queryset().filter(id=booking_id).first()
            if booking is None:
                raise BookingNotFoundError(f"Booking {booking_id} not found")
        except BookingServiceError as e:
            return error_response(e)

        return Response(BookingSerializer(booking).data)

    def create(self, request):
        """Create a pending booking for the calling customer."""
        serializer = BookingCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            time_range = TimeRange.parse(data['start'], data['end'])
            booking = self.booking_service.create_booking(
                actor_from_request(request),
                data['court_id'],
                time_range,
                customer_id=data.get('customer_id') or None,
                facility_id=data.get('facility_id') or None,
                sport_id=data.get('sport_id') or None,
                match_request_id=data.get('match_request_id') or None,
                note=data.get('note'),
                contact_method=data.get('contact_method'),
                participants=data.get('participants'),
            )
        except BookingServiceError as e:
            return error_response(e)

        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)

    @action(detail=True, methods=['put'])
    def cancel(self, request, pk=None):
        """Cancel one of the caller's bookings while it is still pending."""
        serializer = BookingCancelSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        try:
            booking = self.booking_service.get_booking(pk)
            booking = self.booking_service.customer_cancel(
                booking,
                actor_from_request(request),
                serializer.validated_data['reason']
            )
        except BookingServiceError as e:
            return error_response(e)

        return Response(BookingSerializer(booking).data)
