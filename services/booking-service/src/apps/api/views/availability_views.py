# services/booking-service/src/apps/api/views/availability_views.py
"""
Availability and Pricing API Views

Read-only previews. Neither endpoint writes anything; admission repeats
both computations when a booking is created.
"""

from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.services import (
    AvailabilityService,
    BookingService,
    BookingServiceError,
    TimeRange,
    parse_resource_id,
)
from apps.api.serializers import AvailabilityQuerySerializer, PriceQuoteRequestSerializer
from shared.common.permissions import IsCustomerOrStaff

from .base import actor_from_request, error_response


class CourtAvailabilityView(APIView):
    """
    GET /courts/<id>/availability/?start=&end=&excludeBookingId=

    Booking conflicts are reported ahead of maintenance ones.
    """

    permission_classes = [IsCustomerOrStaff]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.availability_service = AvailabilityService()

    def get(self, request, court_id):
        serializer = AvailabilityQuerySerializer(data=request.query_params)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            court = self.availability_service.get_bookable_court(court_id)
            time_range = TimeRange.parse(data['start'], data['end'])
            exclude_id = data.get('exclude_booking_id')
            if exclude_id:
                exclude_id = parse_resource_id(exclude_id, 'booking')
            result = self.availability_service.evaluate(court, time_range, exclude_id or None)
        except BookingServiceError as e:
            return error_response(e)

        body = {
            'available': result.available,
            'bookingConflict': result.booking_conflict,
            'maintenanceConflict': result.maintenance_conflict,
        }
        if result.reason:
            body['reason'] = result.reason
            body['conflict'] = result.conflict
        return Response(body)


class PriceQuoteView(APIView):
    """POST /price/quote/ returns a quote preview."""

    permission_classes = [IsCustomerOrStaff]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.booking_service = BookingService()

    def post(self, request):
        serializer = PriceQuoteRequestSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            time_range = TimeRange.parse(data['start'], data['end'])
            quote = self.booking_service.preview_quote(
                actor_from_request(request),
                data['court_id'],
                time_range,
                customer_id=data.get('user_id') or None,
                facility_id=data.get('facility_id') or None,
                sport_id=data.get('sport_id') or None,
                currency=data.get('currency') or None,
            )
        except BookingServiceError as e:
            return error_response(e)

        return Response(quote.to_dict())
