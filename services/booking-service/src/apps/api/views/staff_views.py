# services/booking-service/src/apps/api/views/staff_views.py
"""
Staff API Views

Facility staff create bookings, move them through the status workflow
and schedule court maintenance.
"""

import logging

from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import APIView

from apps.core.services import (
    BookingService,
    BookingServiceError,
    MaintenanceService,
    TimeRange,
)
from apps.api.serializers import (
    BookingSerializer,
    StaffBookingCreateSerializer,
    BookingStatusUpdateSerializer,
    MaintenanceBlockSerializer,
    MaintenanceCreateSerializer,
)
from shared.common.permissions import IsStaff

from .base import actor_from_request, error_response

logger = logging.getLogger(__name__)


class StaffBookingCreateView(APIView):
    """Create a booking on behalf of a customer or a walk-in."""

    permission_classes = [IsStaff]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.booking_service = BookingService()

    def post(self, request):
        serializer = StaffBookingCreateSerializer(data=request.data)
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
                confirm=data['confirm'],
                match_request_id=data.get('match_request_id') or None,
                customer_details=data.get('customer'),
                note=data.get('note'),
                contact_method=data.get('contact_method'),
                participants=data.get('participants'),
            )
        except BookingServiceError as e:
            return error_response(e)

        return Response(BookingSerializer(booking).data, status=status.HTTP_201_CREATED)


class StaffBookingStatusView(APIView):
    """Move a booking to another status."""

    permission_classes = [IsStaff]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.booking_service = BookingService()

    def patch(self, request, booking_id):
        serializer = BookingStatusUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            booking = self.booking_service.get_booking(booking_id)
            booking = self.booking_service.change_status(
                booking,
                data['status'],
                actor_from_request(request),
                data['reason']
            )
        except BookingServiceError as e:
            return error_response(e)

        return Response(BookingSerializer(booking).data)


class MaintenanceBlockListCreateView(APIView):
    """List or schedule maintenance blocks for the staff member's facility."""

    permission_classes = [IsStaff]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.maintenance_service = MaintenanceService()

    def get(self, request):
        try:
            blocks = self.maintenance_service.list_blocks(
                actor_from_request(request),
                court_id=request.query_params.get('court') or None
            )
        except BookingServiceError as e:
            return error_response(e)

        return Response(MaintenanceBlockSerializer(blocks, many=True).data)

    def post(self, request):
        serializer = MaintenanceCreateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        try:
            time_range = TimeRange.parse(data['start'], data['end'])
            block = self.maintenance_service.schedule(
                actor_from_request(request),
                data['court_id'],
                time_range,
                data['reason']
            )
        except BookingServiceError as e:
            return error_response(e)

        return Response(MaintenanceBlockSerializer(block).data, status=status.HTTP_201_CREATED)


class MaintenanceBlockActionView(APIView):
    """Start, complete or cancel a maintenance block."""

    permission_classes = [IsStaff]

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self.maintenance_service = MaintenanceService()

    def post(self, request, block_id, operation):
        try:
            block = self.maintenance_service.get_block(block_id)
            block = self.maintenance_service.apply_action(block, operation, actor_from_request(request))
        except BookingServiceError as e:
            return error_response(e)

        return Response(MaintenanceBlockSerializer(block).data)
