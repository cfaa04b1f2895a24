# services/booking-service/src/apps/api/serializers/booking_serializers.py
"""
Booking Serializers
"""

from rest_framework import serializers

from apps.core.models import Booking

from .base import CamelCaseInputMixin, TimeRangeInputSerializer


class BookingSerializer(serializers.ModelSerializer):
    """Booking as returned by every booking endpoint."""

    court_id = serializers.UUIDField(read_only=True)
    facility_id = serializers.UUIDField(read_only=True)
    sport_id = serializers.UUIDField(read_only=True)
    customer_id = serializers.UUIDField(read_only=True)
    match_request_id = serializers.UUIDField(read_only=True, allow_null=True)
    start = serializers.DateTimeField(source='scheduled_start', read_only=True)
    end = serializers.DateTimeField(source='scheduled_end', read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)
    duration_minutes = serializers.IntegerField(read_only=True)
    can_cancel = serializers.BooleanField(source='can_customer_cancel', read_only=True)

    class Meta:
        model = Booking
        fields = [
            'id', 'booking_number',
            'court_id', 'facility_id', 'sport_id', 'customer_id', 'match_request_id',
            'start', 'end', 'duration_minutes',
            'status', 'status_display', 'can_cancel',
            'pricing_snapshot', 'total_amount', 'currency',
            'participants', 'contact_method', 'note',
            'confirmed_at', 'confirmed_by', 'completed_at',
            'cancelled_at', 'cancelled_by', 'cancelled_by_role',
            'cancel_reason_code', 'cancellation_reason',
            'created_by', 'created_by_role', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class BookingCreateSerializer(TimeRangeInputSerializer):
    """
    Customer booking request.

    Any client-side price fields are dropped; the quote is always
    computed server-side.
    """

    court_id = serializers.CharField()
    facility_id = serializers.CharField(required=False, allow_blank=True)
    sport_id = serializers.CharField(required=False, allow_blank=True)
    customer_id = serializers.CharField(required=False, allow_blank=True)
    match_request_id = serializers.CharField(required=False, allow_blank=True)
    note = serializers.CharField(required=False, allow_blank=True, max_length=2000)
    contact_method = serializers.CharField(required=False, allow_blank=True, max_length=50)
    participants = serializers.ListField(
        child=serializers.CharField(max_length=100),
        required=False,
        max_length=50
    )


class WalkInCustomerSerializer(CamelCaseInputMixin, serializers.Serializer):
    name = serializers.CharField(max_length=200)
    phone = serializers.CharField(required=False, allow_blank=True, max_length=30)
    email = serializers.EmailField(required=False, allow_blank=True)


class StaffBookingCreateSerializer(BookingCreateSerializer):
    """Staff booking: optionally confirmed at once, optionally a walk-in."""

    confirm = serializers.BooleanField(required=False, default=False)
    customer = WalkInCustomerSerializer(required=False)

    def validate(self, attrs):
        if not attrs.get('customer_id') and not attrs.get('customer'):
            raise serializers.ValidationError({
                'customer_id': 'Provide customer_id or walk-in customer details'
            })
        return attrs


class BookingCancelSerializer(CamelCaseInputMixin, serializers.Serializer):
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')


class BookingStatusUpdateSerializer(CamelCaseInputMixin, serializers.Serializer):
    status = serializers.ChoiceField(choices=Booking.Status.choices)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=500, default='')
