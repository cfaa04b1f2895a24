# services/booking-service/src/apps/api/serializers/pricing_serializers.py
"""
Quote and availability request serializers
"""

from rest_framework import serializers

from .base import TimeRangeInputSerializer


class PriceQuoteRequestSerializer(TimeRangeInputSerializer):
    court_id = serializers.CharField()
    facility_id = serializers.CharField(required=False, allow_blank=True)
    sport_id = serializers.CharField(required=False, allow_blank=True)
    user_id = serializers.CharField(required=False, allow_blank=True)
    currency = serializers.CharField(required=False, allow_blank=True, max_length=3)


class AvailabilityQuerySerializer(TimeRangeInputSerializer):
    exclude_booking_id = serializers.CharField(required=False, allow_blank=True)
