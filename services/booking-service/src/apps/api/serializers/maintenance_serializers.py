# services/booking-service/src/apps/api/serializers/maintenance_serializers.py
"""
Maintenance Serializers
"""

from rest_framework import serializers

from apps.core.models import MaintenanceBlock

from .base import TimeRangeInputSerializer


class MaintenanceBlockSerializer(serializers.ModelSerializer):
    court_id = serializers.UUIDField(read_only=True)
    facility_id = serializers.UUIDField(read_only=True)
    status_display = serializers.CharField(source='get_status_display', read_only=True)

    class Meta:
        model = MaintenanceBlock
        fields = [
            'id', 'court_id', 'facility_id',
            'start', 'end', 'reason',
            'status', 'status_display',
            'started_at', 'completed_at', 'cancelled_at',
            'created_by', 'created_at', 'updated_at',
        ]
        read_only_fields = fields


class MaintenanceCreateSerializer(TimeRangeInputSerializer):
    court_id = serializers.CharField()
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255, default='')
