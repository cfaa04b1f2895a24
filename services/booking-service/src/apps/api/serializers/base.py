# services/booking-service/src/apps/api/serializers/base.py
"""
Serializer helpers shared by the request serializers.
"""

import re

from rest_framework import serializers

_CAMEL_BOUNDARY = re.compile(r'(?<!^)(?=[A-Z])')


def to_snake_case(name: str) -> str:
    return _CAMEL_BOUNDARY.sub('_', name).lower()


class CamelCaseInputMixin:
    """
    Accept camelCase request keys (``courtId``) next to snake_case ones.

    Timestamps and ids stay as raw strings here; the service layer parses
    them so malformed values map to invalid_range / invalid_resource.
    """

    def to_internal_value(self, data):
        if hasattr(data, 'keys'):
            data = {to_snake_case(key): data.get(key) for key in data.keys()}
        return super().to_internal_value(data)


class TimeRangeInputSerializer(CamelCaseInputMixin, serializers.Serializer):
    start = serializers.CharField(required=False, allow_blank=True, default='')
    end = serializers.CharField(required=False, allow_blank=True, default='')
