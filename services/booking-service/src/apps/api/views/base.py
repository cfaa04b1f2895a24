# services/booking-service/src/apps/api/views/base.py
"""
Helpers shared by the API views.
"""

import logging

from rest_framework import status
from rest_framework.response import Response

from apps.core.services import Actor, BookingServiceError, InvalidResourceError

logger = logging.getLogger(__name__)

ERROR_STATUS = {
    'invalid_range': status.HTTP_400_BAD_REQUEST,
    'invalid_resource': status.HTTP_400_BAD_REQUEST,
    'booking_conflict': status.HTTP_409_CONFLICT,
    'maintenance_conflict': status.HTTP_409_CONFLICT,
    'stale_transition': status.HTTP_409_CONFLICT,
    'invalid_transition': status.HTTP_409_CONFLICT,
    'booking_not_cancellable': status.HTTP_409_CONFLICT,
    'booking_not_found': status.HTTP_404_NOT_FOUND,
    'maintenance_not_found': status.HTTP_404_NOT_FOUND,
    'forbidden': status.HTTP_403_FORBIDDEN,
}


def error_response(error: BookingServiceError) -> Response:
    """``{error, reason, ...details}`` with the status for the error code."""
    if isinstance(error, InvalidResourceError) and error.missing:
        status_code = status.HTTP_404_NOT_FOUND
    else:
        status_code = ERROR_STATUS.get(error.code, status.HTTP_400_BAD_REQUEST)

    body = {'error': error.message or str(error), 'reason': error.code}
    body.update(error.details)
    return Response(body, status=status_code)


def actor_from_request(request) -> Actor:
    user = request.user
    return Actor(role=user.role, id=user.id, facility_id=user.facility_id)
