# shared/common/exceptions.py
"""
API Exception Handler

Renders every DRF error as
``{'success': False, 'error': {'code', 'message', 'request_id', 'details'?}}``.
Domain errors raised by the booking services are rendered by the views
themselves and never reach this handler.
"""

import logging
import traceback
from typing import Any, Dict, Optional

from django.conf import settings
from rest_framework import status
from rest_framework.response import Response
from rest_framework.views import exception_handler

logger = logging.getLogger(__name__)

GENERIC_SERVER_ERROR = 'An unexpected error occurred. Please try again later.'


def error_body(code: str, message: str, request_id: str = None, **extra) -> Dict[str, Any]:
    error = {'code': code, 'message': message, 'request_id': request_id}
    error.update(extra)
    return {'success': False, 'error': error}


def custom_exception_handler(exc, context) -> Optional[Response]:
    request = context.get('request')
    request_id = getattr(request, 'request_id', None)

    response = exception_handler(exc, context)
    if response is not None:
        return format_error_response(exc, response, request_id)

    # Anything DRF does not know about is a server error
    logger.exception(
        f"Unhandled exception in {context.get('view').__class__.__name__}: {exc}",
        extra={'request_id': request_id, 'exception_type': type(exc).__name__}
    )

    if settings.DEBUG:
        body = error_body(
            'internal_error',
            str(exc),
            request_id,
            type=type(exc).__name__,
            traceback=traceback.format_exc().splitlines(),
        )
    else:
        body = error_body('internal_error', GENERIC_SERVER_ERROR, request_id)
    return Response(body, status=status.HTTP_500_INTERNAL_SERVER_ERROR)


def format_error_response(exc, response: Response, request_id: str = None) -> Response:
    extra = {}
    # Field errors come back as a dict without 'detail'
    if isinstance(response.data, dict) and 'detail' not in response.data:
        extra['details'] = response.data

    response.data = error_body(
        getattr(exc, 'default_code', 'error'),
        get_error_message(exc, response),
        request_id,
        **extra
    )
    return response


def get_error_message(exc, response: Response) -> str:
    detail = getattr(exc, 'detail', None)
    if isinstance(detail, str):
        return detail
    if isinstance(detail, list) and detail:
        return str(detail[0])
    if isinstance(detail, dict):
        return str(detail.get('detail', 'Validation error'))

    if isinstance(response.data, dict):
        return str(response.data.get('detail', response.data))
    return str(response.data)
