# shared/common/middleware.py
"""
Request context middleware

Every request gets an ID (the gateway's X-Request-ID when it sent one)
that is echoed back on the response and attached to the access log.
"""

import logging
import time
import uuid
from typing import Callable, Dict, Optional

from django.http import HttpRequest, HttpResponse

logger = logging.getLogger(__name__)

# Probes hit these every few seconds
QUIET_PATHS = frozenset({'/api/v1/health/', '/api/v1/ready/'})


def client_address(request: HttpRequest) -> str:
    forwarded = request.META.get('HTTP_X_FORWARDED_FOR', '')
    if forwarded:
        return forwarded.split(',', 1)[0].strip()
    return request.META.get('REMOTE_ADDR', '')


def gateway_identity(request: HttpRequest) -> Dict[str, Optional[str]]:
    headers = request.headers
    return {
        'user_id': headers.get('X-User-ID'),
        'user_role': headers.get('X-User-Role'),
        'facility_id': headers.get('X-Facility-ID'),
    }


class RequestContextMiddleware:

    def __init__(self, get_response: Callable):
        self.get_response = get_response

    def __call__(self, request: HttpRequest) -> HttpResponse:
        request.request_id = request.headers.get('X-Request-ID') or uuid.uuid4().hex

        if request.path in QUIET_PATHS:
            response = self.get_response(request)
            response['X-Request-ID'] = request.request_id
            return response

        context = {
            'request_id': request.request_id,
            'method': request.method,
            'path': request.path,
            **gateway_identity(request),
        }
        logger.info(f"{request.method} {request.path} started", extra={**context, 'ip_address': client_address(request)})

        began = time.monotonic()
        response = self.get_response(request)
        elapsed_ms = (time.monotonic() - began) * 1000

        level = logging.WARNING if response.status_code >= 400 else logging.INFO
        logger.log(
            level,
            f"{request.method} {request.path} -> {response.status_code} in {elapsed_ms:.1f}ms",
            extra={**context, 'status_code': response.status_code, 'duration_ms': round(elapsed_ms, 2)}
        )

        response['X-Request-ID'] = request.request_id
        response['X-Response-Time'] = f"{elapsed_ms:.2f}ms"
        return response
