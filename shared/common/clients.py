# shared/common/clients.py
"""
HTTP clients for the finance and notification services.

Calls are async (httpx) and guarded by a per-client circuit breaker so
a dead downstream service fails fast instead of holding up every
booking transition for the full timeout.
"""

import time
import logging
from typing import Any, Dict, List, Optional

import httpx
from django.conf import settings

logger = logging.getLogger(__name__)

CLOSED = 'closed'
OPEN = 'open'
HALF_OPEN = 'half_open'


class CircuitBreakerError(Exception):
    """The breaker is open; the call was not attempted."""


class CircuitBreaker:
    """
    Opens after ``failure_threshold`` consecutive failures, lets a probe
    through after ``reset_after`` seconds and closes again after
    ``success_threshold`` successful probes.
    """

    def __init__(self, failure_threshold: int = 5, success_threshold: int = 2, reset_after: float = 30):
        self.failure_threshold = failure_threshold
        self.success_threshold = success_threshold
        self.reset_after = reset_after
        self.state = CLOSED
        self.failures = 0
        self.probe_successes = 0
        self.opened_at: Optional[float] = None

    def allow(self) -> bool:
        if self.state != OPEN:
            return True
        if time.monotonic() - self.opened_at >= self.reset_after:
            self.state = HALF_OPEN
            self.probe_successes = 0
            return True
        return False

    def on_success(self) -> None:
        if self.state == HALF_OPEN:
            self.probe_successes += 1
            if self.probe_successes < self.success_threshold:
                return
            logger.info("Circuit breaker closed")
        self.state = CLOSED
        self.failures = 0
        self.opened_at = None

    def on_failure(self) -> None:
        self.failures += 1
        if self.state == HALF_OPEN or self.failures >= self.failure_threshold:
            if self.state != OPEN:
                logger.warning(f"Circuit breaker opened after {self.failures} failures")
            self.state = OPEN
            self.opened_at = time.monotonic()


class ServiceClient:
    """JSON over HTTP to one named service from ``settings.SERVICE_URLS``."""

    def __init__(self, service_name: str, base_url: str = None):
        self.service_name = service_name
        service_urls = getattr(settings, 'SERVICE_URLS', {})
        self.base_url = (base_url or service_urls.get(service_name) or f'http://{service_name}:8000').rstrip('/')
        self.timeout = httpx.Timeout(getattr(settings, 'SERVICE_CLIENT_TIMEOUT', 10.0), connect=5.0)
        self.breaker = CircuitBreaker()

    def headers(self) -> Dict[str, str]:
        return {
            'Accept': 'application/json',
            'X-Service-Auth': getattr(settings, 'SERVICE_AUTH_TOKEN', ''),
            'X-Source-Service': getattr(settings, 'SERVICE_NAME', 'unknown'),
        }

    async def request(self, method: str, path: str, payload: Dict[str, Any] = None) -> Dict[str, Any]:
        if not self.breaker.allow():
            raise CircuitBreakerError(f"{self.service_name} is unavailable (circuit open)")

        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(timeout=self.timeout) as client:
                response = await client.request(method, url, json=payload, headers=self.headers())
            response.raise_for_status()
        except httpx.HTTPStatusError as e:
            status_code = e.response.status_code
            logger.error(
                f"{self.service_name} answered {status_code} for {method} {path}",
                extra={'url': url, 'status_code': status_code}
            )
            # 4xx is our fault, not the service's
            if status_code >= 500:
                self.breaker.on_failure()
            raise
        except httpx.RequestError as e:
            logger.error(f"{self.service_name} unreachable for {method} {path}: {e}", extra={'url': url})
            self.breaker.on_failure()
            raise

        self.breaker.on_success()
        return response.json() if response.content else {}


class FinanceServiceClient(ServiceClient):
    """Invoice lifecycle for bookings. Invoices are keyed by booking id."""

    def __init__(self, base_url: str = None):
        super().__init__('finance-service', base_url)

    async def upsert_booking_invoice(self, booking_id: str, data: Dict[str, Any]) -> Dict[str, Any]:
        return await self.request('PUT', f'/api/v1/invoices/bookings/{booking_id}/', data)

    async def void_booking_invoice(self, booking_id: str, reason: str) -> Dict[str, Any]:
        return await self.request('POST', f'/api/v1/invoices/bookings/{booking_id}/void/', {'reason': reason})


class NotificationServiceClient(ServiceClient):

    def __init__(self, base_url: str = None):
        super().__init__('notification-service', base_url)

    async def send_notification(
        self,
        title: str,
        message: str,
        user_id: Optional[str] = None,
        recipient_role: Optional[str] = None,
        facility_id: Optional[str] = None,
        notification_type: str = 'info',
        data: Dict[str, Any] = None,
        channels: List[str] = None
    ) -> Dict[str, Any]:
        """Send to one user, or to every holder of ``recipient_role`` at a facility."""
        return await self.request('POST', '/api/v1/notifications/', {
            'user_id': user_id,
            'recipient_role': recipient_role,
            'facility_id': facility_id,
            'title': title,
            'message': message,
            'type': notification_type,
            'data': data or {},
            'channels': channels or ['push', 'email'],
        })
