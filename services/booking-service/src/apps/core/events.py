# services/booking-service/src/apps/core/events.py
"""
Domain events

Booking and maintenance events for downstream consumers (reporting,
notifications). Publishing never raises; a failed publish is logged
and reported as False.
"""

import json
import logging
from typing import Any, Dict

import httpx
import redis
from django.conf import settings
from django.core.serializers.json import DjangoJSONEncoder
from django.utils import timezone

logger = logging.getLogger(__name__)


class EventType:
    BOOKING_CREATED = 'booking.created'
    BOOKING_CONFIRMED = 'booking.confirmed'
    BOOKING_CANCELLED = 'booking.cancelled'
    BOOKING_COMPLETED = 'booking.completed'
    BOOKING_EXPIRED = 'booking.expired'
    BOOKING_STATUS_CHANGED = 'booking.status_changed'

    MAINTENANCE_SCHEDULED = 'maintenance.scheduled'
    MAINTENANCE_STATUS_CHANGED = 'maintenance.status_changed'

    AUDIT_RECORDED = 'audit.recorded'


class EventPublisher:
    """
    Sends events to the backend named by ``EVENT_BACKEND``:

    - ``log``: debug log only (default, and what tests use)
    - ``redis``: pub/sub on ``EVENT_CHANNEL``
    - ``webhook``: POST to ``EVENT_WEBHOOK_URL``
    """

    def __init__(self):
        self.service_name = getattr(settings, 'SERVICE_NAME', 'booking-service')
        self._redis = None

    @property
    def enabled(self) -> bool:
        return getattr(settings, 'EVENT_PUBLISHING_ENABLED', True)

    def build_event(self, event_type: str, payload: Dict[str, Any], facility_id=None) -> Dict[str, Any]:
        return {
            'event_type': event_type,
            'service': self.service_name,
            'timestamp': timezone.now().isoformat(),
            'facility_id': str(facility_id) if facility_id else None,
            'payload': payload,
        }

    def publish(self, event_type: str, payload: Dict[str, Any], facility_id=None) -> bool:
        if not self.enabled:
            logger.debug(f"Event publishing disabled, dropping {event_type}")
            return False

        event = self.build_event(event_type, payload, facility_id)
        try:
            body = json.dumps(event, cls=DjangoJSONEncoder)
            backend = getattr(settings, 'EVENT_BACKEND', 'log')
            if backend == 'redis':
                self._to_redis(event_type, body)
            elif backend == 'webhook':
                self._to_webhook(event_type, body)
            else:
                logger.debug(f"Event {event_type}: {body[:500]}")
        except Exception as e:
            logger.error(f"Failed to publish {event_type}: {e}", extra={'event_type': event_type})
            return False

        logger.info(f"Published {event_type}", extra={'event_type': event_type, 'facility_id': event['facility_id']})
        return True

    @property
    def redis_client(self) -> redis.Redis:
        if self._redis is None:
            self._redis = redis.Redis.from_url(settings.REDIS_URL)
        return self._redis

    def _to_redis(self, event_type: str, body: str) -> None:
        channel = getattr(settings, 'EVENT_CHANNEL', 'court-booking.events')
        self.redis_client.publish(channel, body)

    def _to_webhook(self, event_type: str, body: str) -> None:
        url = getattr(settings, 'EVENT_WEBHOOK_URL', '')
        if not url:
            raise ValueError("EVENT_WEBHOOK_URL is not set")
        response = httpx.post(
            url,
            content=body,
            headers={'Content-Type': 'application/json', 'X-Event-Type': event_type},
            timeout=5
        )
        response.raise_for_status()


event_publisher = EventPublisher()


def booking_payload(booking) -> Dict[str, Any]:
    return {
        'booking_id': booking.id,
        'booking_number': booking.booking_number,
        'status': booking.status,
        'court_id': booking.court_id,
        'facility_id': booking.facility_id,
        'sport_id': booking.sport_id,
        'customer_id': booking.customer_id,
        'scheduled_start': booking.scheduled_start,
        'scheduled_end': booking.scheduled_end,
        'total': booking.total_amount,
        'currency': booking.currency,
    }


def publish_booking_event(event_type: str, booking, **extra) -> bool:
    payload = booking_payload(booking)
    payload.update(extra)
    return event_publisher.publish(event_type, payload, facility_id=booking.facility_id)


def publish_maintenance_event(event_type: str, block, **extra) -> bool:
    payload = {
        'maintenance_id': block.id,
        'court_id': block.court_id,
        'status': block.status,
        'start': block.start,
        'end': block.end,
        'reason': block.reason,
    }
    payload.update(extra)
    return event_publisher.publish(event_type, payload, facility_id=block.facility_id)
