# services/booking-service/src/apps/core/services/side_effects.py
"""
Side Effects

Notifications, audit records and invoice calls that follow a booking
transition. None of them may fail or roll back the transition itself.
"""

import logging
from abc import ABC, abstractmethod
from decimal import Decimal, InvalidOperation
from typing import Any, Callable, Dict, Iterable, Optional

from asgiref.sync import async_to_sync
from django.conf import settings

from shared.common.clients import FinanceServiceClient, NotificationServiceClient

from ..events import EventType, event_publisher
from .actor import Actor

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger('audit')

CUSTOMER = 'customer'
STAFF = 'staff'


def best_effort(fn: Callable, *args, **kwargs) -> Optional[Any]:
    """Run ``fn`` and log instead of raising if it fails."""
    try:
        return fn(*args, **kwargs)
    except Exception:
        logger.exception(
            f"Side effect {getattr(fn, '__name__', fn)} failed",
            extra={'side_effect': getattr(fn, '__name__', str(fn))}
        )
        return None


class SideEffectPort(ABC):
    """Collaborators invoked after a booking transition commits."""

    @abstractmethod
    def notify(self, event_type: str, booking, audience: Iterable[str] = (STAFF,), **data):
        ...

    @abstractmethod
    def audit(self, action: str, booking, actor: Actor, changes: Dict[str, Any] = None):
        ...

    @abstractmethod
    def ensure_invoice(self, booking):
        ...

    @abstractmethod
    def void_invoice(self, booking, reason: str):
        ...


NOTIFICATION_TEXT = {
    EventType.BOOKING_CREATED: ('New booking', 'Booking {number} was created and awaits confirmation.'),
    EventType.BOOKING_CONFIRMED: ('Booking confirmed', 'Booking {number} is confirmed.'),
    EventType.BOOKING_CANCELLED: ('Booking cancelled', 'Booking {number} was cancelled.'),
    EventType.BOOKING_COMPLETED: ('Booking completed', 'Booking {number} is completed.'),
    EventType.BOOKING_EXPIRED: (
        'Booking expired',
        'Booking {number} was cancelled because it was not confirmed in time.'
    ),
    EventType.BOOKING_STATUS_CHANGED: ('Booking updated', 'Booking {number} is now {status}.'),
}


def invoice_amount(booking) -> Decimal:
    """Snapshot total, falling back to the subtotal."""
    snapshot = booking.pricing_snapshot or {}
    for key in ('total', 'subtotal'):
        value = snapshot.get(key)
        if value not in (None, ''):
            try:
                return Decimal(str(value))
            except InvalidOperation:
                continue
    return Decimal(booking.total_amount or 0)


class PlatformSideEffects(SideEffectPort):
    """
    Default side effects: notification and finance services over HTTP,
    audit records on the ``audit`` logger and the event bus.
    """

    def __init__(
        self,
        finance_client: FinanceServiceClient = None,
        notification_client: NotificationServiceClient = None
    ):
        self.finance = finance_client or FinanceServiceClient()
        self.notifications = notification_client or NotificationServiceClient()

    def notify(self, event_type: str, booking, audience: Iterable[str] = (STAFF,), **data):
        title, template = NOTIFICATION_TEXT.get(event_type, NOTIFICATION_TEXT[EventType.BOOKING_STATUS_CHANGED])
        message = template.format(number=booking.booking_number, status=booking.status)
        payload = {'booking_id': str(booking.id), 'event_type': event_type, **data}
        send = async_to_sync(self.notifications.send_notification)

        for recipient in audience:
            if recipient == CUSTOMER:
                send(title, message, user_id=str(booking.customer_id), data=payload)
            elif recipient == STAFF:
                send(
                    title,
                    message,
                    recipient_role=STAFF,
                    facility_id=str(booking.facility_id),
                    data=payload
                )

    def audit(self, action: str, booking, actor: Actor, changes: Dict[str, Any] = None):
        record = {
            'action': action,
            'resource': 'booking',
            'resource_id': str(booking.id),
            'actor_id': str(actor.id) if actor.id else None,
            'actor_role': actor.role,
            'changes': changes or {},
        }
        audit_logger.info(f"{action} {booking.id}", extra=record)
        event_publisher.publish(EventType.AUDIT_RECORDED, payload=record, facility_id=booking.facility_id)

    def ensure_invoice(self, booking):
        currency = (booking.currency or settings.DEFAULT_CURRENCY).upper()
        return async_to_sync(self.finance.upsert_booking_invoice)(str(booking.id), {
            'booking_id': str(booking.id),
            'booking_number': booking.booking_number,
            'customer_id': str(booking.customer_id),
            'facility_id': str(booking.facility_id),
            'amount': str(invoice_amount(booking)),
            'currency': currency,
            'due_at': booking.scheduled_end.isoformat(),
            'status': 'unpaid',
        })

    def void_invoice(self, booking, reason: str):
        return async_to_sync(self.finance.void_booking_invoice)(str(booking.id), reason)
