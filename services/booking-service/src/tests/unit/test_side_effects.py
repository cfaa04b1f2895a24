# services/booking-service/src/tests/unit/test_side_effects.py
"""
Unit Tests for booking side effects
"""

from datetime import timedelta
from decimal import Decimal
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from django.utils import timezone

from apps.core.events import EventType
from apps.core.models import Booking
from apps.core.services import Actor, BookingService, PlatformSideEffects, TimeRange, best_effort
from apps.core.services.side_effects import invoice_amount


@pytest.fixture
def finance_client():
    client = MagicMock()
    client.upsert_booking_invoice = AsyncMock(return_value={'id': 'inv-1'})
    client.void_booking_invoice = AsyncMock(return_value={})
    return client


@pytest.fixture
def notification_client():
    client = MagicMock()
    client.send_notification = AsyncMock(return_value={})
    return client


@pytest.fixture
def platform(finance_client, notification_client):
    return PlatformSideEffects(finance_client=finance_client, notification_client=notification_client)


class TestBestEffort:

    def test_returns_result(self):
        assert best_effort(lambda x: x * 2, 21) == 42

    def test_failure_is_logged_not_raised(self):
        def explode():
            raise RuntimeError('finance service down')

        with patch('apps.core.services.side_effects.logger') as logger:
            assert best_effort(explode) is None

        logger.exception.assert_called_once()
        assert 'explode' in logger.exception.call_args[0][0]


class TestInvoiceAmount:

    def test_prefers_snapshot_total(self):
        booking = MagicMock(pricing_snapshot={'total': '330000.00', 'subtotal': '300000.00'}, total_amount=0)

        assert invoice_amount(booking) == Decimal('330000.00')

    def test_falls_back_to_subtotal(self):
        booking = MagicMock(pricing_snapshot={'total': None, 'subtotal': '300000'}, total_amount=0)

        assert invoice_amount(booking) == Decimal('300000')

    def test_falls_back_to_stored_total(self):
        booking = MagicMock(pricing_snapshot={}, total_amount=Decimal('120000'))

        assert invoice_amount(booking) == Decimal('120000')


@pytest.mark.django_db
class TestPlatformSideEffects:

    def test_ensure_invoice_sends_snapshot_total(self, platform, finance_client, create_booking):
        booking = create_booking(
            pricing_snapshot={'total': '330000.00'},
            total_amount=Decimal('330000.00'),
            currency='vnd',
        )

        platform.ensure_invoice(booking)

        booking_id, data = finance_client.upsert_booking_invoice.await_args[0]
        assert booking_id == str(booking.id)
        assert data['amount'] == '330000.00'
        assert data['currency'] == 'VND'
        assert data['due_at'] == booking.scheduled_end.isoformat()

    def test_void_invoice(self, platform, finance_client, create_booking):
        booking = create_booking()

        platform.void_invoice(booking, 'customer_cancelled')

        finance_client.void_booking_invoice.assert_awaited_once_with(str(booking.id), 'customer_cancelled')

    def test_notify_customer_and_staff(self, platform, notification_client, create_booking):
        booking = create_booking()

        platform.notify(EventType.BOOKING_EXPIRED, booking, ('customer', 'staff'))

        calls = notification_client.send_notification.await_args_list
        assert len(calls) == 2
        assert calls[0].kwargs['user_id'] == str(booking.customer_id)
        assert calls[1].kwargs['recipient_role'] == 'staff'
        assert calls[1].kwargs['facility_id'] == str(booking.facility_id)
        assert calls[0].args[0] == 'Booking expired'

    def test_audit_logs_and_publishes(self, platform, create_booking):
        booking = create_booking()
        actor = Actor(role='staff', id=booking.customer_id)

        with patch('apps.core.services.side_effects.event_publisher') as publisher:
            platform.audit('booking.confirm', booking, actor, {'status': 'confirmed'})

        publisher.publish.assert_called_once()
        assert publisher.publish.call_args[0][0] == EventType.AUDIT_RECORDED
        assert publisher.publish.call_args.kwargs['payload']['actor_role'] == 'staff'

    def test_failed_side_effect_does_not_undo_booking(
        self, court, customer_actor, finance_client, notification_client, django_capture_on_commit_callbacks
    ):
        notification_client.send_notification.side_effect = RuntimeError('unreachable')
        service = BookingService(side_effects=PlatformSideEffects(finance_client, notification_client))
        start = (timezone.now() + timedelta(days=2)).replace(minute=0, second=0, microsecond=0)

        with django_capture_on_commit_callbacks(execute=True):
            booking = service.create_booking(customer_actor, court.id, TimeRange(start, start + timedelta(hours=1)))

        assert Booking.objects.filter(id=booking.id, status=Booking.Status.PENDING).exists()
        notification_client.send_notification.assert_awaited()
