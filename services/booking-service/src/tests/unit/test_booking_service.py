# services/booking-service/src/tests/unit/test_booking_service.py
"""
Unit Tests for BookingService

Admission, status transitions and their post-commit side effects.
"""

import uuid
from datetime import datetime, timedelta, timezone as dt_timezone
from decimal import Decimal
from unittest.mock import patch

import pytest
from django.utils import timezone

from apps.core.models import Booking, Court, Customer
from apps.core.services import (
    Actor,
    BookingConflictError,
    BookingNotFoundError,
    BookingStateError,
    InvalidResourceError,
    MaintenanceConflictError,
    PermissionDeniedError,
    StaleTransitionError,
    TimeRange,
)

UTC = dt_timezone.utc


def next_week(hour, minute=0):
    day = (timezone.now() + timedelta(days=7)).date()
    return datetime(day.year, day.month, day.day, hour, minute, tzinfo=UTC)


@pytest.mark.django_db
class TestCreateBooking:

    def test_customer_booking_is_pending_with_server_quote(
        self, booking_service, court, customer_actor, create_pricing_profile
    ):
        create_pricing_profile(base_rate_per_hour=Decimal('200000'), tax_percent=Decimal('10'))

        booking = booking_service.create_booking(
            customer_actor,
            str(court.id),
            TimeRange(next_week(14), next_week(15, 30)),
        )

        assert booking.status == Booking.Status.PENDING
        assert booking.customer_id == customer_actor.id
        assert booking.facility_id == court.facility_id
        assert booking.booking_number.startswith('BK-')
        assert booking.total_amount == Decimal('330000.00')
        assert booking.pricing_snapshot['total'] == '330000.00'
        assert booking.created_by_role == 'customer'

    def test_without_profile_quotes_zero(self, booking_service, court, customer_actor):
        booking = booking_service.create_booking(
            customer_actor, court.id, TimeRange(next_week(9), next_week(10))
        )

        assert booking.total_amount == Decimal('0.00')
        assert booking.pricing_snapshot['base_rate_per_hour'] == '0.00'

    def test_malformed_pricing_rules_do_not_block_admission(
        self, booking_service, court, customer_actor, create_pricing_profile
    ):
        create_pricing_profile(
            base_rate_per_hour=Decimal('100000'),
            rules=[
                None,
                {'rate_type': 'fixed', 'value': '1', 'days_of_week': ['mon']},
                {'rate_type': 'fixed', 'value': '1', 'days_of_week': 1, 'start_time': 'noon'},
            ],
        )

        booking = booking_service.create_booking(
            customer_actor, court.id, TimeRange(next_week(9), next_week(10))
        )

        assert booking.status == Booking.Status.PENDING
        assert booking.total_amount == Decimal('100000.00')
        assert booking.pricing_snapshot['rule_applied'] == {}

    def test_overlapping_request_rejected(self, booking_service, court, customer_actor, create_customer):
        first = booking_service.create_booking(
            customer_actor, court.id, TimeRange(next_week(14), next_week(15))
        )
        other = create_customer(name='Minh Pham', email='minh@example.com')

        with pytest.raises(BookingConflictError) as exc_info:
            booking_service.create_booking(
                Actor(role='customer', id=other.id),
                court.id,
                TimeRange(next_week(14, 30), next_week(15, 30)),
            )

        assert exc_info.value.details['conflict']['id'] == str(first.id)
        first.refresh_from_db()
        assert first.status == Booking.Status.PENDING
        assert Booking.objects.filter(court=court).count() == 1

    def test_back_to_back_bookings_admitted(self, booking_service, court, customer_actor):
        booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(9), next_week(10)))
        booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(10), next_week(11)))

        assert Booking.objects.filter(court=court).count() == 2

    def test_slot_freed_by_cancellation(self, booking_service, court, customer_actor, create_booking):
        create_booking(
            scheduled_start=next_week(9),
            scheduled_end=next_week(10),
            status=Booking.Status.CANCELLED,
        )

        booking = booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(9), next_week(10)))

        assert booking.status == Booking.Status.PENDING

    def test_no_overlapping_active_bookings_after_many_requests(self, booking_service, court, customer_actor):
        starts = [9, 9, 10, 9, 11, 10, 12]
        for hour in starts:
            try:
                booking_service.create_booking(
                    customer_actor, court.id, TimeRange(next_week(hour), next_week(hour + 1, 30))
                )
            except BookingConflictError:
                pass

        active = list(Booking.objects.filter(court=court, status__in=Booking.get_active_statuses()))
        for i, a in enumerate(active):
            for b in active[i + 1:]:
                assert not (a.scheduled_start < b.scheduled_end and a.scheduled_end > b.scheduled_start)

    def test_maintenance_blocks_admission(self, booking_service, court, customer_actor, create_maintenance):
        create_maintenance(start=next_week(8), end=next_week(12))

        with pytest.raises(MaintenanceConflictError):
            booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(9), next_week(10)))

    def test_booking_committed_before_lock_is_seen(self, booking_service, court, customer_actor, create_booking):
        real_get_court = booking_service.availability.get_bookable_court

        def get_court_then_lose_race(court_id):
            found = real_get_court(court_id)
            create_booking(scheduled_start=next_week(9), scheduled_end=next_week(10))
            return found

        with patch.object(
            booking_service.availability, 'get_bookable_court', side_effect=get_court_then_lose_race
        ):
            with pytest.raises(BookingConflictError):
                booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(9), next_week(10)))

        assert Booking.objects.filter(court=court).count() == 1

    def test_admission_locks_court_row(self, booking_service, court, customer_actor):
        with patch.object(Court.objects, 'select_for_update', wraps=Court.objects.select_for_update) as lock:
            booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(9), next_week(10)))

        lock.assert_called_once_with()

    def test_unknown_court(self, booking_service, customer_actor):
        with pytest.raises(InvalidResourceError) as exc_info:
            booking_service.create_booking(customer_actor, uuid.uuid4(), TimeRange(next_week(9), next_week(10)))

        assert exc_info.value.missing is True

    def test_inactive_court(self, booking_service, create_court, customer_actor):
        court = create_court(status=Court.Status.INACTIVE)

        with pytest.raises(InvalidResourceError):
            booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(9), next_week(10)))

    def test_facility_mismatch(self, booking_service, court, customer_actor):
        with pytest.raises(InvalidResourceError):
            booking_service.create_booking(
                customer_actor,
                court.id,
                TimeRange(next_week(9), next_week(10)),
                facility_id=uuid.uuid4(),
            )

    def test_customer_cannot_book_for_someone_else(self, booking_service, court, customer_actor):
        with pytest.raises(PermissionDeniedError):
            booking_service.create_booking(
                customer_actor,
                court.id,
                TimeRange(next_week(9), next_week(10)),
                customer_id=uuid.uuid4(),
            )

    def test_customer_record_created_on_first_booking(self, booking_service, court):
        caller = uuid.uuid4()

        booking_service.create_booking(
            Actor(role='customer', id=caller), court.id, TimeRange(next_week(9), next_week(10))
        )

        assert Customer.objects.filter(id=caller).exists()

    def test_customer_cannot_confirm(self, booking_service, court, customer_actor):
        with pytest.raises(PermissionDeniedError):
            booking_service.create_booking(
                customer_actor, court.id, TimeRange(next_week(9), next_week(10)), confirm=True
            )

    def test_staff_confirmed_walk_in(
        self, booking_service, side_effects, court, staff_actor, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks(execute=True):
            booking = booking_service.create_booking(
                staff_actor,
                court.id,
                TimeRange(next_week(18), next_week(19)),
                confirm=True,
                customer_details={'name': 'Walk-in Guest', 'phone': '0901234567'},
            )

        assert booking.status == Booking.Status.CONFIRMED
        assert booking.confirmed_by == staff_actor.id
        assert booking.customer.name == 'Walk-in Guest'
        assert booking.created_by_role == 'staff'
        side_effects.ensure_invoice.assert_called_once_with(booking)
        assert side_effects.audit.call_args[0][0] == 'staff.booking.create'

    def test_staff_of_other_facility_forbidden(self, booking_service, court, customer):
        outsider = Actor(role='staff', id=uuid.uuid4(), facility_id=uuid.uuid4())

        with pytest.raises(PermissionDeniedError):
            booking_service.create_booking(
                outsider, court.id, TimeRange(next_week(9), next_week(10)), customer_id=customer.id
            )

    def test_staff_requires_customer(self, booking_service, court, staff_actor):
        with pytest.raises(InvalidResourceError):
            booking_service.create_booking(staff_actor, court.id, TimeRange(next_week(9), next_week(10)))

    def test_side_effects_only_after_commit(
        self, booking_service, side_effects, court, customer_actor, django_capture_on_commit_callbacks
    ):
        with django_capture_on_commit_callbacks() as callbacks:
            booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(9), next_week(10)))

            side_effects.notify.assert_not_called()

        assert len(callbacks) == 1
        callbacks[0]()
        side_effects.notify.assert_called_once()
        side_effects.ensure_invoice.assert_not_called()

    def test_failing_side_effect_does_not_fail_booking(
        self, booking_service, side_effects, court, customer_actor, django_capture_on_commit_callbacks
    ):
        side_effects.notify.side_effect = RuntimeError('notification service down')

        with django_capture_on_commit_callbacks(execute=True):
            booking = booking_service.create_booking(
                customer_actor, court.id, TimeRange(next_week(9), next_week(10))
            )

        assert Booking.objects.filter(id=booking.id).exists()
        side_effects.audit.assert_called_once()


@pytest.mark.django_db
class TestTransitions:

    def test_confirm_pending(
        self, booking_service, side_effects, create_booking, staff_actor, django_capture_on_commit_callbacks
    ):
        booking = create_booking()

        with django_capture_on_commit_callbacks(execute=True):
            booking = booking_service.confirm_booking(booking, staff_actor)

        assert booking.status == Booking.Status.CONFIRMED
        assert booking.confirmed_at is not None
        side_effects.ensure_invoice.assert_called_once()
        side_effects.notify.assert_called_once()

    def test_confirm_requires_facility_staff(self, booking_service, create_booking):
        booking = create_booking()
        outsider = Actor(role='staff', id=uuid.uuid4(), facility_id=uuid.uuid4())

        with pytest.raises(PermissionDeniedError):
            booking_service.confirm_booking(booking, outsider)

    def test_admin_can_confirm_anywhere(self, booking_service, create_booking):
        booking = create_booking()

        booking = booking_service.confirm_booking(booking, Actor(role='admin', id=uuid.uuid4()))

        assert booking.status == Booking.Status.CONFIRMED

    def test_customer_cancel_pending(
        self, booking_service, side_effects, create_booking, customer_actor, django_capture_on_commit_callbacks
    ):
        booking = create_booking()

        with django_capture_on_commit_callbacks(execute=True):
            booking = booking_service.customer_cancel(booking, customer_actor, 'Rain')

        assert booking.status == Booking.Status.CANCELLED
        assert booking.cancel_reason_code == Booking.CancelReason.CUSTOMER_CANCEL
        assert booking.cancelled_by_role == 'customer'
        assert booking.cancellation_reason == 'Rain'
        side_effects.void_invoice.assert_called_once_with(booking, 'customer_cancelled')

    def test_customer_cannot_cancel_confirmed(self, booking_service, create_booking, customer_actor):
        booking = create_booking(status=Booking.Status.CONFIRMED)

        with pytest.raises(BookingStateError) as exc_info:
            booking_service.customer_cancel(booking, customer_actor)

        assert exc_info.value.code == 'booking_not_cancellable'

    def test_customer_cannot_cancel_others_booking(self, booking_service, create_booking):
        booking = create_booking()

        with pytest.raises(PermissionDeniedError):
            booking_service.customer_cancel(booking, Actor(role='customer', id=uuid.uuid4()))

    def test_cancel_is_idempotent(
        self, booking_service, side_effects, create_booking, staff_actor, django_capture_on_commit_callbacks
    ):
        booking = create_booking()
        booking_service.cancel_booking(booking, staff_actor, 'Court flooded')
        stale = Booking.objects.get(id=booking.id)

        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            again = booking_service.cancel_booking(stale, staff_actor, 'Second try')

        assert again.status == Booking.Status.CANCELLED
        assert again.cancellation_reason == 'Court flooded'
        assert callbacks == []
        side_effects.void_invoice.assert_not_called()

    def test_concurrent_cancel_loser_is_noop(self, booking_service, create_booking, staff_actor, customer_actor):
        booking = create_booking()
        stale = Booking.objects.get(id=booking.id)
        booking_service.cancel_booking(booking, staff_actor, 'Staff first')

        result = booking_service.customer_cancel(stale, customer_actor)

        assert result.status == Booking.Status.CANCELLED
        assert result.cancel_reason_code == Booking.CancelReason.STAFF_CANCEL

    def test_confirm_after_cancel_is_stale(self, booking_service, create_booking, staff_actor, customer_actor):
        booking = create_booking()
        stale = Booking.objects.get(id=booking.id)
        booking_service.customer_cancel(booking, customer_actor)

        with pytest.raises(StaleTransitionError):
            booking_service.confirm_booking(stale, staff_actor)

    def test_complete_requires_past_end(self, booking_service, create_booking, staff_actor):
        booking = create_booking(status=Booking.Status.CONFIRMED)

        with pytest.raises(BookingStateError):
            booking_service.complete_booking(booking, staff_actor)

    def test_complete_past_booking(self, booking_service, create_booking, staff_actor):
        start = timezone.now() - timedelta(hours=3)
        booking = create_booking(
            status=Booking.Status.CONFIRMED,
            scheduled_start=start,
            scheduled_end=start + timedelta(hours=1),
        )

        booking = booking_service.complete_booking(booking, staff_actor)

        assert booking.status == Booking.Status.COMPLETED
        assert booking.completed_at is not None

    @pytest.mark.parametrize('current,target', [
        (Booking.Status.PENDING, Booking.Status.COMPLETED),
        (Booking.Status.PENDING, Booking.Status.NO_SHOW),
        (Booking.Status.CANCELLED, Booking.Status.CONFIRMED),
        (Booking.Status.REFUNDED, Booking.Status.CANCELLED),
    ])
    def test_disallowed_transitions(self, booking_service, create_booking, staff_actor, current, target):
        booking = create_booking(status=current)

        with pytest.raises(BookingStateError):
            booking_service.change_status(booking, target, staff_actor)

    def test_no_show_and_refund(self, booking_service, create_booking, staff_actor):
        booking = create_booking(status=Booking.Status.CONFIRMED)

        booking = booking_service.change_status(booking, Booking.Status.NO_SHOW, staff_actor)
        assert booking.status == Booking.Status.NO_SHOW

        cancelled = create_booking(
            status=Booking.Status.CANCELLED,
            scheduled_start=booking.scheduled_end,
            scheduled_end=booking.scheduled_end + timedelta(hours=1),
        )
        cancelled = booking_service.change_status(cancelled, Booking.Status.REFUNDED, staff_actor)
        assert cancelled.status == Booking.Status.REFUNDED

    def test_snapshot_preserved_on_cancel(self, booking_service, court, customer_actor, create_pricing_profile):
        create_pricing_profile(base_rate_per_hour=Decimal('120000'))
        booking = booking_service.create_booking(customer_actor, court.id, TimeRange(next_week(9), next_week(10)))
        snapshot = dict(booking.pricing_snapshot)

        booking = booking_service.customer_cancel(booking, customer_actor)

        assert booking.pricing_snapshot == snapshot

    def test_get_booking_not_found(self, booking_service, db):
        with pytest.raises(BookingNotFoundError):
            booking_service.get_booking(uuid.uuid4())


@pytest.mark.django_db
class TestVisibility:

    def test_customer_sees_own(self, booking_service, create_booking, create_customer, customer_actor):
        own = create_booking()
        create_booking(
            customer=create_customer(name='Other'),
            scheduled_start=own.scheduled_end,
            scheduled_end=own.scheduled_end + timedelta(hours=1),
        )

        assert list(booking_service.bookings_visible_to(customer_actor)) == [own]

    def test_staff_sees_facility(self, booking_service, create_booking, staff_actor):
        booking = create_booking()

        assert list(booking_service.bookings_visible_to(staff_actor)) == [booking]
        outsider = Actor(role='staff', id=uuid.uuid4(), facility_id=uuid.uuid4())
        assert list(booking_service.bookings_visible_to(outsider)) == []
