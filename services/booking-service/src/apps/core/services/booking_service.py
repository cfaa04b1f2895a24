# services/booking-service/src/apps/core/services/booking_service.py
"""
Booking Service

Admission control and status workflow for court reservations.

Admission is serialized per court: the court row is locked, the
availability check is repeated under that lock, and only then is the
booking inserted. Status changes are conditional updates keyed on the
status the caller saw, so concurrent writers cannot both win.
"""

import logging
from typing import Any, Dict, Optional, Tuple

from django.db import transaction
from django.db.models import QuerySet
from django.utils import timezone

from apps.core.models import Booking, Court, Customer, MatchRequest

from ..events import EventType, publish_booking_event
from .actor import Actor
from .availability_service import AvailabilityService
from .exceptions import (
    BookingNotFoundError,
    BookingStateError,
    InvalidResourceError,
    PermissionDeniedError,
    StaleTransitionError,
)
from .match_request_service import MatchRequestReconciler
from .parsers import parse_resource_id
from .pricing_service import PriceQuote, PricingService
from .reference_data import ReferenceDataStore
from .side_effects import CUSTOMER, STAFF, PlatformSideEffects, SideEffectPort, best_effort
from .time_range import TimeRange

logger = logging.getLogger(__name__)

PENDING_TIMEOUT_REASON = 'pending_timeout'

INVOICE_VOID_REASONS = {
    Booking.ActorRole.CUSTOMER: 'customer_cancelled',
    Booking.ActorRole.STAFF: 'staff_cancelled',
    Booking.ActorRole.ADMIN: 'staff_cancelled',
    Booking.ActorRole.SYSTEM: 'system_auto_timeout',
}


class BookingService:
    """
    Service for managing bookings.

    Handles:
    - Admission (create) with per-court serialization
    - Confirm / cancel / complete and other staff transitions
    - Pending-timeout expiry used by the sweeper
    - Post-commit side effects (audit, invoices, notifications)
    """

    def __init__(
        self,
        reference_data: ReferenceDataStore = None,
        availability: AvailabilityService = None,
        pricing: PricingService = None,
        side_effects: SideEffectPort = None,
        match_requests: MatchRequestReconciler = None
    ):
        self.reference_data = reference_data or ReferenceDataStore()
        self.availability = availability or AvailabilityService(self.reference_data)
        self.pricing = pricing or PricingService()
        self.side_effects = side_effects or PlatformSideEffects()
        self.match_requests = match_requests or MatchRequestReconciler()

    # ==========================================================================
    # Queries
    # ==========================================================================

    def get_booking(self, booking_id: Any) -> Booking:
        booking_uuid = parse_resource_id(booking_id, 'booking')
        try:
            return Booking.objects.select_related('court', 'customer').get(id=booking_uuid)
        except Booking.DoesNotExist:
            raise BookingNotFoundError(f"Booking {booking_uuid} not found")

    def bookings_visible_to(self, actor: Actor) -> QuerySet:
        queryset = Booking.objects.select_related('court', 'customer')
        if actor.role == Booking.ActorRole.ADMIN:
            return queryset
        if actor.is_staff:
            return queryset.filter(facility_id=actor.facility_id)
        return queryset.filter(customer_id=actor.id)

    def preview_quote(
        self,
        actor: Actor,
        court_id: Any,
        time_range: TimeRange,
        customer_id: Any = None,
        facility_id: Any = None,
        sport_id: Any = None,
        currency: str = None
    ) -> PriceQuote:
        """
        Quote without persisting anything.

        Customers are always quoted with their own membership tier.
        """
        court = self.reference_data.get_court(court_id)
        self._check_court_scope(court, facility_id, sport_id)

        customer = None
        if actor.is_customer:
            customer = Customer.objects.filter(id=actor.id).first()
        elif customer_id:
            customer = Customer.objects.filter(id=parse_resource_id(customer_id, 'customer')).first()

        return self.pricing.quote(court, time_range, customer=customer, currency=currency or None)

    # ==========================================================================
    # Admission
    # ==========================================================================

    def create_booking(
        self,
        actor: Actor,
        court_id: Any,
        time_range: TimeRange,
        customer_id: Any = None,
        facility_id: Any = None,
        sport_id: Any = None,
        confirm: bool = False,
        match_request_id: Any = None,
        customer_details: Dict[str, str] = None,
        **details
    ) -> Booking:
        """
        Admit a booking for ``time_range`` on the court.

        Raises BookingConflictError or MaintenanceConflictError when the
        slot is taken, including when a concurrent request took it first.
        """
        # 1. Resolve references
        court = self.availability.get_bookable_court(court_id)
        self._check_court_scope(court, facility_id, sport_id)

        if actor.is_staff and not actor.can_manage_facility(court.facility_id):
            raise PermissionDeniedError("Court belongs to another facility")
        if confirm and not actor.is_staff:
            raise PermissionDeniedError("Only staff can create confirmed bookings")

        customer = self._resolve_customer(actor, customer_id, customer_details)
        match_request = self._resolve_match_request(match_request_id, court)
        status = Booking.Status.CONFIRMED if confirm else Booking.Status.PENDING
        now = timezone.now()

        with transaction.atomic():
            # 2. Serialize writers on this court's timeline
            locked_court = Court.objects.select_for_update().get(id=court.id)
            if not locked_court.is_bookable:
                raise InvalidResourceError(f"Court is {locked_court.status} and does not accept bookings")

            # 3. Authoritative availability check
            self.availability.ensure_available(locked_court, time_range)

            # 4. Server-side quote
            quote = self.pricing.quote(locked_court, time_range, customer=customer)

            # 5. Persist
            booking = Booking.objects.create(
                court=locked_court,
                facility_id=locked_court.facility_id,
                sport_id=locked_court.sport_id,
                customer=customer,
                match_request=match_request,
                scheduled_start=time_range.start,
                scheduled_end=time_range.end,
                status=status,
                confirmed_at=now if confirm else None,
                confirmed_by=actor.id if confirm else None,
                pricing_snapshot=quote.to_dict(),
                total_amount=quote.total,
                currency=quote.currency,
                created_by=actor.id,
                created_by_role=actor.role,
                note=details.get('note') or '',
                contact_method=details.get('contact_method') or '',
                participants=[str(p) for p in details.get('participants') or []],
            )

            # 6. Match requests on the same slot
            self.match_requests.cancel_overlapping(booking)
            self.match_requests.sync_from_booking(booking)

            transaction.on_commit(lambda: self._after_create(booking, actor))

        logger.info(
            f"Created booking {booking.booking_number} on court {court.id} "
            f"for {time_range.start.strftime('%Y-%m-%d %H:%M')}",
            extra={'booking_id': str(booking.id), 'court_id': str(court.id), 'status': status}
        )
        return booking

    def _check_court_scope(self, court: Court, facility_id: Any, sport_id: Any) -> None:
        if facility_id and parse_resource_id(facility_id, 'facility') != court.facility_id:
            raise InvalidResourceError(
                "Court does not belong to the requested facility",
                details={'field': 'facility'}
            )
        if sport_id and parse_resource_id(sport_id, 'sport') != court.sport_id:
            raise InvalidResourceError(
                "Court is not set up for the requested sport",
                details={'field': 'sport'}
            )

    def _resolve_customer(
        self,
        actor: Actor,
        customer_id: Any,
        customer_details: Optional[Dict[str, str]]
    ) -> Customer:
        if actor.is_customer:
            if customer_id and parse_resource_id(customer_id, 'customer') != actor.id:
                raise PermissionDeniedError("Customers can only book for themselves")
            customer, _ = Customer.objects.get_or_create(id=actor.id)
            return customer

        if customer_id:
            customer_uuid = parse_resource_id(customer_id, 'customer')
            try:
                return Customer.objects.get(id=customer_uuid)
            except Customer.DoesNotExist:
                raise InvalidResourceError("Customer not found", details={'field': 'customer'}, missing=True)

        if customer_details:
            # Walk-in customer registered by staff
            return Customer.objects.create(
                name=(customer_details.get('name') or '').strip(),
                phone=(customer_details.get('phone') or '').strip(),
                email=(customer_details.get('email') or '').strip().lower(),
            )

        raise InvalidResourceError("A customer is required", details={'field': 'customer'})

    def _resolve_match_request(self, match_request_id: Any, court: Court) -> Optional[MatchRequest]:
        if not match_request_id:
            return None
        request_uuid = parse_resource_id(match_request_id, 'match_request')
        try:
            match_request = MatchRequest.objects.get(id=request_uuid)
        except MatchRequest.DoesNotExist:
            raise InvalidResourceError("Match request not found", details={'field': 'match_request'}, missing=True)
        if match_request.court_id != court.id:
            raise InvalidResourceError("Match request is for another court", details={'field': 'match_request'})
        return match_request

    def _after_create(self, booking: Booking, actor: Actor) -> None:
        action = 'staff.booking.create' if actor.is_staff else 'booking.create'
        best_effort(self.side_effects.audit, action, booking, actor, {'status': booking.status})
        best_effort(publish_booking_event, EventType.BOOKING_CREATED, booking, created_by=actor.id)

        audience = (STAFF, CUSTOMER) if actor.is_staff else (STAFF,)
        best_effort(self.side_effects.notify, EventType.BOOKING_CREATED, booking, audience)

        if booking.status == Booking.Status.CONFIRMED:
            best_effort(self.side_effects.ensure_invoice, booking)

    # ==========================================================================
    # Status Transitions
    # ==========================================================================

    def _transition(self, booking: Booking, target: str, **fields) -> Tuple[Booking, bool]:
        """
        Move ``booking`` from the status it was read with to ``target``.

        Returns (booking, changed). Cancelling an already cancelled
        booking is not an error and reports changed=False.
        """
        if booking.status == target == Booking.Status.CANCELLED:
            return booking, False

        if not booking.can_transition_to(target):
            raise BookingStateError(
                f"Cannot change booking from {booking.status} to {target}",
                details={'status': booking.status, 'target': target}
            )

        expected = booking.status
        updated = Booking.objects.filter(id=booking.id, status=expected).update(
            status=target,
            updated_at=timezone.now(),
            **fields
        )

        if not updated:
            current = Booking.objects.get(id=booking.id)
            if current.status == target == Booking.Status.CANCELLED:
                return current, False
            raise StaleTransitionError(
                f"Booking {booking.id} is now {current.status}; expected {expected}",
                details={'expected': expected, 'actual': current.status}
            )

        booking.refresh_from_db()
        logger.info(
            f"Booking {booking.booking_number}: {expected} -> {target}",
            extra={'booking_id': str(booking.id), 'court_id': str(booking.court_id)}
        )
        return booking, True

    def _authorize_staff(self, booking: Booking, actor: Actor) -> None:
        if actor.role == Booking.ActorRole.SYSTEM:
            return
        if not actor.can_manage_facility(booking.facility_id):
            raise PermissionDeniedError("Booking belongs to another facility")

    def confirm_booking(self, booking: Booking, actor: Actor) -> Booking:
        """Staff confirmation. The slot is already held, so no re-check."""
        self._authorize_staff(booking, actor)

        with transaction.atomic():
            booking, changed = self._transition(
                booking,
                Booking.Status.CONFIRMED,
                confirmed_at=timezone.now(),
                confirmed_by=actor.id,
            )
            self.match_requests.cancel_overlapping(booking)
            self.match_requests.sync_from_booking(booking)
            transaction.on_commit(lambda: self._after_confirm(booking, actor))

        return booking

    def _after_confirm(self, booking: Booking, actor: Actor) -> None:
        best_effort(self.side_effects.audit, 'booking.confirm', booking, actor, {'status': booking.status})
        best_effort(self.side_effects.ensure_invoice, booking)
        best_effort(publish_booking_event, EventType.BOOKING_CONFIRMED, booking, confirmed_by=actor.id)
        best_effort(self.side_effects.notify, EventType.BOOKING_CONFIRMED, booking, (CUSTOMER,))

    def customer_cancel(self, booking: Booking, actor: Actor, reason: str = '') -> Booking:
        """Customers may cancel their own bookings while still pending."""
        if booking.customer_id != actor.id:
            raise PermissionDeniedError("Booking belongs to another customer")
        if booking.status == Booking.Status.CANCELLED:
            return booking
        if not booking.can_customer_cancel:
            raise BookingStateError(
                "Booking can no longer be cancelled",
                code='booking_not_cancellable',
                details={'status': booking.status}
            )
        return self.cancel_booking(booking, actor, reason, Booking.CancelReason.CUSTOMER_CANCEL)

    def cancel_booking(
        self,
        booking: Booking,
        actor: Actor,
        reason: str = '',
        reason_code: str = None
    ) -> Booking:
        booking, _ = self._cancel(booking, actor, reason, reason_code)
        return booking

    def _cancel(
        self,
        booking: Booking,
        actor: Actor,
        reason: str = '',
        reason_code: str = None,
        event_type: str = EventType.BOOKING_CANCELLED
    ) -> Tuple[Booking, bool]:
        if actor.is_staff:
            self._authorize_staff(booking, actor)
        reason_code = reason_code or Booking.CancelReason.STAFF_CANCEL

        with transaction.atomic():
            booking, changed = self._transition(
                booking,
                Booking.Status.CANCELLED,
                cancelled_at=timezone.now(),
                cancelled_by=actor.id,
                cancelled_by_role=actor.role,
                cancel_reason_code=reason_code,
                cancellation_reason=reason or '',
            )
            if changed:
                self.match_requests.sync_from_booking(booking)
                transaction.on_commit(lambda: self._after_cancel(booking, actor, event_type))

        return booking, changed

    def _after_cancel(self, booking: Booking, actor: Actor, event_type: str) -> None:
        best_effort(
            self.side_effects.audit,
            'booking.cancel',
            booking,
            actor,
            {'status': booking.status, 'cancel_reason_code': booking.cancel_reason_code}
        )
        best_effort(self.side_effects.void_invoice, booking, INVOICE_VOID_REASONS.get(actor.role, 'cancelled'))
        best_effort(
            publish_booking_event,
            event_type,
            booking,
            cancelled_by=actor.id,
            cancelled_by_role=actor.role,
            reason_code=booking.cancel_reason_code,
        )

        if actor.role == Booking.ActorRole.SYSTEM:
            audience = (CUSTOMER, STAFF)
        elif actor.is_customer:
            audience = (STAFF,)
        else:
            audience = (CUSTOMER,)
        best_effort(self.side_effects.notify, event_type, booking, audience)

    def complete_booking(self, booking: Booking, actor: Actor) -> Booking:
        self._authorize_staff(booking, actor)
        if not booking.is_past:
            raise BookingStateError(
                "Booking cannot be completed before it ends",
                details={'end': booking.scheduled_end.isoformat()}
            )

        with transaction.atomic():
            booking, _ = self._transition(booking, Booking.Status.COMPLETED, completed_at=timezone.now())
            self.match_requests.sync_from_booking(booking)
            transaction.on_commit(
                lambda: self._after_status_change(booking, actor, EventType.BOOKING_COMPLETED)
            )
        return booking

    def change_status(self, booking: Booking, status: str, actor: Actor, reason: str = '') -> Booking:
        """Staff status change dispatched to the matching transition."""
        if status == Booking.Status.CONFIRMED:
            return self.confirm_booking(booking, actor)
        if status == Booking.Status.CANCELLED:
            return self.cancel_booking(booking, actor, reason, Booking.CancelReason.STAFF_CANCEL)
        if status == Booking.Status.COMPLETED:
            return self.complete_booking(booking, actor)
        if status not in Booking.Status.values:
            raise BookingStateError(f"Unknown status {status}", details={'target': status})

        self._authorize_staff(booking, actor)
        with transaction.atomic():
            booking, _ = self._transition(booking, status)
            self.match_requests.sync_from_booking(booking)
            transaction.on_commit(
                lambda: self._after_status_change(booking, actor, EventType.BOOKING_STATUS_CHANGED)
            )
        return booking

    def _after_status_change(self, booking: Booking, actor: Actor, event_type: str) -> None:
        best_effort(self.side_effects.audit, f"booking.{booking.status}", booking, actor, {'status': booking.status})
        best_effort(publish_booking_event, event_type, booking, changed_by=actor.id)
        best_effort(self.side_effects.notify, event_type, booking, (CUSTOMER,))

    # ==========================================================================
    # Expiry
    # ==========================================================================

    def expire_pending(self, booking: Booking) -> bool:
        """
        Cancel a pending booking on behalf of the system.

        Returns False when someone else already cancelled it; raises
        StaleTransitionError when a confirmation landed first.
        """
        _, changed = self._cancel(
            booking,
            Actor.system(),
            PENDING_TIMEOUT_REASON,
            Booking.CancelReason.AUTO_PENDING_TIMEOUT,
            event_type=EventType.BOOKING_EXPIRED,
        )
        return changed
