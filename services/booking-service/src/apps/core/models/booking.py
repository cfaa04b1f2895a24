# services/booking-service/src/apps/core/models/booking.py
"""
Booking Model

Court reservations and their status workflow.
"""

import uuid
from datetime import datetime

from django.db import models
from django.db.models import Q
from django.utils import timezone


class Booking(models.Model):
    """
    Reservation of one court for a half-open time range.

    The price snapshot is computed server-side at creation and never
    rewritten afterwards; cancellation keeps it for audit.
    """

    class Status(models.TextChoices):
        PENDING = 'pending', 'Pending'
        CONFIRMED = 'confirmed', 'Confirmed'
        CANCELLED = 'cancelled', 'Cancelled'
        COMPLETED = 'completed', 'Completed'
        NO_SHOW = 'no_show', 'No Show'
        REFUNDED = 'refunded', 'Refunded'

    class ActorRole(models.TextChoices):
        CUSTOMER = 'customer', 'Customer'
        STAFF = 'staff', 'Staff'
        ADMIN = 'admin', 'Admin'
        SYSTEM = 'system', 'System'

    class CancelReason(models.TextChoices):
        CUSTOMER_CANCEL = 'customer_cancel', 'Cancelled by customer'
        STAFF_CANCEL = 'staff_cancel', 'Cancelled by staff'
        AUTO_PENDING_TIMEOUT = 'auto_pending_timeout', 'Not confirmed in time'

    # Allowed status changes; anything missing is terminal.
    TRANSITIONS = {
        Status.PENDING: {Status.CONFIRMED, Status.CANCELLED},
        Status.CONFIRMED: {Status.COMPLETED, Status.CANCELLED, Status.NO_SHOW},
        Status.CANCELLED: {Status.REFUNDED},
        Status.COMPLETED: {Status.REFUNDED},
    }

    # Primary Key
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    booking_number = models.CharField(max_length=24, unique=True, db_index=True)

    # Resources
    court = models.ForeignKey(
        'core.Court',
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    facility = models.ForeignKey(
        'core.Facility',
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    sport = models.ForeignKey(
        'core.Sport',
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    customer = models.ForeignKey(
        'core.Customer',
        on_delete=models.PROTECT,
        related_name='bookings'
    )
    match_request = models.ForeignKey(
        'core.MatchRequest',
        on_delete=models.SET_NULL,
        related_name='bookings',
        blank=True,
        null=True
    )

    # Scheduled Time
    scheduled_start = models.DateTimeField(db_index=True)
    scheduled_end = models.DateTimeField()

    # Status
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.PENDING,
        db_index=True
    )
    confirmed_at = models.DateTimeField(blank=True, null=True)
    confirmed_by = models.UUIDField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)

    # Cancellation
    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancelled_by = models.UUIDField(blank=True, null=True)
    cancelled_by_role = models.CharField(
        max_length=20,
        choices=ActorRole.choices,
        blank=True,
        default=''
    )
    cancel_reason_code = models.CharField(max_length=50, blank=True, default='')
    cancellation_reason = models.TextField(blank=True, default='')

    # Pricing
    pricing_snapshot = models.JSONField(default=dict)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    currency = models.CharField(max_length=3, default='VND')

    # Details
    participants = models.JSONField(default=list, blank=True)
    contact_method = models.CharField(max_length=50, blank=True, default='')
    note = models.TextField(blank=True, default='')

    # Audit
    created_at = models.DateTimeField(auto_now_add=True)
    created_by = models.UUIDField(blank=True, null=True)
    created_by_role = models.CharField(
        max_length=20,
        choices=ActorRole.choices,
        default=ActorRole.CUSTOMER
    )
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'bookings'
        ordering = ['scheduled_start']
        indexes = [
            models.Index(fields=['court', 'scheduled_start', 'scheduled_end']),
            models.Index(fields=['customer', 'scheduled_start']),
            models.Index(fields=['status', 'scheduled_start']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(scheduled_end__gt=models.F('scheduled_start')),
                name='valid_booking_times'
            ),
        ]

    def __str__(self):
        return f"{self.booking_number}: {self.scheduled_start.strftime('%Y-%m-%d %H:%M')}"

    def save(self, *args, **kwargs):
        if not self.booking_number:
            self.booking_number = self._generate_booking_number()
        super().save(*args, **kwargs)

    def _generate_booking_number(self) -> str:
        """BK-<date>-<first hex digits of the id>; no counter to race on."""
        date_str = timezone.now().strftime('%Y%m%d')
        return f"BK-{date_str}-{self.id.hex[:8].upper()}"

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def duration_minutes(self) -> int:
        delta = self.scheduled_end - self.scheduled_start
        return max(0, int((delta.total_seconds() + 30) // 60))

    @property
    def is_past(self) -> bool:
        return self.scheduled_end <= timezone.now()

    @property
    def holds_slot(self) -> bool:
        return self.status in self.get_active_statuses()

    @property
    def can_customer_cancel(self) -> bool:
        return self.status == self.Status.PENDING

    def can_transition_to(self, status: str) -> bool:
        return status in self.TRANSITIONS.get(self.status, set())

    # ==========================================================================
    # Class Methods
    # ==========================================================================

    @classmethod
    def get_active_statuses(cls) -> list:
        """Statuses that occupy the court's timeline."""
        return [
            cls.Status.PENDING,
            cls.Status.CONFIRMED,
            cls.Status.COMPLETED,
        ]

    @classmethod
    def get_conflicts(
        cls,
        court_id: uuid.UUID,
        start: datetime,
        end: datetime,
        exclude_booking_id: uuid.UUID = None
    ):
        """Slot-holding bookings on the court overlapping [start, end)."""
        queryset = cls.objects.filter(
            court_id=court_id,
            status__in=cls.get_active_statuses()
        ).filter(
            Q(scheduled_start__lt=end) & Q(scheduled_end__gt=start)
        )

        if exclude_booking_id:
            queryset = queryset.exclude(id=exclude_booking_id)

        return queryset

    @classmethod
    def get_expired_pending(cls, cutoff: datetime, limit: int = 100):
        """Pending bookings whose start is at or before ``cutoff``."""
        return cls.objects.filter(
            status=cls.Status.PENDING,
            scheduled_start__lte=cutoff
        ).order_by('scheduled_start')[:limit]
