# services/booking-service/src/apps/core/models/maintenance.py
"""
Maintenance Block Model

Periods during which a court cannot be reserved.
"""

import uuid
from datetime import datetime

from django.db import models
from django.db.models import Q


class MaintenanceBlock(models.Model):
    """
    Maintenance window on a single court.

    Every status except ``cancelled`` blocks reservations. Overlaps with
    bookings and other blocks are rejected by MaintenanceService at write
    time, not by a database constraint.
    """

    class Status(models.TextChoices):
        SCHEDULED = 'scheduled', 'Scheduled'
        IN_PROGRESS = 'in_progress', 'In Progress'
        COMPLETED = 'completed', 'Completed'
        CANCELLED = 'cancelled', 'Cancelled'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    court = models.ForeignKey(
        'core.Court',
        on_delete=models.PROTECT,
        related_name='maintenance_blocks'
    )
    facility = models.ForeignKey(
        'core.Facility',
        on_delete=models.PROTECT,
        related_name='maintenance_blocks'
    )

    start = models.DateTimeField(db_index=True)
    end = models.DateTimeField()
    reason = models.CharField(max_length=255, default='Maintenance')

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.SCHEDULED,
        db_index=True
    )
    started_at = models.DateTimeField(blank=True, null=True)
    completed_at = models.DateTimeField(blank=True, null=True)
    cancelled_at = models.DateTimeField(blank=True, null=True)

    created_by = models.UUIDField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'maintenance_blocks'
        ordering = ['start']
        indexes = [
            models.Index(fields=['court', 'start', 'end']),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(end__gt=models.F('start')),
                name='valid_maintenance_times'
            ),
        ]

    def __str__(self):
        return f"{self.reason} on {self.court_id} ({self.start:%Y-%m-%d %H:%M})"

    @classmethod
    def get_blocking_statuses(cls) -> list:
        return [cls.Status.SCHEDULED, cls.Status.IN_PROGRESS, cls.Status.COMPLETED]

    @classmethod
    def get_conflicts(
        cls,
        court_id: uuid.UUID,
        start: datetime,
        end: datetime,
        exclude_block_id: uuid.UUID = None
    ):
        """Non-cancelled blocks on the court overlapping [start, end)."""
        queryset = cls.objects.filter(
            court_id=court_id,
            status__in=cls.get_blocking_statuses()
        ).filter(
            Q(start__lt=end) & Q(end__gt=start)
        )
        if exclude_block_id:
            queryset = queryset.exclude(id=exclude_block_id)
        return queryset

    def overlaps_with(self, start: datetime, end: datetime) -> bool:
        return self.start < end and self.end > start
