# services/booking-service/src/apps/core/models/match_request.py
"""
Match Request Model

Open requests from players looking for opponents on a court. Only the
parts that react to booking state live in this service.
"""

import uuid
from datetime import datetime

from django.db import models
from django.db.models import Q


class MatchRequest(models.Model):

    class Status(models.TextChoices):
        OPEN = 'open', 'Open'
        MATCHED = 'matched', 'Matched'
        CANCELLED = 'cancelled', 'Cancelled'
        EXPIRED = 'expired', 'Expired'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    court = models.ForeignKey(
        'core.Court',
        on_delete=models.CASCADE,
        related_name='match_requests'
    )
    facility = models.ForeignKey(
        'core.Facility',
        on_delete=models.CASCADE,
        related_name='match_requests'
    )
    sport = models.ForeignKey(
        'core.Sport',
        on_delete=models.CASCADE,
        related_name='match_requests'
    )
    creator = models.ForeignKey(
        'core.Customer',
        on_delete=models.CASCADE,
        related_name='match_requests'
    )

    desired_start = models.DateTimeField(db_index=True)
    desired_end = models.DateTimeField()

    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.OPEN,
        db_index=True
    )
    # Booking currently fulfilling this request
    booking = models.ForeignKey(
        'core.Booking',
        on_delete=models.SET_NULL,
        related_name='+',
        blank=True,
        null=True
    )
    booking_status = models.CharField(max_length=20, blank=True, default='')

    cancelled_at = models.DateTimeField(blank=True, null=True)
    cancelled_by_role = models.CharField(max_length=20, blank=True, default='')
    cancel_reason_code = models.CharField(max_length=50, blank=True, default='')
    cancelled_reason = models.CharField(max_length=255, blank=True, default='')
    conflict_booking = models.ForeignKey(
        'core.Booking',
        on_delete=models.SET_NULL,
        related_name='+',
        blank=True,
        null=True
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'match_requests'
        ordering = ['desired_start']
        indexes = [
            models.Index(fields=['court', 'status', 'desired_start']),
        ]

    def __str__(self):
        return f"Match request {self.id} ({self.status})"

    @classmethod
    def get_open_overlapping(
        cls,
        court_id: uuid.UUID,
        start: datetime,
        end: datetime,
        exclude_id: uuid.UUID = None
    ):
        queryset = cls.objects.filter(
            court_id=court_id,
            status=cls.Status.OPEN
        ).filter(
            Q(desired_start__lt=end) & Q(desired_end__gt=start)
        )
        if exclude_id:
            queryset = queryset.exclude(id=exclude_id)
        return queryset
