# services/booking-service/src/apps/core/models/facility.py
"""
Reference Data Models

Facilities, sports and the courts customers reserve.
"""

import uuid

from django.conf import settings
from django.db import models


class Facility(models.Model):
    """A venue operated by one tenant. Staff members belong to a facility."""

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255)
    address = models.TextField(blank=True, default='')
    timezone = models.CharField(max_length=64, blank=True, default='')
    is_active = models.BooleanField(default=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'facilities'
        ordering = ['name']
        verbose_name_plural = 'facilities'

    def __str__(self):
        return self.name

    @property
    def local_timezone(self) -> str:
        """Zone used to read wall-clock times for pricing."""
        return self.timezone or settings.DEFAULT_FACILITY_TIMEZONE


class Sport(models.Model):
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=100)
    code = models.SlugField(max_length=50, unique=True)

    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        db_table = 'sports'
        ordering = ['name']

    def __str__(self):
        return self.name


class Court(models.Model):
    """
    A bookable court.

    Only active courts and courts flagged for maintenance accept new
    reservations; inactive and deleted courts keep their history.
    """

    class Status(models.TextChoices):
        ACTIVE = 'active', 'Active'
        INACTIVE = 'inactive', 'Inactive'
        MAINTENANCE = 'maintenance', 'Maintenance'
        DELETED = 'deleted', 'Deleted'

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    facility = models.ForeignKey(
        Facility,
        on_delete=models.PROTECT,
        related_name='courts'
    )
    sport = models.ForeignKey(
        Sport,
        on_delete=models.PROTECT,
        related_name='courts'
    )
    name = models.CharField(max_length=100)
    status = models.CharField(
        max_length=20,
        choices=Status.choices,
        default=Status.ACTIVE,
        db_index=True
    )

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'courts'
        ordering = ['facility', 'name']
        indexes = [
            models.Index(fields=['facility', 'status']),
        ]

    def __str__(self):
        return f"{self.name} ({self.facility_id})"

    @classmethod
    def get_bookable_statuses(cls) -> list:
        return [cls.Status.ACTIVE, cls.Status.MAINTENANCE]

    @property
    def is_bookable(self) -> bool:
        return self.status in self.get_bookable_statuses()
