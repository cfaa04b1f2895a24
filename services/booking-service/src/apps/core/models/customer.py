# services/booking-service/src/apps/core/models/customer.py
"""
Customer Model

Local projection of the user record: contact details and the
membership tier used for pricing discounts.
"""

import uuid

from django.db import models
from django.utils import timezone


class Customer(models.Model):

    class MembershipTier(models.TextChoices):
        NONE = '', 'None'
        SILVER = 'silver', 'Silver'
        GOLD = 'gold', 'Gold'
        PLATINUM = 'platinum', 'Platinum'

    # Same id as the user account issued by the identity provider
    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    name = models.CharField(max_length=255, blank=True, default='')
    email = models.EmailField(blank=True, default='')
    phone = models.CharField(max_length=32, blank=True, default='')

    membership_tier = models.CharField(
        max_length=20,
        choices=MembershipTier.choices,
        blank=True,
        default=MembershipTier.NONE
    )
    membership_expires_at = models.DateTimeField(blank=True, null=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'customers'
        ordering = ['name']

    def __str__(self):
        return self.name or str(self.id)

    def active_membership_tier(self, at=None) -> str:
        """Return the tier if the membership is active at ``at``, else ''."""
        if not self.membership_tier:
            return ''
        at = at or timezone.now()
        if self.membership_expires_at and self.membership_expires_at <= at:
            return ''
        return self.membership_tier
