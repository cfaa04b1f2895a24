# services/booking-service/src/apps/core/signals.py
"""
Django Signals for Booking Service

Drops cached reference data whenever a facility, sport or court row
is written or deleted.
"""

import logging

from django.db.models.signals import post_delete, post_save
from django.dispatch import receiver

from .models import Court, Facility, Sport
from .services import ReferenceDataStore

logger = logging.getLogger(__name__)

REFERENCE_KINDS = {
    Facility: 'facility',
    Sport: 'sport',
    Court: 'court',
}


@receiver(post_save, sender=Facility)
@receiver(post_save, sender=Sport)
@receiver(post_save, sender=Court)
@receiver(post_delete, sender=Facility)
@receiver(post_delete, sender=Sport)
@receiver(post_delete, sender=Court)
def invalidate_reference_data(sender, instance, **kwargs):
    """Invalidate the cached copy of the written row."""
    ReferenceDataStore().invalidate(REFERENCE_KINDS[sender], instance.pk)
