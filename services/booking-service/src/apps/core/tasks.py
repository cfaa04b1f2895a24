# services/booking-service/src/apps/core/tasks.py
"""
Booking Service Celery Tasks

Periodic background work, scheduled by Celery beat.
"""

import logging

from celery import shared_task

from .services import PendingBookingSweeper

logger = logging.getLogger(__name__)


@shared_task(name='booking.expire_pending_bookings')
def expire_pending_bookings():
    """
    Cancel pending bookings that were not confirmed in time.

    Runs every AUTO_CANCEL_SWEEP_INTERVAL_SECONDS; a non-positive
    AUTO_CANCEL_PENDING_MINUTES turns it into a no-op.
    """
    sweeper = PendingBookingSweeper()
    if not sweeper.enabled:
        logger.debug("Pending booking sweep disabled")
        return {'disabled': True}

    results = sweeper.sweep()
    logger.info(f"Pending booking sweep completed: {results}")
    return results
