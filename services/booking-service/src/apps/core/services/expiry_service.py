# services/booking-service/src/apps/core/services/expiry_service.py
"""
Pending Booking Sweeper

Cancels bookings left pending past the configured timeout so their
slot is released.
"""

import logging
from datetime import datetime, timedelta
from typing import Dict

from django.conf import settings
from django.utils import timezone

from apps.core.models import Booking

from .booking_service import BookingService
from .exceptions import StaleTransitionError

logger = logging.getLogger(__name__)


class PendingBookingSweeper:

    def __init__(
        self,
        booking_service: BookingService = None,
        timeout_minutes: int = None,
        batch_size: int = None
    ):
        self.booking_service = booking_service or BookingService()
        self.timeout_minutes = (
            settings.AUTO_CANCEL_PENDING_MINUTES if timeout_minutes is None else timeout_minutes
        )
        self.batch_size = batch_size or settings.AUTO_CANCEL_BATCH_SIZE

    @property
    def enabled(self) -> bool:
        return self.timeout_minutes > 0

    def sweep(self, now: datetime = None) -> Dict[str, int]:
        """
        Run one cycle.

        Each booking goes through the normal cancel path guarded by its
        pending status, so a confirmation that lands first wins and the
        booking is skipped. One failure does not stop the batch.
        """
        if not self.enabled:
            return {'disabled': True}

        now = now or timezone.now()
        cutoff = now - timedelta(minutes=self.timeout_minutes)
        candidates = list(Booking.get_expired_pending(cutoff, self.batch_size))

        cancelled = 0
        skipped = 0
        errors = 0

        for booking in candidates:
            try:
                if self.booking_service.expire_pending(booking):
                    cancelled += 1
                else:
                    skipped += 1
            except StaleTransitionError as e:
                skipped += 1
                logger.info(f"Skipped expiring booking {booking.id}: {e}")
            except Exception as e:
                errors += 1
                logger.error(
                    f"Failed to expire booking {booking.id}: {e}",
                    exc_info=True,
                    extra={'booking_id': str(booking.id)}
                )

        if candidates:
            logger.info(
                f"Pending sweep: {cancelled} cancelled, {skipped} skipped, {errors} errors",
                extra={'cutoff': cutoff.isoformat()}
            )

        return {
            'scanned': len(candidates),
            'cancelled': cancelled,
            'skipped': skipped,
            'errors': errors,
        }
