# services/booking-service/src/apps/core/services/match_request_service.py
"""
Match Request Reconciliation

Keeps open match requests consistent with the bookings on the same
court. Runs inside the booking transaction.
"""

import logging
from typing import List, Optional

from django.utils import timezone

from apps.core.models import Booking, MatchRequest

logger = logging.getLogger(__name__)

OVERLAPPED_BOOKING = 'overlapped_booking'
AUTO_CONFLICT = 'auto_conflict'


class MatchRequestReconciler:

    def cancel_overlapping(self, booking: Booking) -> List[MatchRequest]:
        """
        Cancel open requests on the booking's court whose desired range
        overlaps it. The request the booking fulfils is left alone.
        """
        now = timezone.now()
        requests = list(
            MatchRequest.get_open_overlapping(
                booking.court_id,
                booking.scheduled_start,
                booking.scheduled_end,
                exclude_id=booking.match_request_id,
            )
        )
        if not requests:
            return []

        MatchRequest.objects.filter(
            id__in=[r.id for r in requests],
            status=MatchRequest.Status.OPEN
        ).update(
            status=MatchRequest.Status.CANCELLED,
            cancelled_at=now,
            cancelled_by_role=Booking.ActorRole.SYSTEM,
            cancel_reason_code=OVERLAPPED_BOOKING,
            cancelled_reason=AUTO_CONFLICT,
            conflict_booking=booking,
            updated_at=now,
        )
        logger.info(
            f"Cancelled {len(requests)} match request(s) overlapping booking {booking.id}",
            extra={'booking_id': str(booking.id), 'court_id': str(booking.court_id)}
        )
        return requests

    def sync_from_booking(self, booking: Booking) -> Optional[MatchRequest]:
        """
        Mirror the booking status on its match request.

        A customer cancellation ends the request. A staff or system
        cancellation reopens it while its desired start is still ahead.
        """
        if not booking.match_request_id:
            return None

        try:
            match_request = MatchRequest.objects.select_for_update().get(id=booking.match_request_id)
        except MatchRequest.DoesNotExist:
            return None

        now = timezone.now()
        match_request.booking_status = booking.status

        if booking.status == Booking.Status.CANCELLED:
            reopen = (
                booking.cancelled_by_role != Booking.ActorRole.CUSTOMER
                and match_request.desired_start > now
            )
            if reopen:
                match_request.status = MatchRequest.Status.OPEN
                match_request.booking = None
                logger.info(f"Reopened match request {match_request.id}")
            else:
                match_request.status = MatchRequest.Status.CANCELLED
                match_request.cancelled_at = now
                match_request.cancelled_by_role = booking.cancelled_by_role
                match_request.cancel_reason_code = booking.cancel_reason_code
        elif booking.status in Booking.get_active_statuses():
            match_request.status = MatchRequest.Status.MATCHED
            match_request.booking = booking

        match_request.save()
        return match_request
