# services/booking-service/src/apps/core/services/maintenance_service.py
"""
Maintenance Service

Scheduling and lifecycle of court maintenance blocks.
"""

import logging
from typing import Any, List

from django.db import transaction
from django.utils import timezone

from apps.core.models import Booking, Court, MaintenanceBlock

from ..events import EventType, publish_maintenance_event
from .actor import Actor
from .availability_service import NOT_AVAILABLE_MESSAGE, describe_booking, describe_maintenance
from .exceptions import (
    BookingConflictError,
    BookingNotFoundError,
    BookingStateError,
    MaintenanceConflictError,
    PermissionDeniedError,
    StaleTransitionError,
)
from .parsers import parse_resource_id
from .reference_data import ReferenceDataStore
from .side_effects import best_effort
from .time_range import TimeRange

logger = logging.getLogger(__name__)


class MaintenanceService:
    """
    Service for maintenance blocks.

    Handles:
    - Scheduling with conflict checks against bookings and other blocks
    - start / complete / cancel transitions
    """

    TRANSITIONS = {
        'start': (
            [MaintenanceBlock.Status.SCHEDULED],
            MaintenanceBlock.Status.IN_PROGRESS,
            'started_at',
        ),
        'complete': (
            [MaintenanceBlock.Status.SCHEDULED, MaintenanceBlock.Status.IN_PROGRESS],
            MaintenanceBlock.Status.COMPLETED,
            'completed_at',
        ),
        'cancel': (
            [MaintenanceBlock.Status.SCHEDULED, MaintenanceBlock.Status.IN_PROGRESS],
            MaintenanceBlock.Status.CANCELLED,
            'cancelled_at',
        ),
    }

    def __init__(self, reference_data: ReferenceDataStore = None):
        self.reference_data = reference_data or ReferenceDataStore()

    def get_block(self, block_id: Any) -> MaintenanceBlock:
        block_uuid = parse_resource_id(block_id, 'maintenance')
        try:
            return MaintenanceBlock.objects.get(id=block_uuid)
        except MaintenanceBlock.DoesNotExist:
            raise BookingNotFoundError(
                f"Maintenance block {block_uuid} not found",
                code='maintenance_not_found'
            )

    def list_blocks(self, actor: Actor, court_id: Any = None) -> List[MaintenanceBlock]:
        queryset = MaintenanceBlock.objects.all()
        if actor.role != Booking.ActorRole.ADMIN:
            queryset = queryset.filter(facility_id=actor.facility_id)
        if court_id:
            queryset = queryset.filter(court_id=parse_resource_id(court_id, 'court'))
        return list(queryset.order_by('start'))

    def schedule(
        self,
        actor: Actor,
        court_id: Any,
        time_range: TimeRange,
        reason: str = ''
    ) -> MaintenanceBlock:
        court = self.reference_data.get_court(court_id)
        if not actor.can_manage_facility(court.facility_id):
            raise PermissionDeniedError("Court belongs to another facility")

        with transaction.atomic():
            # Same lock as booking admission
            Court.objects.select_for_update().get(id=court.id)

            booking = Booking.get_conflicts(court.id, time_range.start, time_range.end).first()
            if booking:
                raise BookingConflictError(NOT_AVAILABLE_MESSAGE, details={'conflict': describe_booking(booking)})

            block = MaintenanceBlock.get_conflicts(court.id, time_range.start, time_range.end).first()
            if block:
                raise MaintenanceConflictError(
                    NOT_AVAILABLE_MESSAGE,
                    details={'conflict': describe_maintenance(block)}
                )

            block = MaintenanceBlock.objects.create(
                court_id=court.id,
                facility_id=court.facility_id,
                start=time_range.start,
                end=time_range.end,
                reason=reason or 'Maintenance',
                created_by=actor.id,
            )
            transaction.on_commit(
                lambda: best_effort(publish_maintenance_event, EventType.MAINTENANCE_SCHEDULED, block)
            )

        logger.info(
            f"Scheduled maintenance {block.id} on court {court.id}",
            extra={'court_id': str(court.id), 'maintenance_id': str(block.id)}
        )
        return block

    def apply_action(self, block: MaintenanceBlock, action: str, actor: Actor) -> MaintenanceBlock:
        if action not in self.TRANSITIONS:
            raise BookingStateError(f"Unknown maintenance action {action}")
        if not actor.can_manage_facility(block.facility_id):
            raise PermissionDeniedError("Maintenance block belongs to another facility")

        allowed_from, target, stamp_field = self.TRANSITIONS[action]
        if block.status not in allowed_from:
            raise BookingStateError(
                f"Cannot {action} maintenance in status {block.status}",
                details={'status': block.status, 'action': action}
            )

        now = timezone.now()
        updated = MaintenanceBlock.objects.filter(id=block.id, status=block.status).update(
            status=target,
            updated_at=now,
            **{stamp_field: now}
        )
        if not updated:
            raise StaleTransitionError(f"Maintenance block {block.id} changed concurrently")

        block.refresh_from_db()
        best_effort(publish_maintenance_event, EventType.MAINTENANCE_STATUS_CHANGED, block, action=action)
        logger.info(f"Maintenance {block.id}: {action}", extra={'maintenance_id': str(block.id)})
        return block
