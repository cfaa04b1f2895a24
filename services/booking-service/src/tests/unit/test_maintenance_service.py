# services/booking-service/src/tests/unit/test_maintenance_service.py
"""
Unit Tests for MaintenanceService
"""

import uuid
from datetime import timedelta

import pytest
from django.utils import timezone

from apps.core.models import Facility, MaintenanceBlock
from apps.core.services import (
    Actor,
    BookingConflictError,
    BookingNotFoundError,
    BookingStateError,
    MaintenanceConflictError,
    MaintenanceService,
    PermissionDeniedError,
    StaleTransitionError,
    TimeRange,
)


def tomorrow_at(hour):
    start = timezone.now() + timedelta(days=1)
    return start.replace(hour=hour, minute=0, second=0, microsecond=0)


@pytest.fixture
def maintenance_service():
    return MaintenanceService()


@pytest.fixture
def other_facility(db):
    return Facility.objects.create(name='Lakeside Arena', timezone='UTC')


@pytest.mark.django_db
class TestScheduleMaintenance:

    def test_schedule_block(self, maintenance_service, court, staff_actor):
        block = maintenance_service.schedule(
            staff_actor,
            str(court.id),
            TimeRange(tomorrow_at(6), tomorrow_at(8)),
            reason='Resurfacing',
        )

        assert block.status == MaintenanceBlock.Status.SCHEDULED
        assert block.facility_id == court.facility_id
        assert block.reason == 'Resurfacing'
        assert block.created_by == staff_actor.id

    def test_default_reason(self, maintenance_service, court, staff_actor):
        block = maintenance_service.schedule(staff_actor, court.id, TimeRange(tomorrow_at(6), tomorrow_at(7)))

        assert block.reason == 'Maintenance'

    def test_rejects_overlap_with_booking(self, maintenance_service, court, staff_actor, create_booking):
        booking = create_booking(scheduled_start=tomorrow_at(7), scheduled_end=tomorrow_at(8))

        with pytest.raises(BookingConflictError) as exc_info:
            maintenance_service.schedule(staff_actor, court.id, TimeRange(tomorrow_at(6), tomorrow_at(8)))

        assert exc_info.value.details['conflict']['id'] == str(booking.id)
        assert not MaintenanceBlock.objects.exists()

    def test_rejects_overlap_with_block(self, maintenance_service, court, staff_actor, create_maintenance):
        create_maintenance(start=tomorrow_at(5), end=tomorrow_at(7))

        with pytest.raises(MaintenanceConflictError):
            maintenance_service.schedule(staff_actor, court.id, TimeRange(tomorrow_at(6), tomorrow_at(8)))

    def test_adjacent_block_allowed(self, maintenance_service, court, staff_actor, create_maintenance):
        create_maintenance(start=tomorrow_at(5), end=tomorrow_at(6))

        block = maintenance_service.schedule(staff_actor, court.id, TimeRange(tomorrow_at(6), tomorrow_at(8)))

        assert MaintenanceBlock.objects.count() == 2
        assert block.start == tomorrow_at(6)

    def test_cancelled_block_does_not_conflict(self, maintenance_service, court, staff_actor, create_maintenance):
        create_maintenance(start=tomorrow_at(6), end=tomorrow_at(8), status=MaintenanceBlock.Status.CANCELLED)

        maintenance_service.schedule(staff_actor, court.id, TimeRange(tomorrow_at(6), tomorrow_at(8)))

        assert MaintenanceBlock.objects.count() == 2

    def test_staff_of_other_facility_forbidden(self, maintenance_service, court, other_facility):
        outsider = Actor(role='staff', id=uuid.uuid4(), facility_id=other_facility.id)

        with pytest.raises(PermissionDeniedError):
            maintenance_service.schedule(outsider, court.id, TimeRange(tomorrow_at(6), tomorrow_at(8)))

    def test_admin_may_schedule_anywhere(self, maintenance_service, court):
        admin = Actor(role='admin', id=uuid.uuid4())

        block = maintenance_service.schedule(admin, court.id, TimeRange(tomorrow_at(6), tomorrow_at(8)))

        assert block.court_id == court.id


@pytest.mark.django_db
class TestMaintenanceActions:

    def test_start_then_complete(self, maintenance_service, staff_actor, create_maintenance):
        block = create_maintenance()

        block = maintenance_service.apply_action(block, 'start', staff_actor)
        assert block.status == MaintenanceBlock.Status.IN_PROGRESS
        assert block.started_at is not None

        block = maintenance_service.apply_action(block, 'complete', staff_actor)
        assert block.status == MaintenanceBlock.Status.COMPLETED
        assert block.completed_at is not None

    def test_cancel_scheduled(self, maintenance_service, staff_actor, create_maintenance):
        block = maintenance_service.apply_action(create_maintenance(), 'cancel', staff_actor)

        assert block.status == MaintenanceBlock.Status.CANCELLED
        assert block.cancelled_at is not None

    def test_completed_block_is_final(self, maintenance_service, staff_actor, create_maintenance):
        block = create_maintenance(status=MaintenanceBlock.Status.COMPLETED)

        with pytest.raises(BookingStateError):
            maintenance_service.apply_action(block, 'cancel', staff_actor)

    def test_unknown_action(self, maintenance_service, staff_actor, create_maintenance):
        with pytest.raises(BookingStateError):
            maintenance_service.apply_action(create_maintenance(), 'pause', staff_actor)

    def test_concurrent_change_is_stale(self, maintenance_service, staff_actor, create_maintenance):
        block = create_maintenance()
        stale_copy = MaintenanceBlock.objects.get(id=block.id)
        maintenance_service.apply_action(block, 'start', staff_actor)

        with pytest.raises(StaleTransitionError):
            maintenance_service.apply_action(stale_copy, 'cancel', staff_actor)

    def test_other_facility_forbidden(self, maintenance_service, create_maintenance, other_facility):
        outsider = Actor(role='staff', id=uuid.uuid4(), facility_id=other_facility.id)

        with pytest.raises(PermissionDeniedError):
            maintenance_service.apply_action(create_maintenance(), 'start', outsider)


@pytest.mark.django_db
class TestMaintenanceQueries:

    def test_list_scoped_to_staff_facility(
        self, maintenance_service, staff_actor, create_court, create_maintenance, other_facility
    ):
        mine = create_maintenance()
        foreign_court = create_court(facility=other_facility, name='Court A')
        create_maintenance(court=foreign_court, facility_id=other_facility.id)

        assert maintenance_service.list_blocks(staff_actor) == [mine]

    def test_list_filtered_by_court(self, maintenance_service, staff_actor, court, create_court, create_maintenance):
        create_maintenance()
        second = create_court(name='Court 2')
        theirs = create_maintenance(court=second)

        assert maintenance_service.list_blocks(staff_actor, court_id=str(second.id)) == [theirs]

    def test_get_block(self, maintenance_service, create_maintenance):
        block = create_maintenance()

        assert maintenance_service.get_block(str(block.id)) == block

    def test_get_missing_block(self, maintenance_service, db):
        with pytest.raises(BookingNotFoundError) as exc_info:
            maintenance_service.get_block(str(uuid.uuid4()))

        assert exc_info.value.code == 'maintenance_not_found'
