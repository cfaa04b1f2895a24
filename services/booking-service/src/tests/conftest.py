# services/booking-service/src/tests/conftest.py
"""
Pytest Configuration and Fixtures

Provides common fixtures for booking service tests.
"""

import uuid
from datetime import timedelta
from decimal import Decimal
from unittest.mock import MagicMock

import pytest
from django.core.cache import cache
from django.utils import timezone
from rest_framework.test import APIClient


@pytest.fixture(autouse=True)
def clear_cache():
    cache.clear()
    yield
    cache.clear()


@pytest.fixture
def api_client():
    """Provide API client for testing."""
    return APIClient()


@pytest.fixture
def facility(db):
    from apps.core.models import Facility

    return Facility.objects.create(name='Riverside Sports Club', timezone='UTC')


@pytest.fixture
def sport(db):
    from apps.core.models import Sport

    return Sport.objects.create(name='Badminton', code='badminton')


@pytest.fixture
def create_court(facility, sport):
    """Factory fixture for creating courts."""
    from apps.core.models import Court

    def _create_court(**kwargs):
        defaults = {
            'facility': facility,
            'sport': sport,
            'name': 'Court 1',
            'status': Court.Status.ACTIVE,
        }
        defaults.update(kwargs)

        return Court.objects.create(**defaults)

    return _create_court


@pytest.fixture
def court(create_court):
    return create_court()


@pytest.fixture
def create_customer(db):
    """Factory fixture for creating customers."""
    from apps.core.models import Customer

    def _create_customer(**kwargs):
        defaults = {
            'name': 'Linh Tran',
            'email': 'linh@example.com',
        }
        defaults.update(kwargs)

        return Customer.objects.create(**defaults)

    return _create_customer


@pytest.fixture
def customer(create_customer):
    return create_customer()


@pytest.fixture
def create_pricing_profile(facility, sport):
    """Factory fixture for creating pricing profiles."""
    from apps.core.models import PricingProfile

    def _create_profile(**kwargs):
        defaults = {
            'facility': facility,
            'sport': sport,
            'name': 'Standard',
            'currency': 'VND',
            'base_rate_per_hour': Decimal('200000'),
            'tax_percent': Decimal('0'),
        }
        defaults.update(kwargs)

        return PricingProfile.objects.create(**defaults)

    return _create_profile


@pytest.fixture
def create_booking(court, customer):
    """Factory fixture for creating bookings directly, bypassing admission."""
    from apps.core.models import Booking

    def _create_booking(**kwargs):
        start = timezone.now() + timedelta(days=1)
        start = start.replace(minute=0, second=0, microsecond=0)
        defaults = {
            'court': court,
            'facility_id': court.facility_id,
            'sport_id': court.sport_id,
            'customer': customer,
            'status': Booking.Status.PENDING,
            'scheduled_start': start,
            'scheduled_end': start + timedelta(hours=1),
        }
        defaults.update(kwargs)

        return Booking.objects.create(**defaults)

    return _create_booking


@pytest.fixture
def create_maintenance(court):
    """Factory fixture for creating maintenance blocks."""
    from apps.core.models import MaintenanceBlock

    def _create_maintenance(**kwargs):
        start = timezone.now() + timedelta(days=1)
        defaults = {
            'court': court,
            'facility_id': court.facility_id,
            'start': start,
            'end': start + timedelta(hours=2),
        }
        defaults.update(kwargs)

        return MaintenanceBlock.objects.create(**defaults)

    return _create_maintenance


@pytest.fixture
def create_match_request(court, customer):
    """Factory fixture for creating match requests."""
    from apps.core.models import MatchRequest

    def _create_match_request(**kwargs):
        start = timezone.now() + timedelta(days=1)
        defaults = {
            'court': court,
            'facility_id': court.facility_id,
            'sport_id': court.sport_id,
            'creator': customer,
            'desired_start': start,
            'desired_end': start + timedelta(hours=1),
        }
        defaults.update(kwargs)

        return MatchRequest.objects.create(**defaults)

    return _create_match_request


@pytest.fixture
def side_effects():
    """Side effect port that records calls instead of calling services."""
    from apps.core.services import SideEffectPort

    return MagicMock(spec=SideEffectPort)


@pytest.fixture
def booking_service(side_effects):
    from apps.core.services import BookingService

    return BookingService(side_effects=side_effects)


@pytest.fixture
def customer_actor(customer):
    from apps.core.services import Actor

    return Actor(role='customer', id=customer.id)


@pytest.fixture
def staff_actor(facility):
    from apps.core.services import Actor

    return Actor(role='staff', id=uuid.uuid4(), facility_id=facility.id)


@pytest.fixture
def customer_headers(customer):
    """Gateway headers for the customer fixture."""
    return {
        'HTTP_X_USER_ID': str(customer.id),
        'HTTP_X_USER_ROLE': 'customer',
    }


@pytest.fixture
def staff_headers(facility):
    """Gateway headers for a staff member of the facility fixture."""
    return {
        'HTTP_X_USER_ID': str(uuid.uuid4()),
        'HTTP_X_USER_ROLE': 'staff',
        'HTTP_X_FACILITY_ID': str(facility.id),
    }
