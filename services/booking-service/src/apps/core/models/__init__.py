# services/booking-service/src/apps/core/models/__init__.py
"""
Booking Service Models
"""

from .facility import Facility, Sport, Court
from .customer import Customer
from .maintenance import MaintenanceBlock
from .pricing import PricingProfile, PricingRule
from .booking import Booking
from .match_request import MatchRequest

__all__ = [
    # Reference data
    'Facility',
    'Sport',
    'Court',
    'Customer',
    # Scheduling
    'MaintenanceBlock',
    'Booking',
    'MatchRequest',
    # Pricing
    'PricingProfile',
    'PricingRule',
]
