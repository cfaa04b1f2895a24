# services/booking-service/src/apps/core/services/actor.py
"""
Who performs an operation: a customer, a facility staff member, an
admin or the system itself.
"""

import uuid
from dataclasses import dataclass
from typing import Optional

from apps.core.models import Booking


@dataclass(frozen=True)
class Actor:
    role: str
    id: Optional[uuid.UUID] = None
    facility_id: Optional[uuid.UUID] = None

    @classmethod
    def system(cls) -> 'Actor':
        return cls(role=Booking.ActorRole.SYSTEM)

    @property
    def is_customer(self) -> bool:
        return self.role == Booking.ActorRole.CUSTOMER

    @property
    def is_staff(self) -> bool:
        return self.role in (Booking.ActorRole.STAFF, Booking.ActorRole.ADMIN)

    def can_manage_facility(self, facility_id) -> bool:
        if self.role == Booking.ActorRole.ADMIN:
            return True
        return self.role == Booking.ActorRole.STAFF and self.facility_id is not None \
            and str(self.facility_id) == str(facility_id)

    def to_dict(self) -> dict:
        return {
            'id': str(self.id) if self.id else None,
            'role': self.role,
        }
