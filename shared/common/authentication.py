# shared/common/authentication.py
"""
Gateway Header Authentication

The API gateway verifies the caller and forwards the identity as
headers. This service trusts those headers and never sees a token.
"""

import uuid
import logging
from typing import Any, Dict, List, Optional, Tuple
from rest_framework import authentication, exceptions
from rest_framework.request import Request

logger = logging.getLogger(__name__)

CUSTOMER = 'customer'
STAFF = 'staff'
ADMIN = 'admin'

ROLES = (CUSTOMER, STAFF, ADMIN)


def _parse_uuid(value: str, header: str) -> uuid.UUID:
    try:
        return uuid.UUID(value.strip())
    except ValueError:
        raise exceptions.AuthenticationFailed(f'Invalid {header} header')


class GatewayHeaderAuthentication(authentication.BaseAuthentication):
    """
    Reads X-User-ID, X-User-Role and X-Facility-ID.

    Requests without X-User-ID are anonymous. A missing role means a
    customer. Staff without X-Facility-ID manage no facility.
    """

    keyword = 'Gateway'

    def authenticate(self, request: Request) -> Optional[Tuple[Any, Dict]]:
        raw_user_id = request.headers.get('X-User-ID')
        if not raw_user_id:
            return None

        user_id = _parse_uuid(raw_user_id, 'X-User-ID')

        role = (request.headers.get('X-User-Role') or CUSTOMER).strip().lower()
        if role not in ROLES:
            logger.warning(f"Rejected unknown role {role!r} for user {user_id}")
            raise exceptions.AuthenticationFailed('Invalid X-User-Role header')

        facility_id = None
        raw_facility_id = request.headers.get('X-Facility-ID')
        if raw_facility_id:
            facility_id = _parse_uuid(raw_facility_id, 'X-Facility-ID')

        user = GatewayUser(user_id, role, facility_id)
        return (user, {'role': role, 'facility_id': str(facility_id) if facility_id else None})

    def authenticate_header(self, request: Request) -> str:
        return self.keyword


class GatewayUser:
    """
    User object built from gateway headers.
    """

    def __init__(self, user_id: uuid.UUID, role: str, facility_id: Optional[uuid.UUID] = None):
        self.id = user_id
        self.role = role
        self.facility_id = facility_id
        self.is_active = True
        self.is_authenticated = True
        self.is_anonymous = False

    def __str__(self) -> str:
        return f"GatewayUser({self.id}, {self.role})"

    @property
    def roles(self) -> List[str]:
        return [self.role]

    def has_role(self, role: str) -> bool:
        return role == self.role
