# shared/common/permissions.py
"""
Role-based permission classes
"""

from typing import List
from rest_framework import permissions
from rest_framework.request import Request
from rest_framework.views import APIView

from .authentication import ADMIN, CUSTOMER, STAFF


class HasRole(permissions.BasePermission):
    """Check if user has one of the required roles"""

    required_roles: List[str] = []

    def get_user_roles(self, request: Request) -> List[str]:
        return getattr(request.user, 'roles', [])

    def has_permission(self, request: Request, view: APIView) -> bool:
        if not request.user or not request.user.is_authenticated:
            return False
        return bool(set(self.required_roles) & set(self.get_user_roles(request)))


class IsCustomer(HasRole):
    required_roles = [CUSTOMER]


class IsStaff(HasRole):
    """Facility staff or platform admin"""
    required_roles = [STAFF, ADMIN]


class IsCustomerOrStaff(HasRole):
    required_roles = [CUSTOMER, STAFF, ADMIN]
