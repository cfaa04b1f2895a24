# Shared Common Library for the court booking platform
# Gateway authentication, permissions, middleware, caching and
# service clients shared by the booking services.

__version__ = "1.0.0"

from .authentication import (
    GatewayHeaderAuthentication,
    GatewayUser,
)

from .permissions import (
    HasRole,
    IsCustomer,
    IsStaff,
    IsCustomerOrStaff,
)

from .cache import (
    SafeCache,
    CacheKeyBuilder,
)

__all__ = [
    # Version
    '__version__',

    # Authentication
    'GatewayHeaderAuthentication',
    'GatewayUser',

    # Permissions
    'HasRole',
    'IsCustomer',
    'IsStaff',
    'IsCustomerOrStaff',

    # Cache
    'SafeCache',
    'CacheKeyBuilder',
]
