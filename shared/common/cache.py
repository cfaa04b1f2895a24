# shared/common/cache.py
"""
Caching Utilities

Thin wrapper over a Django cache alias. Cache failures are logged and
treated as misses so callers fall back to the database.
"""

import logging
from typing import Any, Optional

from django.conf import settings
from django.core.cache import caches

logger = logging.getLogger(__name__)


class SafeCache:
    """Django cache access that never raises on backend errors."""

    def __init__(self, alias: str = 'default'):
        self.alias = alias

    @property
    def backend(self):
        return caches[self.alias]

    def get(self, key: str) -> Optional[Any]:
        try:
            return self.backend.get(key)
        except Exception as e:
            logger.error(f"Cache get error: {e}", extra={'cache_key': key})
            return None

    def set(self, key: str, value: Any, timeout: int = None) -> bool:
        try:
            self.backend.set(key, value, timeout=timeout)
            return True
        except Exception as e:
            logger.error(f"Cache set error: {e}", extra={'cache_key': key})
            return False

    def delete(self, key: str) -> bool:
        try:
            return bool(self.backend.delete(key))
        except Exception as e:
            logger.error(f"Cache delete error: {e}", extra={'cache_key': key})
            return False


class CacheKeyBuilder:
    """Namespaced cache keys: ``<service>:<part>:<part>``."""

    def __init__(self, service_name: str = None):
        self.service_name = service_name or getattr(settings, 'SERVICE_NAME', 'service')

    def build(self, *parts: str) -> str:
        return ':'.join([self.service_name, *[str(p) for p in parts]])

    def detail(self, resource: str, resource_id: str) -> str:
        return self.build(resource, 'detail', resource_id)
