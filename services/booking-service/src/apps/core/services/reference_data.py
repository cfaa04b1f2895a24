# services/booking-service/src/apps/core/services/reference_data.py
"""
Reference Data Store

Read-mostly lookups for facilities, sports and courts, held in the
Django cache for a short TTL and dropped whenever the row is written.
Staleness here only affects display fields; conflict checks always
read bookings and maintenance blocks straight from the database.
"""

import logging
import uuid
from typing import Any, Dict, Type

from django.conf import settings
from django.db import models

from shared.common.cache import CacheKeyBuilder, SafeCache

from ..models import Court, Facility, Sport
from .exceptions import InvalidResourceError
from .parsers import parse_resource_id

logger = logging.getLogger(__name__)


class ReferenceDataStore:
    """
    Cached facility/sport/court reads.

    Instances are cheap; construct one per service and pass it in.
    """

    MODELS: Dict[str, Type[models.Model]] = {
        'facility': Facility,
        'sport': Sport,
        'court': Court,
    }

    def __init__(self, cache_alias: str = None, ttl: int = None):
        self.cache = SafeCache(cache_alias or getattr(settings, 'REFERENCE_DATA_CACHE_ALIAS', 'default'))
        self.ttl = ttl if ttl is not None else settings.REFERENCE_DATA_CACHE_TTL
        self.keys = CacheKeyBuilder()

    def _key(self, kind: str, object_id: uuid.UUID) -> str:
        return self.keys.detail(kind, str(object_id))

    def _get(self, kind: str, raw_id: Any):
        object_id = parse_resource_id(raw_id, kind)
        key = self._key(kind, object_id)

        instance = self.cache.get(key)
        if instance is not None:
            return instance

        model = self.MODELS[kind]
        try:
            instance = model.objects.get(id=object_id)
        except model.DoesNotExist:
            raise InvalidResourceError(
                f"{kind.capitalize()} not found",
                details={'field': kind, 'id': str(object_id)},
                missing=True
            )

        if self.ttl > 0:
            self.cache.set(key, instance, timeout=self.ttl)
        return instance

    def get_facility(self, facility_id: Any) -> Facility:
        return self._get('facility', facility_id)

    def get_sport(self, sport_id: Any) -> Sport:
        return self._get('sport', sport_id)

    def get_court(self, court_id: Any) -> Court:
        return self._get('court', court_id)

    def invalidate(self, kind: str, object_id: Any) -> None:
        self.cache.delete(self._key(kind, object_id))
        logger.debug(f"Invalidated cached {kind} {object_id}")
