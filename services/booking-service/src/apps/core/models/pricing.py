# services/booking-service/src/apps/core/models/pricing.py
"""
Pricing Profile Model

Hourly rates per facility and sport, optionally narrowed to one court,
with an ordered list of time-window rules, membership discounts and tax.
"""

import uuid
from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, List, Optional, Tuple

from django.conf import settings
from django.db import models


MINUTES_PER_DAY = 24 * 60


def _parse_minutes(value: Any, default: int) -> Optional[int]:
    """'HH:MM' -> minute of day. None for malformed values."""
    if value in (None, ''):
        return default
    try:
        hours, minutes = str(value).split(':', 1)
        return int(hours) * 60 + int(minutes)
    except (TypeError, ValueError):
        return None


def _parse_days(value: Any) -> Optional[Tuple[int, ...]]:
    """A list of weekday numbers. Non-lists mean every day; None for bad entries."""
    if not isinstance(value, (list, tuple)):
        return ()
    days = []
    for day in value:
        if isinstance(day, bool) or not isinstance(day, (int, str)):
            return None
        try:
            days.append(int(day))
        except ValueError:
            return None
    return tuple(days)


def _to_decimal(value: Any) -> Optional[Decimal]:
    if value is None or value == '':
        return None
    try:
        return Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None


@dataclass(frozen=True)
class PricingRule:
    """
    One entry of a profile's rule list.

    ``days_of_week`` uses 0 for Sunday through 6 for Saturday; an empty
    tuple applies to every day and None (unreadable days) to none. The
    window is a half-open minute range of the local day, 00:00 to 24:00
    by default.
    """

    RATE_MULTIPLIER = 'multiplier'
    RATE_FIXED = 'fixed'

    rate_type: str = RATE_MULTIPLIER
    value: Optional[Decimal] = None
    days_of_week: Optional[Tuple[int, ...]] = field(default_factory=tuple)
    start_time: str = '00:00'
    end_time: str = '24:00'
    name: str = ''

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'PricingRule':
        return cls(
            rate_type=data.get('rate_type') or cls.RATE_MULTIPLIER,
            value=_to_decimal(data.get('value')),
            days_of_week=_parse_days(data.get('days_of_week')),
            start_time=data.get('start_time') or '00:00',
            end_time=data.get('end_time') or '24:00',
            name=data.get('name') or '',
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            'name': self.name,
            'rate_type': self.rate_type,
            'value': None if self.value is None else str(self.value),
            'days_of_week': None if self.days_of_week is None else list(self.days_of_week),
            'start_time': self.start_time,
            'end_time': self.end_time,
        }

    @property
    def start_minute(self) -> Optional[int]:
        return _parse_minutes(self.start_time, 0)

    @property
    def end_minute(self) -> Optional[int]:
        return _parse_minutes(self.end_time, MINUTES_PER_DAY)

    def applies_to(self, day_of_week: int, start_minute: int, end_minute: int) -> bool:
        if self.days_of_week is None:
            return False
        if self.days_of_week and day_of_week not in self.days_of_week:
            return False
        rule_start, rule_end = self.start_minute, self.end_minute
        if rule_start is None or rule_end is None:
            return False
        return start_minute < rule_end and end_minute > rule_start

    def hourly_rate(self, base_rate: Decimal) -> Decimal:
        if self.rate_type == self.RATE_MULTIPLIER:
            multiplier = self.value if self.value is not None else Decimal('1')
            return base_rate * multiplier
        if self.rate_type == self.RATE_FIXED:
            return self.value if self.value is not None else base_rate
        return base_rate


class PricingProfile(models.Model):
    """
    Price list for a (facility, sport) pair or for a single court.

    A court-specific profile wins over the facility-wide one. Rules are
    evaluated in list order and the first applicable rule is used.
    """

    id = models.UUIDField(primary_key=True, default=uuid.uuid4, editable=False)
    facility = models.ForeignKey(
        'core.Facility',
        on_delete=models.CASCADE,
        related_name='pricing_profiles'
    )
    sport = models.ForeignKey(
        'core.Sport',
        on_delete=models.CASCADE,
        related_name='pricing_profiles'
    )
    court = models.ForeignKey(
        'core.Court',
        on_delete=models.CASCADE,
        related_name='pricing_profiles',
        blank=True,
        null=True
    )

    name = models.CharField(max_length=255, blank=True, default='')
    currency = models.CharField(max_length=3, default='VND')
    base_rate_per_hour = models.DecimalField(
        max_digits=12,
        decimal_places=2,
        default=Decimal('0')
    )
    # [{"name", "rate_type", "value", "days_of_week", "start_time", "end_time"}, ...]
    rules = models.JSONField(default=list, blank=True)
    # [{"tier": "gold", "percent_off": "10"}, ...]
    membership_discounts = models.JSONField(default=list, blank=True)
    tax_percent = models.DecimalField(
        max_digits=5,
        decimal_places=2,
        default=Decimal('0')
    )
    is_active = models.BooleanField(default=True, db_index=True)

    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        db_table = 'pricing_profiles'
        ordering = ['created_at']
        indexes = [
            models.Index(fields=['facility', 'sport', 'is_active']),
        ]

    def __str__(self):
        scope = f"court {self.court_id}" if self.court_id else "facility"
        return f"{self.name or 'Pricing'} ({scope})"

    def get_rules(self) -> List[PricingRule]:
        # Entries that are not objects are ignored
        rules = self.rules if isinstance(self.rules, list) else []
        return [PricingRule.from_dict(item) for item in rules if isinstance(item, dict)]

    def discount_percent_for(self, tier: str) -> Optional[Decimal]:
        if not tier:
            return None
        for entry in self.membership_discounts or []:
            if isinstance(entry, dict) and entry.get('tier') == tier:
                return _to_decimal(entry.get('percent_off'))
        return None

    @property
    def quote_currency(self) -> str:
        return (self.currency or settings.DEFAULT_CURRENCY).upper()
