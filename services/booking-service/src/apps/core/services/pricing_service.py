# services/booking-service/src/apps/core/services/pricing_service.py
"""
Pricing Service

Deterministic price quotes for a court and time range.

The quote is a pure function of (profile, range, membership tier): the
same inputs always produce the same snapshot, which is what gets stored
on the booking and audited later.
"""

import logging
from dataclasses import dataclass, field
from decimal import Decimal, ROUND_HALF_UP
from typing import Any, Dict, Iterable, Optional
from zoneinfo import ZoneInfo

from django.conf import settings
from django.db.models import Q

from ..models import PricingProfile, PricingRule
from .time_range import TimeRange

logger = logging.getLogger(__name__)

CENT = Decimal('0.01')
ZERO = Decimal('0')
HUNDRED = Decimal('100')
SIXTY = Decimal('60')


def _money(value: Decimal) -> Decimal:
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def _js_weekday(value) -> int:
    """Python weekday (Monday=0) to Sunday=0 numbering used by rules."""
    return (value.weekday() + 1) % 7


@dataclass(frozen=True)
class PriceQuote:
    """Immutable price breakdown for one court and time range."""

    base_rate_per_hour: Decimal
    hourly_rate: Decimal
    duration_minutes: int
    subtotal: Decimal
    discount: Decimal
    tax: Decimal
    total: Decimal
    currency: str
    rule_applied: Dict[str, Any] = field(default_factory=dict)
    profile_id: Optional[str] = None
    membership_tier: str = ''
    discount_percent: Decimal = ZERO
    tax_percent: Decimal = ZERO

    def to_dict(self) -> Dict[str, Any]:
        return {
            'profile_id': self.profile_id,
            'base_rate_per_hour': str(self.base_rate_per_hour),
            'hourly_rate': str(self.hourly_rate),
            'rule_applied': dict(self.rule_applied),
            'duration_minutes': self.duration_minutes,
            'subtotal': str(self.subtotal),
            'membership_tier': self.membership_tier,
            'discount_percent': str(self.discount_percent),
            'discount': str(self.discount),
            'tax_percent': str(self.tax_percent),
            'tax': str(self.tax),
            'total': str(self.total),
            'currency': self.currency,
        }


def match_rule(
    rules: Iterable[PricingRule],
    day_of_week: int,
    start_minute: int,
    end_minute: int
) -> Optional[PricingRule]:
    """
    First rule in list order that applies, or None.

    Later rules are never consulted once one matches, even if they are
    more specific.
    """
    for rule in rules:
        if rule.applies_to(day_of_week, start_minute, end_minute):
            return rule
    return None


def zero_quote(time_range: TimeRange, currency: str = None) -> PriceQuote:
    """Quote used when no active profile covers the court."""
    return PriceQuote(
        base_rate_per_hour=_money(ZERO),
        hourly_rate=_money(ZERO),
        duration_minutes=time_range.duration_minutes,
        subtotal=_money(ZERO),
        discount=_money(ZERO),
        tax=_money(ZERO),
        total=_money(ZERO),
        currency=(currency or settings.DEFAULT_CURRENCY).upper(),
    )


def calculate_quote(
    profile: Optional[PricingProfile],
    time_range: TimeRange,
    membership_tier: str = '',
    currency: str = None,
    tz_name: str = None
) -> PriceQuote:
    """
    Compose base rate, matched rule, membership discount and tax.

    Rule matching reads the start weekday and the wall-clock minutes of
    both bounds in ``tz_name``. Money is rounded to cents only at the end.
    A requested ``currency`` labels the quote; otherwise the profile's is used.
    """
    if profile is None:
        return zero_quote(time_range, currency)

    tz = ZoneInfo(tz_name or settings.DEFAULT_FACILITY_TIMEZONE)
    local_start = time_range.start.astimezone(tz)
    local_end = time_range.end.astimezone(tz)

    day_of_week = _js_weekday(local_start)
    start_minute = local_start.hour * 60 + local_start.minute
    end_minute = local_end.hour * 60 + local_end.minute

    base_rate = Decimal(profile.base_rate_per_hour)
    rule = match_rule(profile.get_rules(), day_of_week, start_minute, end_minute)
    hourly_rate = rule.hourly_rate(base_rate) if rule else base_rate

    duration = time_range.duration_minutes
    subtotal = hourly_rate * Decimal(duration) / SIXTY

    discount_percent = profile.discount_percent_for(membership_tier) or ZERO
    discount = subtotal * discount_percent / HUNDRED
    discounted = max(ZERO, subtotal - discount)

    tax_percent = Decimal(profile.tax_percent or 0)
    tax = discounted * tax_percent / HUNDRED
    total = discounted + tax

    return PriceQuote(
        base_rate_per_hour=_money(base_rate),
        hourly_rate=hourly_rate,
        duration_minutes=duration,
        subtotal=_money(subtotal),
        discount=_money(discount),
        tax=_money(tax),
        total=_money(total),
        currency=(currency or profile.quote_currency).upper(),
        rule_applied=rule.to_dict() if rule else {},
        profile_id=str(profile.id),
        membership_tier=membership_tier if discount_percent else '',
        discount_percent=discount_percent,
        tax_percent=tax_percent,
    )


class PricingService:
    """
    Resolves the applicable pricing profile and produces quotes.

    Quotes are always computed here; prices sent by clients are ignored.
    """

    def select_profile(self, court) -> Optional[PricingProfile]:
        """Court-specific active profile, else the facility+sport one."""
        candidates = list(
            PricingProfile.objects.filter(
                facility_id=court.facility_id,
                sport_id=court.sport_id,
                is_active=True,
            ).filter(
                Q(court_id=court.id) | Q(court__isnull=True)
            ).order_by('created_at', 'id')
        )
        for profile in candidates:
            if profile.court_id == court.id:
                return profile
        return candidates[0] if candidates else None

    def quote(
        self,
        court,
        time_range: TimeRange,
        customer=None,
        currency: str = None,
        facility=None
    ) -> PriceQuote:
        profile = self.select_profile(court)
        if profile is None:
            logger.info(
                f"No active pricing profile for court {court.id}, quoting zero",
                extra={'court_id': str(court.id)}
            )
            return zero_quote(time_range, currency)

        tier = customer.active_membership_tier() if customer else ''
        tz_name = (facility or court.facility).local_timezone
        return calculate_quote(profile, time_range, tier, currency, tz_name)
