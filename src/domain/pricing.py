"""
Delivery Fee Engine  (Strategy Pattern)
=======================================

Formula
-------
Fee = Base + Distance + Peak + Weekend + Holiday + Surcharge

* **Distance**  = per_km_fee x min(distance_km, max_distance_km); 0 for flat
  rule sets (strategy chosen by rule set type)
* **Peak**      = sum of every peak window containing the local time of day
* **Weekend**   = weekend_fee on local Saturday / Sunday
* **Holiday**   = holiday_fee when the caller flags the date as a holiday
* **Surcharge** = minimum-order surcharge when subtotal < threshold

When ``subtotal >= free_delivery_above`` the fee is waived: every component is
still computed, but the breakdown reports zeros and ``waived=True``.

Every component is rounded to whole cents on its own and the total is the
integer sum, so the reported parts always add up to the total.

Complexity: O(P) per calculation, P = number of peak windows.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, fields
from datetime import datetime, tzinfo
from decimal import Decimal
from typing import Optional

from .clock import require_aware
from .enums import FeeType
from .fee_rules import DeliveryFeeRuleSet
from .money import format_amount, from_cents, parse_decimal, to_cents

WEEKEND_DAYS = frozenset({5, 6})  # datetime.weekday(): Saturday, Sunday


@dataclass(frozen=True)
class OrderPricingContext:
    """Order facts the fee depends on.

    ``subtotal`` and ``distance_km`` may arrive as strings (``.`` or ``,``),
    ints, floats or ``Decimal``; they are normalised to ``Decimal`` here and
    must not be negative.
    """

    subtotal: Decimal
    order_time: datetime
    distance_km: Optional[Decimal] = None
    is_holiday: bool = False

    def __post_init__(self) -> None:
        subtotal = parse_decimal(self.subtotal)
        if subtotal is None:
            raise ValueError("subtotal is required")
        distance_km = parse_decimal(self.distance_km)
        for name, value in (("subtotal", subtotal), ("distance_km", distance_km)):
            if value is not None and value < 0:
                raise ValueError(f"{name} must not be negative")
        object.__setattr__(self, "subtotal", subtotal)
        object.__setattr__(self, "distance_km", distance_km)


@dataclass(frozen=True)
class FeeBreakdown:
    base_component: Decimal
    distance_component: Decimal
    peak_component: Decimal
    weekend_component: Decimal
    holiday_component: Decimal
    surcharge_component: Decimal
    total: Decimal
    waived: bool = False

    def as_dict(self) -> dict[str, object]:
        """Stable display form: amounts as ``"0.00"`` strings."""
        return {
            f.name: (
                getattr(self, f.name)
                if f.name == "waived"
                else format_amount(getattr(self, f.name))
            )
            for f in fields(self)
        }


# ── Distance strategies ───────────────────────────────────────────────


class DistanceStrategy(ABC):
    @abstractmethod
    def distance_cents(
        self, rule_set: DeliveryFeeRuleSet, distance_km: Optional[Decimal]
    ) -> int: ...


class FlatDistance(DistanceStrategy):
    """Flat rule sets never charge for distance."""

    def distance_cents(
        self, rule_set: DeliveryFeeRuleSet, distance_km: Optional[Decimal]
    ) -> int:
        return 0


class PerKmDistance(DistanceStrategy):
    """Charge per kilometre, capped at the delivery radius."""

    def distance_cents(
        self, rule_set: DeliveryFeeRuleSet, distance_km: Optional[Decimal]
    ) -> int:
        if rule_set.per_km_fee is None:
            return 0
        if distance_km is None:
            raise ValueError("distance_km is required for distance-based pricing")
        distance = distance_km
        if rule_set.max_distance_km is not None:
            distance = min(distance, rule_set.max_distance_km)
        return to_cents(rule_set.per_km_fee * distance)


DISTANCE_STRATEGIES: dict[FeeType, DistanceStrategy] = {
    FeeType.FLAT: FlatDistance(),
    FeeType.DISTANCE_BASED: PerKmDistance(),
}


# ── Calculation ───────────────────────────────────────────────────────


def _cents(amount: Optional[Decimal]) -> int:
    return 0 if amount is None else to_cents(amount)


def compute_fee(
    rule_set: DeliveryFeeRuleSet,
    context: OrderPricingContext,
    tz: Optional[tzinfo] = None,
) -> FeeBreakdown:
    """Price a delivery.  *rule_set* must already be validated.

    Calendar day and time of day are taken in *tz* (the restaurant's zone);
    without it, ``context.order_time``'s own offset is used.
    """
    order_time = require_aware(context.order_time, "order_time")
    local = order_time.astimezone(tz) if tz is not None else order_time
    subtotal = context.subtotal

    waived = (
        rule_set.free_delivery_above is not None
        and subtotal >= rule_set.free_delivery_above
    )

    base = _cents(rule_set.base_fee)
    distance = DISTANCE_STRATEGIES[rule_set.type].distance_cents(
        rule_set, context.distance_km
    )
    time_of_day = local.timetz().replace(tzinfo=None)
    peak = sum(
        to_cents(w.additional_fee)
        for w in rule_set.peak_hours
        if w.contains(time_of_day)
    )
    weekend = _cents(rule_set.weekend_fee) if local.weekday() in WEEKEND_DAYS else 0
    holiday = _cents(rule_set.holiday_fee) if context.is_holiday else 0

    surcharge = 0
    minimum = rule_set.minimum_order_surcharge
    if minimum is not None and subtotal < minimum.threshold:
        surcharge = to_cents(minimum.surcharge)

    parts = [base, distance, peak, weekend, holiday, surcharge]
    if waived:
        parts = [0] * len(parts)

    return FeeBreakdown(
        *(from_cents(p) for p in parts),
        total=from_cents(sum(parts)),
        waived=waived,
    )


# ── Engine facade ─────────────────────────────────────────────────────


class DeliveryFeeCalculator:
    """Binds the restaurant timezone; used by the API layer."""

    def __init__(self, timezone: tzinfo):
        self.timezone = timezone

    def calculate(
        self, rule_set: DeliveryFeeRuleSet, context: OrderPricingContext
    ) -> FeeBreakdown:
        return compute_fee(rule_set, context, self.timezone)
