"""
Delivery Fee Rule Sets
======================

A restaurant's delivery pricing policy arrives as a loosely typed mapping
(a JSON column, an API body, a settings draft) using camelCase keys::

    {
      "type": "flat" | "distance_based",
      "baseFee": 3.99,
      "perKmFee": "0,50",
      "maxDistanceKm": 5,
      "freeDeliveryAbove": null,
      "peakHours": [{"start": "11:00", "end": "13:00", "additionalFee": 1}],
      "weekendFee": null,
      "holidayFee": null,
      "minimumOrderSurcharge": {"threshold": 15, "surcharge": 2}
    }

``validate_rule_set`` parses it through pydantic schemas (a discriminated
union on ``type``) and returns either ``Ok(DeliveryFeeRuleSet)`` or
``Invalid`` with one ``FieldError`` per failing field.  Numbers may be strings
using ``.`` or ``,``; blank optional fields become absent, never zero.

``perKmFee`` / ``maxDistanceKm`` are only checked for ``distance_based``; a
flat rule set ignores whatever is stored there.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import time
from decimal import Decimal
from typing import Annotated, Any, Literal, Mapping, Optional, Union

from pydantic import (
    BaseModel,
    BeforeValidator,
    ConfigDict,
    Field,
    TypeAdapter,
    ValidationError,
)

from .enums import FeeType
from .money import format_amount, normalize_number_text
from .results import FieldError, Invalid, Ok

HHMM_PATTERN = r"^([01]\d|2[0-3]):[0-5]\d$"


def _required_number(value: object) -> object:
    normalized = normalize_number_text(value)
    if normalized is None:
        raise ValueError("field is required")
    return normalized


# ── Input schemas ─────────────────────────────────────────────────────

Amount = Annotated[Decimal, Field(ge=0), BeforeValidator(_required_number)]
OptionalAmount = Annotated[
    Optional[Annotated[Decimal, Field(ge=0)]],
    BeforeValidator(normalize_number_text),
]
OptionalPositive = Annotated[
    Optional[Annotated[Decimal, Field(gt=0)]],
    BeforeValidator(normalize_number_text),
]
TimeOfDay = Annotated[str, Field(pattern=HHMM_PATTERN)]


class _Schema(BaseModel):
    model_config = ConfigDict(populate_by_name=True, extra="ignore")


class PeakHourIn(_Schema):
    start: TimeOfDay
    end: TimeOfDay
    additional_fee: Amount = Field(alias="additionalFee")


class MinimumOrderSurchargeIn(_Schema):
    threshold: Amount
    surcharge: Amount


class _RuleSetIn(_Schema):
    base_fee: Amount = Field(alias="baseFee")
    free_delivery_above: OptionalAmount = Field(None, alias="freeDeliveryAbove")
    peak_hours: Optional[list[PeakHourIn]] = Field(None, alias="peakHours")
    weekend_fee: OptionalAmount = Field(None, alias="weekendFee")
    holiday_fee: OptionalAmount = Field(None, alias="holidayFee")
    minimum_order_surcharge: Optional[MinimumOrderSurchargeIn] = Field(
        None, alias="minimumOrderSurcharge"
    )


class FlatRuleSetIn(_RuleSetIn):
    type: Literal["flat"]
    # Stray values are tolerated and never evaluated.
    per_km_fee: Any = Field(None, alias="perKmFee")
    max_distance_km: Any = Field(None, alias="maxDistanceKm")


class DistanceRuleSetIn(_RuleSetIn):
    type: Literal["distance_based"]
    per_km_fee: OptionalAmount = Field(None, alias="perKmFee")
    max_distance_km: OptionalPositive = Field(None, alias="maxDistanceKm")


RuleSetIn = Annotated[
    Union[FlatRuleSetIn, DistanceRuleSetIn], Field(discriminator="type")
]
_rule_set_adapter: TypeAdapter[FlatRuleSetIn | DistanceRuleSetIn] = TypeAdapter(RuleSetIn)


# ── Value objects ─────────────────────────────────────────────────────


def _parse_hhmm(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


@dataclass(frozen=True)
class PeakHourWindow:
    start: time
    end: time
    additional_fee: Decimal

    @property
    def wraps_midnight(self) -> bool:
        return self.start > self.end

    def contains(self, moment: time) -> bool:
        """``[start, end)`` membership; windows with start > end wrap midnight.

        A window with ``start == end`` is empty.
        """
        if self.wraps_midnight:
            return moment >= self.start or moment < self.end
        return self.start <= moment < self.end


@dataclass(frozen=True)
class MinimumOrderSurcharge:
    threshold: Decimal
    surcharge: Decimal


@dataclass(frozen=True)
class DeliveryFeeRuleSet:
    type: FeeType
    base_fee: Decimal
    per_km_fee: Optional[Decimal] = None
    max_distance_km: Optional[Decimal] = None
    free_delivery_above: Optional[Decimal] = None
    peak_hours: tuple[PeakHourWindow, ...] = ()
    weekend_fee: Optional[Decimal] = None
    holiday_fee: Optional[Decimal] = None
    minimum_order_surcharge: Optional[MinimumOrderSurcharge] = None

    def to_payload(self, numeric: bool = False) -> dict[str, Any]:
        """Serialise back to the camelCase mapping.

        Amounts are two-decimal strings for display. With ``numeric=True`` they
        are JSON numbers instead, which is how the settings column stores them.
        """

        def amount(value: Optional[Decimal]) -> Optional[str | float]:
            if value is None:
                return None
            return float(value) if numeric else format_amount(value)

        def km(value: Optional[Decimal]) -> Optional[str | float]:
            if value is None:
                return None
            return float(value) if numeric else str(value)

        return {
            "type": self.type.value,
            "baseFee": amount(self.base_fee),
            "perKmFee": amount(self.per_km_fee),
            "maxDistanceKm": km(self.max_distance_km),
            "freeDeliveryAbove": amount(self.free_delivery_above),
            "peakHours": [
                {
                    "start": w.start.strftime("%H:%M"),
                    "end": w.end.strftime("%H:%M"),
                    "additionalFee": amount(w.additional_fee),
                }
                for w in self.peak_hours
            ]
            or None,
            "weekendFee": amount(self.weekend_fee),
            "holidayFee": amount(self.holiday_fee),
            "minimumOrderSurcharge": (
                {
                    "threshold": amount(self.minimum_order_surcharge.threshold),
                    "surcharge": amount(self.minimum_order_surcharge.surcharge),
                }
                if self.minimum_order_surcharge
                else None
            ),
        }


DEFAULT_RULE_SET = DeliveryFeeRuleSet(type=FeeType.FLAT, base_fee=Decimal("0"))


def _to_rule_set(parsed: FlatRuleSetIn | DistanceRuleSetIn) -> DeliveryFeeRuleSet:
    is_distance = isinstance(parsed, DistanceRuleSetIn)
    surcharge = parsed.minimum_order_surcharge
    return DeliveryFeeRuleSet(
        type=FeeType(parsed.type),
        base_fee=parsed.base_fee,
        per_km_fee=parsed.per_km_fee if is_distance else None,
        max_distance_km=parsed.max_distance_km if is_distance else None,
        free_delivery_above=parsed.free_delivery_above,
        peak_hours=tuple(
            PeakHourWindow(
                start=_parse_hhmm(p.start),
                end=_parse_hhmm(p.end),
                additional_fee=p.additional_fee,
            )
            for p in parsed.peak_hours or ()
        ),
        weekend_fee=parsed.weekend_fee,
        holiday_fee=parsed.holiday_fee,
        minimum_order_surcharge=(
            MinimumOrderSurcharge(surcharge.threshold, surcharge.surcharge)
            if surcharge
            else None
        ),
    )


# ── Validation ────────────────────────────────────────────────────────

_TAGS = {t.value for t in FeeType}


def _field_path(error: Mapping[str, Any]) -> str:
    loc = list(error["loc"])
    if loc and loc[0] in _TAGS:
        loc = loc[1:]
    if not loc:
        return "type" if error["type"].startswith("union_tag") else "ruleSet"
    return ".".join(str(part) for part in loc)


def _field_errors(exc: ValidationError) -> tuple[FieldError, ...]:
    return tuple(
        FieldError(field=_field_path(e), code=e["type"], message=e["msg"])
        for e in exc.errors(include_url=False)
    )


def validate_rule_set(raw: Mapping[str, Any]) -> Ok[DeliveryFeeRuleSet] | Invalid:
    """Validate and normalise a raw rule set mapping."""
    try:
        parsed = _rule_set_adapter.validate_python(raw)
    except ValidationError as exc:
        return Invalid(_field_errors(exc))
    return Ok(_to_rule_set(parsed))
