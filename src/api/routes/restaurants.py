"""
Restaurant settings endpoints
=============================

GET  /api/v1/restaurants/{id}/delivery-fee-rules  -- committed rules (default when unset)
PUT  /api/v1/restaurants/{id}/delivery-fee-rules  -- validate, then save
POST /api/v1/restaurants/{id}/delivery-fee/quote  -- price a delivery
PUT  /api/v1/restaurants/{id}/info                -- phone / email
PUT  /api/v1/restaurants/{id}/delivery-zone       -- radius / GeoJSON zones

Validation failures answer 422 with a list of
``{"field", "code", "message"}`` objects; nothing is written.
"""

import json
import logging
from typing import Any
from zoneinfo import ZoneInfo

from fastapi import APIRouter, Body, Depends, HTTPException, Request
from sqlalchemy.ext.asyncio import AsyncSession

from src.api.dependencies import get_db
from src.api.middleware import RATE_LIMIT, limiter
from src.api.schemas import (
    DeliveryZoneUpdate,
    FeeBreakdownResponse,
    FeeQuoteRequest,
    FeeRulesResponse,
    RestaurantInfoUpdate,
    RestaurantSettingsResponse,
)
from src.config import settings
from src.domain.fee_rules import DEFAULT_RULE_SET, DeliveryFeeRuleSet, validate_rule_set
from src.domain.money import parse_decimal
from src.domain.pricing import DeliveryFeeCalculator, OrderPricingContext
from src.domain.results import FieldError, Invalid
from src.domain.validators import (
    validate_delivery_radius,
    validate_geojson,
    validate_restaurant_info,
)
from src.infrastructure.models import RestaurantSettingsModel
from src.infrastructure.repositories import RestaurantSettingsRepository

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/restaurants", tags=["restaurants"])


async def _load(repo: RestaurantSettingsRepository, restaurant_id: int) -> RestaurantSettingsModel:
    row = await repo.get(restaurant_id)
    if not row:
        raise HTTPException(status_code=404, detail="Restaurant not found")
    return row


def _unprocessable(errors: tuple[FieldError, ...]) -> HTTPException:
    return HTTPException(status_code=422, detail=[e.as_dict() for e in errors])


def _committed_rules(row: RestaurantSettingsModel) -> tuple[DeliveryFeeRuleSet, bool]:
    if row.delivery_fee_rules is None:
        return DEFAULT_RULE_SET, True
    result = validate_rule_set(row.delivery_fee_rules)
    if isinstance(result, Invalid):
        logger.warning(
            "Restaurant %s has invalid stored delivery fee rules: %s",
            row.restaurant_id,
            [e.field for e in result.errors],
        )
        raise HTTPException(
            status_code=409,
            detail={"reason": "stored_rules_invalid",
                    "errors": [e.as_dict() for e in result.errors]},
        )
    return result.value, False


@router.get(
    "/{restaurant_id}/delivery-fee-rules",
    response_model=FeeRulesResponse,
    summary="Get the delivery fee rules",
)
@limiter.limit(RATE_LIMIT)
async def get_fee_rules(
    request: Request,
    restaurant_id: int,
    db: AsyncSession = Depends(get_db),
):
    row = await _load(RestaurantSettingsRepository(db), restaurant_id)
    rules, is_default = _committed_rules(row)
    return FeeRulesResponse(
        restaurant_id=restaurant_id, rules=rules.to_payload(), is_default=is_default
    )


@router.put(
    "/{restaurant_id}/delivery-fee-rules",
    response_model=FeeRulesResponse,
    summary="Validate and save the delivery fee rules",
)
@limiter.limit(RATE_LIMIT)
async def save_fee_rules(
    request: Request,
    restaurant_id: int,
    body: dict[str, Any] = Body(...),
    db: AsyncSession = Depends(get_db),
):
    repo = RestaurantSettingsRepository(db)
    await _load(repo, restaurant_id)

    result = validate_rule_set(body)
    if isinstance(result, Invalid):
        raise _unprocessable(result.errors)

    await repo.save_fee_rules(restaurant_id, result.value.to_payload(numeric=True))
    payload = result.value.to_payload()
    logger.info("Restaurant %s saved %s delivery fee rules", restaurant_id, payload["type"])
    return FeeRulesResponse(restaurant_id=restaurant_id, rules=payload)


@router.post(
    "/{restaurant_id}/delivery-fee/quote",
    response_model=FeeBreakdownResponse,
    summary="Compute the delivery fee for an order",
)
@limiter.limit(RATE_LIMIT)
async def quote_delivery_fee(
    request: Request,
    restaurant_id: int,
    body: FeeQuoteRequest,
    db: AsyncSession = Depends(get_db),
):
    row = await _load(RestaurantSettingsRepository(db), restaurant_id)
    rules, _ = _committed_rules(row)

    calculator = DeliveryFeeCalculator(ZoneInfo(row.timezone or settings.restaurant_timezone))
    try:
        context = OrderPricingContext(
            subtotal=body.subtotal,
            order_time=body.order_time,
            distance_km=body.distance_km,
            is_holiday=body.is_holiday,
        )
        breakdown = calculator.calculate(rules, context)
    except ValueError as exc:
        raise HTTPException(status_code=422, detail=str(exc)) from exc
    return FeeBreakdownResponse(**breakdown.as_dict())


@router.put(
    "/{restaurant_id}/info",
    response_model=RestaurantSettingsResponse,
    summary="Update restaurant contact information",
)
@limiter.limit(RATE_LIMIT)
async def update_info(
    request: Request,
    restaurant_id: int,
    body: RestaurantInfoUpdate,
    db: AsyncSession = Depends(get_db),
):
    repo = RestaurantSettingsRepository(db)
    await _load(repo, restaurant_id)

    result = validate_restaurant_info(body.model_dump())
    if isinstance(result, Invalid):
        raise _unprocessable(result.errors)
    return await repo.update_info(
        restaurant_id, phone=result.value["phone"], email=result.value["email"]
    )


@router.put(
    "/{restaurant_id}/delivery-zone",
    response_model=RestaurantSettingsResponse,
    summary="Update the delivery radius and GeoJSON zones",
)
@limiter.limit(RATE_LIMIT)
async def update_delivery_zone(
    request: Request,
    restaurant_id: int,
    body: DeliveryZoneUpdate,
    db: AsyncSession = Depends(get_db),
):
    repo = RestaurantSettingsRepository(db)
    await _load(repo, restaurant_id)

    errors: list[FieldError] = []
    radius_check = validate_delivery_radius(body.delivery_radius_km)
    if not radius_check.valid:
        errors.append(
            FieldError("delivery_radius_km", "invalid_radius", radius_check.message or "")
        )
    zone_check = validate_geojson(body.delivery_zones_geojson)
    if not zone_check.valid:
        errors.append(
            FieldError("delivery_zones_geojson", "invalid_geojson", zone_check.message or "")
        )
    if errors:
        raise _unprocessable(tuple(errors))

    geojson = body.delivery_zones_geojson
    if isinstance(geojson, str):
        geojson = json.loads(geojson) if geojson.strip() else None
    return await repo.update_delivery_zone(
        restaurant_id,
        radius_km=parse_decimal(body.delivery_radius_km),
        geojson=geojson,
    )
