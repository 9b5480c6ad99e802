"""Pydantic request / response schemas for the REST API.

Enum fields reject unknown strings with a 422 before any route code runs.
"""

from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional

from pydantic import AwareDatetime, BaseModel, Field

from src.domain.enums import FulfillmentType, OrderStatus, Role, UrgencyFlag


# ── Requests ──────────────────────────────────────────────────────────


class TransitionRequest(BaseModel):
    requested: OrderStatus
    role: Role


class FeeQuoteRequest(BaseModel):
    subtotal: Decimal = Field(..., ge=0)
    order_time: AwareDatetime
    distance_km: Optional[Decimal] = Field(None, ge=0)
    is_holiday: bool = False


class RestaurantInfoUpdate(BaseModel):
    phone: Optional[str] = None
    email: Optional[str] = None


class DeliveryZoneUpdate(BaseModel):
    delivery_radius_km: Optional[str | float] = None
    delivery_zones_geojson: Optional[dict[str, Any] | str] = None


# ── Responses ─────────────────────────────────────────────────────────


class OrderResponse(BaseModel):
    id: int
    restaurant_id: int
    order_number: Optional[int] = None
    status: OrderStatus
    fulfillment: FulfillmentType
    placed_at: datetime
    scheduled_at: Optional[datetime] = None
    status_updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None
    flags: list[UrgencyFlag] = []
    next_statuses: list[OrderStatus] = []


class StatusEventResponse(BaseModel):
    order_id: int
    event_type: str
    status: str
    previous_status: str
    actor_role: Role
    created_at: datetime

    model_config = {"from_attributes": True}


class FeeBreakdownResponse(BaseModel):
    base_component: str
    distance_component: str
    peak_component: str
    weekend_component: str
    holiday_component: str
    surcharge_component: str
    total: str
    waived: bool


class FeeRulesResponse(BaseModel):
    restaurant_id: int
    rules: dict[str, Any]
    is_default: bool = False


class RestaurantSettingsResponse(BaseModel):
    restaurant_id: int
    name: str
    timezone: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    delivery_radius_km: Optional[Decimal] = None
    delivery_zones_geojson: Optional[dict[str, Any]] = None

    model_config = {"from_attributes": True}


class HealthResponse(BaseModel):
    status: str = "ok"
