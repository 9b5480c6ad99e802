"""
Domain entities.

``Order`` mirrors a row owned by the external store.  ``apply_transition``
asks the state machine first and only mutates the entity on ``Allowed``; the
caller still has to persist the change with a compare-and-set write.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from .enums import FulfillmentType, OrderStatus, Role, UrgencyFlag, parse_enum
from .order_status import allowed_transitions, request_transition, urgency_flags
from .results import Allowed, TransitionResult


@dataclass
class Order:
    id: Optional[int] = None
    restaurant_id: int = 0
    order_number: Optional[int] = None
    status: OrderStatus = OrderStatus.RECEIVED
    fulfillment: FulfillmentType = FulfillmentType.PICKUP
    placed_at: Optional[datetime] = None
    scheduled_at: Optional[datetime] = None
    status_updated_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None
    cancelled_at: Optional[datetime] = None

    def __post_init__(self) -> None:
        self.status = parse_enum(OrderStatus, self.status)
        self.fulfillment = parse_enum(FulfillmentType, self.fulfillment)

    def apply_transition(
        self, requested: OrderStatus | str, role: Role | str, now: datetime
    ) -> TransitionResult:
        """Move to *requested* if the state machine allows it."""
        requested = parse_enum(OrderStatus, requested)
        result = request_transition(self.status, requested, self.fulfillment, role)
        if not isinstance(result, Allowed):
            return result

        self.status = requested
        self.status_updated_at = now
        if requested is OrderStatus.COMPLETED:
            self.completed_at = now
        elif requested is OrderStatus.CANCELLED:
            self.cancelled_at = now
        return result

    def next_statuses(self, role: Role | str) -> list[OrderStatus]:
        return allowed_transitions(self.status, self.fulfillment, role)

    def flags(self, now: datetime, **thresholds) -> list[UrgencyFlag]:
        if self.placed_at is None:
            return []
        return urgency_flags(
            self.status,
            self.placed_at,
            self.scheduled_at,
            self.fulfillment,
            now,
            **thresholds,
        )


@dataclass(frozen=True)
class StatusEvent:
    order_id: int
    status: OrderStatus
    previous_status: OrderStatus
    actor_role: Role
    created_at: datetime
    event_type: str = field(default="status_changed")
