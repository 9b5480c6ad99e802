"""
Order Lifecycle State Machine
=============================

The legal transitions live in one lookup table keyed by
``(current status, fulfillment)``; each entry maps a requested status to the
set of roles allowed to request it::

    received  -> preparing            cook, manager
    preparing -> ready                cook, manager
    ready     -> assigned   (delivery) delivery, manager
    assigned  -> enroute    (delivery) delivery, manager
    enroute   -> completed  (delivery) delivery, manager
    ready     -> completed  (pickup)   cook, manager
    *         -> cancelled            manager; cook/delivery only from
                                      received or preparing

Urgency flags are derived separately and never feed back into the table.

Complexity: O(1) per decision.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Optional

from .clock import require_aware
from .enums import (
    FulfillmentType,
    OrderStatus,
    RejectionReason,
    Role,
    UrgencyFlag,
    parse_enum,
)
from .results import Allowed, Rejected, TransitionResult

S = OrderStatus
F = FulfillmentType

_KITCHEN = frozenset({Role.COOK, Role.MANAGER})
_COURIER = frozenset({Role.DELIVERY, Role.MANAGER})
_ANY_STAFF = frozenset(Role)
_MANAGER_ONLY = frozenset({Role.MANAGER})


def _build_transitions() -> dict[tuple[OrderStatus, FulfillmentType], dict[OrderStatus, frozenset[Role]]]:
    table: dict[tuple[OrderStatus, FulfillmentType], dict[OrderStatus, frozenset[Role]]] = {}
    for fulfillment in F:
        table[(S.RECEIVED, fulfillment)] = {S.PREPARING: _KITCHEN, S.CANCELLED: _ANY_STAFF}
        table[(S.PREPARING, fulfillment)] = {S.READY: _KITCHEN, S.CANCELLED: _ANY_STAFF}
        table[(S.COMPLETED, fulfillment)] = {}
        table[(S.CANCELLED, fulfillment)] = {}

    table[(S.READY, F.PICKUP)] = {S.COMPLETED: _KITCHEN, S.CANCELLED: _MANAGER_ONLY}

    table[(S.READY, F.DELIVERY)] = {S.ASSIGNED: _COURIER, S.CANCELLED: _MANAGER_ONLY}
    table[(S.ASSIGNED, F.DELIVERY)] = {S.ENROUTE: _COURIER, S.CANCELLED: _MANAGER_ONLY}
    table[(S.ENROUTE, F.DELIVERY)] = {S.COMPLETED: _COURIER, S.CANCELLED: _MANAGER_ONLY}
    return table


# (status, fulfillment) -> {requested status -> permitted roles}
ORDER_TRANSITIONS = _build_transitions()

# Statuses shown on each role's board
BOARD_STATUSES: dict[Role, tuple[OrderStatus, ...]] = {
    Role.COOK: (S.RECEIVED, S.PREPARING, S.READY),
    Role.DELIVERY: (S.READY, S.ASSIGNED, S.ENROUTE),
    Role.MANAGER: (S.RECEIVED, S.PREPARING, S.READY, S.ASSIGNED, S.ENROUTE),
}

LATE_THRESHOLDS: dict[FulfillmentType, timedelta] = {
    F.DELIVERY: timedelta(minutes=15),
    F.PICKUP: timedelta(minutes=10),
}
SOON_WINDOW = timedelta(minutes=15)

_LATE_STATUSES = frozenset({S.RECEIVED, S.PREPARING})


def request_transition(
    current: OrderStatus | str,
    requested: OrderStatus | str,
    fulfillment: FulfillmentType | str,
    role: Role | str,
) -> TransitionResult:
    """Decide whether *role* may move an order from *current* to *requested*.

    Raises ``UnknownEnumValue`` for unrecognised strings; every other outcome
    is returned as ``Allowed`` or ``Rejected``.
    """
    current = parse_enum(OrderStatus, current)
    requested = parse_enum(OrderStatus, requested)
    fulfillment = parse_enum(FulfillmentType, fulfillment)
    role = parse_enum(Role, role)

    if current.is_terminal:
        return Rejected(RejectionReason.TERMINAL_STATE)

    permitted = ORDER_TRANSITIONS.get((current, fulfillment), {}).get(requested)
    if permitted is None:
        return Rejected(RejectionReason.INVALID_TRANSITION)
    if role not in permitted:
        return Rejected(RejectionReason.FORBIDDEN_ROLE)
    return Allowed()


def allowed_transitions(
    current: OrderStatus | str,
    fulfillment: FulfillmentType | str,
    role: Role | str,
) -> list[OrderStatus]:
    """Statuses *role* may request next, in lifecycle order."""
    current = parse_enum(OrderStatus, current)
    fulfillment = parse_enum(FulfillmentType, fulfillment)
    role = parse_enum(Role, role)
    targets = ORDER_TRANSITIONS.get((current, fulfillment), {})
    return [s for s in OrderStatus if role in targets.get(s, ())]


def urgency_flags(
    status: OrderStatus | str,
    placed_at: datetime,
    scheduled_at: Optional[datetime],
    fulfillment: FulfillmentType | str,
    now: datetime,
    *,
    late_thresholds: Optional[dict[FulfillmentType, timedelta]] = None,
    soon_window: timedelta = SOON_WINDOW,
) -> list[UrgencyFlag]:
    """Derive advisory ``late`` / ``soon`` flags.  Recomputed on every poll."""
    status = parse_enum(OrderStatus, status)
    fulfillment = parse_enum(FulfillmentType, fulfillment)
    require_aware(placed_at, "placed_at")
    require_aware(now, "now")
    thresholds = late_thresholds or LATE_THRESHOLDS

    flags: list[UrgencyFlag] = []
    if status in _LATE_STATUSES and now - placed_at > thresholds[fulfillment]:
        flags.append(UrgencyFlag.LATE)

    if scheduled_at is not None:
        require_aware(scheduled_at, "scheduled_at")
        if scheduled_at > now and scheduled_at - now < soon_window:
            flags.append(UrgencyFlag.SOON)

    return flags
