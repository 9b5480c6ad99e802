"""Domain enumerations.

All enumerations are closed: values coming from the store or the API must
match exactly, see :func:`parse_enum`.
"""

import enum
from typing import TypeVar


class UnknownEnumValue(ValueError):
    """Raised when an external string does not name a known enum member."""


class OrderStatus(str, enum.Enum):
    RECEIVED = "received"
    PREPARING = "preparing"
    READY = "ready"
    ASSIGNED = "assigned"
    ENROUTE = "enroute"
    COMPLETED = "completed"
    CANCELLED = "cancelled"

    @property
    def is_terminal(self) -> bool:
        return self in TERMINAL_STATUSES


TERMINAL_STATUSES: frozenset[OrderStatus] = frozenset(
    {OrderStatus.COMPLETED, OrderStatus.CANCELLED}
)


class FulfillmentType(str, enum.Enum):
    PICKUP = "pickup"
    DELIVERY = "delivery"


class Role(str, enum.Enum):
    COOK = "cook"
    DELIVERY = "delivery"
    MANAGER = "manager"


class RejectionReason(str, enum.Enum):
    INVALID_TRANSITION = "invalid_transition"
    TERMINAL_STATE = "terminal_state"
    FORBIDDEN_ROLE = "forbidden_role"


class UrgencyFlag(str, enum.Enum):
    LATE = "late"
    SOON = "soon"


class FeeType(str, enum.Enum):
    FLAT = "flat"
    DISTANCE_BASED = "distance_based"


E = TypeVar("E", bound=enum.Enum)


def parse_enum(enum_cls: type[E], value: object) -> E:
    """Map *value* to a member of *enum_cls* or raise ``UnknownEnumValue``.

    Members pass through unchanged. Strings must match a member value exactly
    (no case folding, no whitespace trimming).
    """
    if isinstance(value, enum_cls):
        return value
    try:
        return enum_cls(value)
    except ValueError:
        raise UnknownEnumValue(
            f"{value!r} is not a valid {enum_cls.__name__}"
        ) from None
