"""Explicit result values returned by the core instead of raising."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Generic, Optional, TypeVar

from .enums import RejectionReason

T = TypeVar("T")


# ── Transition outcomes ───────────────────────────────────────────────


@dataclass(frozen=True)
class Allowed:
    allowed: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Rejected:
    reason: RejectionReason
    allowed: bool = field(default=False, init=False)


TransitionResult = Allowed | Rejected


# ── Validation outcomes ───────────────────────────────────────────────


@dataclass(frozen=True)
class FieldError:
    """One failed field.  ``field`` is a dotted path such as ``peakHours.0.start``."""

    field: str
    code: str
    message: str

    def as_dict(self) -> dict[str, str]:
        return {"field": self.field, "code": self.code, "message": self.message}


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: bool = field(default=True, init=False)


@dataclass(frozen=True)
class Invalid:
    errors: tuple[FieldError, ...]
    ok: bool = field(default=False, init=False)

    def fields(self) -> set[str]:
        return {e.field for e in self.errors}


@dataclass(frozen=True)
class FieldCheck:
    """Outcome of a single settings-field validator."""

    valid: bool
    message: Optional[str] = None

    @classmethod
    def passed(cls) -> FieldCheck:
        return cls(valid=True)

    @classmethod
    def failed(cls, message: str) -> FieldCheck:
        return cls(valid=False, message=message)
