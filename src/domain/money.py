"""
Currency and numeric normalisation.

External numeric fields are untrusted: they may be ints, floats, ``Decimal``
or strings typed by a user with either ``.`` or ``,`` as decimal separator.
Everything is normalised to ``Decimal`` and priced in whole cents.
"""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Optional

CENT = Decimal("0.01")


def normalize_number_text(value: object) -> object:
    """Prepare a raw value for ``Decimal`` parsing.

    * ``None`` and blank strings become ``None`` (absent, never zero).
    * strings are stripped and ``,`` is replaced by ``.``.
    * floats go through ``repr`` so ``0.1`` stays ``0.1``.
    * booleans are rejected.
    """
    if value is None:
        return None
    if isinstance(value, bool):
        raise ValueError("must be a number")
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return None
        return text.replace(",", ".")
    if isinstance(value, float):
        return repr(value)
    return value


def parse_decimal(value: object) -> Optional[Decimal]:
    """Parse *value* to a finite ``Decimal``; ``None`` for blank input.

    Raises ``ValueError`` when the value is not a finite number.
    """
    normalized = normalize_number_text(value)
    if normalized is None:
        return None
    try:
        number = Decimal(normalized)  # type: ignore[arg-type]
    except (InvalidOperation, TypeError, ValueError):
        raise ValueError(f"{value!r} is not a number") from None
    if not number.is_finite():
        raise ValueError(f"{value!r} is not a finite number")
    return number


def to_cents(amount: Decimal) -> int:
    return int((amount / CENT).quantize(Decimal(1), rounding=ROUND_HALF_UP))


def from_cents(cents: int) -> Decimal:
    return (Decimal(cents) * CENT).quantize(CENT)


def format_amount(amount: Decimal) -> str:
    return str(amount.quantize(CENT, rounding=ROUND_HALF_UP))
