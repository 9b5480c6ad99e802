"""Field-level validators for restaurant settings.

Each validator treats ``None`` / blank input as valid (the field is optional)
and returns a ``FieldCheck``.  They gate edits before persistence; none of
them computes fees.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping, Sequence
from typing import Any, Optional

from .money import parse_decimal
from .results import FieldCheck, FieldError, Invalid, Ok

EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
NON_DIGITS_RE = re.compile(r"\D")

GEOMETRY_TYPES = (
    "Point",
    "LineString",
    "Polygon",
    "MultiPoint",
    "MultiLineString",
    "MultiPolygon",
)
COLLECTION_TYPES = ("Feature", "FeatureCollection", "GeometryCollection")
GEOJSON_TYPES = GEOMETRY_TYPES + COLLECTION_TYPES


def _is_blank(value: Optional[str]) -> bool:
    return value is None or not str(value).strip()


def validate_phone(phone: Optional[str]) -> FieldCheck:
    """``+`` prefix: 10-15 digits.  Otherwise 10 digits, or 11 starting with 1."""
    if _is_blank(phone):
        return FieldCheck.passed()

    text = str(phone).strip()
    digits = NON_DIGITS_RE.sub("", text)

    if text.startswith("+"):
        if 10 <= len(digits) <= 15:
            return FieldCheck.passed()
        return FieldCheck.failed(
            "International numbers must contain 10 to 15 digits"
        )

    if len(digits) == 10 or (len(digits) == 11 and digits.startswith("1")):
        return FieldCheck.passed()
    return FieldCheck.failed("Phone number must contain 10 digits (e.g. 514-123-4567)")


def validate_email(email: Optional[str]) -> FieldCheck:
    if _is_blank(email):
        return FieldCheck.passed()
    if not EMAIL_RE.match(str(email).strip()):
        return FieldCheck.failed("Invalid email format (e.g. restaurant@example.com)")
    return FieldCheck.passed()


def validate_geojson(document: Any) -> FieldCheck:
    """Shallow structural check of a delivery-zone GeoJSON document.

    Accepts a parsed mapping or the raw JSON text typed into the editor.
    """
    if document is None or (isinstance(document, str) and not document.strip()):
        return FieldCheck.passed()

    if isinstance(document, str):
        try:
            document = json.loads(document)
        except json.JSONDecodeError:
            return FieldCheck.failed("Invalid JSON")

    if not isinstance(document, Mapping):
        return FieldCheck.failed("GeoJSON must be an object")

    geo_type = document.get("type")
    if geo_type not in GEOJSON_TYPES:
        return FieldCheck.failed(
            "GeoJSON type must be one of: " + ", ".join(GEOJSON_TYPES)
        )

    if geo_type in GEOMETRY_TYPES:
        coordinates = document.get("coordinates")
        if not isinstance(coordinates, Sequence) or isinstance(coordinates, (str, bytes)):
            return FieldCheck.failed(
                'GeoJSON geometries must have a "coordinates" array'
            )

    return FieldCheck.passed()


def validate_delivery_radius(radius: Any) -> FieldCheck:
    try:
        value = parse_decimal(radius)
    except ValueError:
        return FieldCheck.failed("Radius must be a positive number")
    if value is None:
        return FieldCheck.passed()
    if value <= 0:
        return FieldCheck.failed("Radius must be a positive number")
    return FieldCheck.passed()


def validate_restaurant_info(info: Mapping[str, Any]) -> Ok[dict[str, Any]] | Invalid:
    """Run the contact validators together before saving restaurant info.

    Blank contact fields are normalised to ``None``.
    """
    errors: list[FieldError] = []
    cleaned = dict(info)
    for field, check in (("phone", validate_phone), ("email", validate_email)):
        value = info.get(field)
        result = check(value)
        if not result.valid:
            errors.append(FieldError(field, "invalid_" + field, result.message or ""))
        cleaned[field] = None if _is_blank(value) else str(value).strip()

    if errors:
        return Invalid(tuple(errors))
    return Ok(cleaned)
