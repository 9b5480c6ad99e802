"""Unit tests for restaurant settings field validators."""

import json

import pytest

from src.domain.validators import (
    GEOJSON_TYPES,
    validate_delivery_radius,
    validate_email,
    validate_geojson,
    validate_phone,
    validate_restaurant_info,
)


class TestPhone:
    @pytest.mark.parametrize(
        "phone",
        [
            "514-123-4567",
            "(514) 123 4567",
            "1-514-123-4567",
            "+15141234567",
            "+33 1 23 45 67 89",
            "",
            None,
        ],
    )
    def test_valid(self, phone):
        assert validate_phone(phone).valid

    def test_too_short(self):
        check = validate_phone("12345")
        assert not check.valid
        assert check.message == "Phone number must contain 10 digits (e.g. 514-123-4567)"

    def test_eleven_digits_must_start_with_one(self):
        assert not validate_phone("25141234567").valid

    @pytest.mark.parametrize("phone", ["+123456789", "+1234567890123456"])
    def test_international_length(self, phone):
        check = validate_phone(phone)
        assert not check.valid
        assert check.message == "International numbers must contain 10 to 15 digits"


class TestEmail:
    @pytest.mark.parametrize("email", ["chef@bistro.ca", " a@b.co ", "", None])
    def test_valid(self, email):
        assert validate_email(email).valid

    @pytest.mark.parametrize("email", ["chef@bistro", "chef bistro@x.ca", "@bistro.ca", "chef"])
    def test_invalid(self, email):
        check = validate_email(email)
        assert not check.valid
        assert check.message == "Invalid email format (e.g. restaurant@example.com)"


class TestGeoJSON:
    POLYGON = {
        "type": "Polygon",
        "coordinates": [[[-73.6, 45.5], [-73.5, 45.5], [-73.5, 45.6], [-73.6, 45.5]]],
    }

    def test_polygon(self):
        assert validate_geojson(self.POLYGON).valid

    def test_polygon_as_text(self):
        assert validate_geojson(json.dumps(self.POLYGON)).valid

    def test_feature_collection_needs_no_coordinates(self):
        assert validate_geojson({"type": "FeatureCollection", "features": []}).valid

    @pytest.mark.parametrize("blank", [None, "", "  "])
    def test_blank_is_valid(self, blank):
        assert validate_geojson(blank).valid

    def test_bad_json(self):
        assert validate_geojson("{type: Polygon").message == "Invalid JSON"

    def test_not_an_object(self):
        assert validate_geojson("[1, 2]").message == "GeoJSON must be an object"

    def test_unknown_type(self):
        check = validate_geojson({"type": "Circle", "radius": 3})
        assert not check.valid
        assert check.message.startswith("GeoJSON type must be one of:")
        for name in GEOJSON_TYPES:
            assert name in check.message

    @pytest.mark.parametrize("coordinates", [None, "[-73.6, 45.5]", 7])
    def test_geometry_needs_coordinates(self, coordinates):
        check = validate_geojson({"type": "Point", "coordinates": coordinates})
        assert not check.valid
        assert "coordinates" in check.message


class TestDeliveryRadius:
    @pytest.mark.parametrize("radius", ["5", "2,5", 0.5, 3, None, ""])
    def test_valid(self, radius):
        assert validate_delivery_radius(radius).valid

    @pytest.mark.parametrize("radius", ["0", "-1", "far", -0.1])
    def test_invalid(self, radius):
        check = validate_delivery_radius(radius)
        assert not check.valid
        assert check.message == "Radius must be a positive number"


class TestRestaurantInfo:
    def test_cleans_values(self):
        result = validate_restaurant_info(
            {"name": "Chez Test", "phone": " 514-123-4567 ", "email": ""}
        )
        assert result.ok
        assert result.value == {
            "name": "Chez Test",
            "phone": "514-123-4567",
            "email": None,
        }

    def test_collects_both_errors(self):
        result = validate_restaurant_info({"phone": "12345", "email": "nope"})
        assert not result.ok
        assert {(e.field, e.code) for e in result.errors} == {
            ("phone", "invalid_phone"),
            ("email", "invalid_email"),
        }
