"""Unit tests for the fee rules draft editor."""

from datetime import time
from decimal import Decimal

from src.domain.enums import FeeType
from src.domain.drafts import RuleSetEditor
from src.domain.fee_rules import DEFAULT_RULE_SET, validate_rule_set
from src.domain.results import FieldError, Invalid, Ok


def committed(**raw):
    return validate_rule_set({"type": "flat", "baseFee": "3.99", **raw}).value


class TestTyping:
    def test_starts_from_committed(self):
        editor = RuleSetEditor(committed(weekendFee="1"))
        assert editor.text("baseFee") == "3.99"
        assert editor.text("weekendFee") == "1.00"
        assert editor.text("holidayFee") == ""
        assert not editor.dirty

    def test_defaults_to_empty_flat_rules(self):
        editor = RuleSetEditor()
        assert editor.committed is DEFAULT_RULE_SET
        assert editor.text("baseFee") == "0.00"

    def test_partial_text_survives_until_blur(self):
        editor = RuleSetEditor()
        editor.set_text("baseFee", "3,")
        assert editor.text("baseFee") == "3,"
        assert editor.draft["baseFee"] == "0.00"
        assert editor.dirty

    def test_blur_parses_comma(self):
        editor = RuleSetEditor()
        editor.set_text("baseFee", "3,5")
        assert editor.blur("baseFee").valid
        assert editor.draft["baseFee"] == "3.5"
        assert editor.text("baseFee") == "3.5"

    def test_blur_blank_required_becomes_zero(self):
        editor = RuleSetEditor(committed())
        editor.set_text("baseFee", "  ")
        assert editor.blur("baseFee").valid
        assert editor.draft["baseFee"] == "0"

    def test_blur_blank_optional_is_cleared(self):
        editor = RuleSetEditor(committed(weekendFee="1"))
        editor.set_text("weekendFee", "")
        editor.blur("weekendFee")
        assert editor.draft["weekendFee"] is None

    def test_blur_keeps_bad_text(self):
        editor = RuleSetEditor()
        editor.set_text("baseFee", ".")
        check = editor.blur("baseFee")
        assert not check.valid
        assert check.message == "must be a number"
        assert editor.errors == {"baseFee": "must be a number"}
        assert editor.text("baseFee") == "."

    def test_fixing_text_clears_error(self):
        editor = RuleSetEditor()
        editor.set_text("baseFee", "abc")
        editor.blur("baseFee")
        editor.set_text("baseFee", "2")
        assert editor.blur("baseFee").valid
        assert editor.errors == {}

    def test_blur_untouched_field(self):
        assert RuleSetEditor().blur("holidayFee").valid

    def test_nested_paths_are_created(self):
        editor = RuleSetEditor()
        editor.set_value("peakHours.0.start", "11:00")
        editor.set_text("peakHours.0.additionalFee", "1,25")
        editor.blur("peakHours.0.additionalFee")
        assert editor.draft["peakHours"] == [{"start": "11:00", "additionalFee": "1.25"}]

    def test_draft_is_a_copy(self):
        editor = RuleSetEditor()
        editor.draft["baseFee"] = "99"
        assert editor.text("baseFee") == "0.00"


class TestSaveAndCancel:
    def test_save_promotes_draft(self):
        editor = RuleSetEditor()
        editor.set_value("type", "distance_based")
        editor.set_text("perKmFee", "0,50")
        editor.set_text("baseFee", "3.99")
        editor.set_value(
            "peakHours", [{"start": "11:00", "end": "13:00", "additionalFee": "1"}]
        )

        result = editor.save()

        assert isinstance(result, Ok)
        assert editor.committed.type is FeeType.DISTANCE_BASED
        assert editor.committed.per_km_fee == Decimal("0.50")
        assert editor.committed.peak_hours[0].start == time(11, 0)
        assert not editor.dirty

    def test_save_with_unparseable_text(self):
        original = committed()
        editor = RuleSetEditor(original)
        editor.set_text("weekendFee", "1.2.3")

        result = editor.save()

        assert result == Invalid(
            (FieldError("weekendFee", "decimal_parsing", "must be a number"),)
        )
        assert editor.committed is original
        assert editor.text("weekendFee") == "1.2.3"

    def test_save_with_invalid_rules_keeps_committed(self):
        original = committed()
        editor = RuleSetEditor(original)
        editor.set_text("baseFee", "-1")
        editor.set_value("peakHours.0", {"start": "25:00", "end": "13:00", "additionalFee": "1"})

        result = editor.save()

        assert not result.ok
        assert result.fields() == {"baseFee", "peakHours.0.start"}
        assert editor.committed is original
        assert editor.draft["baseFee"] == "-1"
        assert editor.dirty

    def test_cancel_discards_everything(self):
        original = committed()
        editor = RuleSetEditor(original)
        editor.set_text("baseFee", "oops")
        editor.blur("baseFee")
        editor.set_value("weekendFee", "2")

        editor.cancel()

        assert not editor.dirty
        assert editor.errors == {}
        assert editor.text("baseFee") == "3.99"
        assert editor.committed is original
