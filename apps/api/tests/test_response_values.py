"""Tests for typed response parsing against item definitions."""
import uuid

import pytest

from fieldops.core.exceptions import InvalidResponseValueError
from fieldops.db.models import ChecklistItem
from fieldops.services.response_values import (
    BooleanValue,
    EnumValue,
    IntegerValue,
    MultiSelectValue,
    RatingValue,
    TextValue,
    TimestampValue,
    is_empty_value,
    parse_response_value,
)


def _item(item_type, validation_rules=None, enum_options=None):
    return ChecklistItem(
        id=uuid.uuid4(),
        section="core_quality",
        item_key=f"{item_type}_item",
        label="Item",
        item_type=item_type,
        validation_rules=validation_rules,
        enum_options=enum_options,
    )


OPTIONS = [{"value": "fridge", "label": "Fridge"}, {"value": "oven", "label": "Oven"}]


@pytest.mark.parametrize("raw", [None, "", []])
def test_empty_values(raw):
    assert is_empty_value(raw) is True


@pytest.mark.parametrize("raw", [0, False, "x", ["a"], " "])
def test_non_empty_values(raw):
    assert is_empty_value(raw) is False


def test_rating_defaults_to_one_through_five():
    item = _item("rating")

    assert parse_response_value(item, 4) == RatingValue(4)
    assert parse_response_value(item, 3.0) == RatingValue(3)
    with pytest.raises(InvalidResponseValueError):
        parse_response_value(item, 6)
    with pytest.raises(InvalidResponseValueError):
        parse_response_value(item, 0)


def test_rating_rejects_bool_and_strings():
    item = _item("rating")

    with pytest.raises(InvalidResponseValueError):
        parse_response_value(item, True)
    with pytest.raises(InvalidResponseValueError):
        parse_response_value(item, "3")
    with pytest.raises(InvalidResponseValueError):
        parse_response_value(item, 2.5)


def test_integer_respects_min_max_rules():
    item = _item("integer", validation_rules={"min": 0, "max": 10})

    assert parse_response_value(item, 10) == IntegerValue(10)
    with pytest.raises(InvalidResponseValueError, match="at most 10"):
        parse_response_value(item, 11)


def test_integer_without_rules_is_unbounded():
    assert parse_response_value(_item("integer"), -40).to_json() == -40


def test_boolean_requires_real_bool():
    item = _item("boolean")

    assert parse_response_value(item, False) == BooleanValue(False)
    with pytest.raises(InvalidResponseValueError):
        parse_response_value(item, "true")


def test_enum_must_match_an_option():
    item = _item("enum", enum_options=OPTIONS)

    assert parse_response_value(item, "oven") == EnumValue("oven")
    with pytest.raises(InvalidResponseValueError, match="not one of the listed options"):
        parse_response_value(item, "sink")


def test_text_and_textarea_respect_max_length():
    text_item = _item("text", validation_rules={"max_length": 5})
    textarea_item = _item("textarea")

    assert parse_response_value(text_item, "stain") == TextValue("stain")
    assert parse_response_value(textarea_item, "long " * 100).to_json() == "long " * 100
    with pytest.raises(InvalidResponseValueError, match="at most 5 characters"):
        parse_response_value(text_item, "stains")


def test_timestamp_accepts_iso8601_with_z_and_keeps_original_string():
    item = _item("timestamp")

    value = parse_response_value(item, "2026-10-18T09:30:00Z")

    assert isinstance(value, TimestampValue)
    assert value.to_json() == "2026-10-18T09:30:00Z"
    assert value.parsed.utcoffset().total_seconds() == 0


def test_timestamp_rejects_garbage():
    with pytest.raises(InvalidResponseValueError):
        parse_response_value(_item("timestamp"), "yesterday")


def test_multi_select_keeps_order_and_validates_options():
    item = _item("multi_select", enum_options=OPTIONS)

    value = parse_response_value(item, ["oven", "fridge"])

    assert value == MultiSelectValue(("oven", "fridge"))
    assert value.to_json() == ["oven", "fridge"]
    with pytest.raises(InvalidResponseValueError, match="unknown options: sink"):
        parse_response_value(item, ["oven", "sink"])


def test_multi_select_requires_list_of_strings():
    with pytest.raises(InvalidResponseValueError):
        parse_response_value(_item("multi_select", enum_options=OPTIONS), "oven")


def test_unknown_item_type_is_rejected():
    with pytest.raises(InvalidResponseValueError, match="unsupported item type"):
        parse_response_value(_item("signature"), "x")


def test_multi_select_rejects_repeated_options():
    item = _item("multi_select", enum_options=OPTIONS)

    with pytest.raises(InvalidResponseValueError, match="must not repeat"):
        parse_response_value(item, ["fridge", "fridge"])
