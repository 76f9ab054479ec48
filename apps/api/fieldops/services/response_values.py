"""Typed checklist response values.

Stored responses are plain JSON, but every write is parsed into one of the
value classes below against the item's declared item_type, validation_rules
and enum_options. Anything that does not fit raises InvalidResponseValueError.
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Union

from fieldops.core.exceptions import InvalidResponseValueError
from fieldops.db.enums import ChecklistItemType
from fieldops.db.models import ChecklistItem


RATING_MIN = 1
RATING_MAX = 5


@dataclass(frozen=True)
class RatingValue:
    value: int

    def to_json(self) -> int:
        return self.value


@dataclass(frozen=True)
class BooleanValue:
    value: bool

    def to_json(self) -> bool:
        return self.value


@dataclass(frozen=True)
class EnumValue:
    value: str

    def to_json(self) -> str:
        return self.value


@dataclass(frozen=True)
class IntegerValue:
    value: int

    def to_json(self) -> int:
        return self.value


@dataclass(frozen=True)
class TextValue:
    """Free text (text and textarea items)."""
    value: str

    def to_json(self) -> str:
        return self.value


@dataclass(frozen=True)
class TimestampValue:
    """ISO 8601 timestamp; the original string is what gets stored."""
    value: str
    parsed: datetime

    def to_json(self) -> str:
        return self.value


@dataclass(frozen=True)
class MultiSelectValue:
    value: tuple[str, ...]

    def to_json(self) -> list[str]:
        return list(self.value)


ResponseValue = Union[
    RatingValue,
    BooleanValue,
    EnumValue,
    IntegerValue,
    TextValue,
    TimestampValue,
    MultiSelectValue,
]


def is_empty_value(raw: Any) -> bool:
    """None, empty string and empty list are "no answer" and never stored."""
    if raw is None:
        return True
    if isinstance(raw, str) and raw == "":
        return True
    if isinstance(raw, list) and len(raw) == 0:
        return True
    return False


def _fail(item: ChecklistItem, message: str) -> InvalidResponseValueError:
    return InvalidResponseValueError(f"Invalid value for '{item.item_key}': {message}")


def _as_int(item: ChecklistItem, raw: Any) -> int:
    # bool is an int subclass; reject it explicitly
    if isinstance(raw, bool):
        raise _fail(item, "expected a number")
    if isinstance(raw, int):
        return raw
    if isinstance(raw, float) and raw.is_integer():
        return int(raw)
    raise _fail(item, "expected a whole number")


def _check_range(item: ChecklistItem, number: int, low: int | None, high: int | None) -> None:
    if low is not None and number < low:
        raise _fail(item, f"must be at least {low}")
    if high is not None and number > high:
        raise _fail(item, f"must be at most {high}")


def _option_values(item: ChecklistItem) -> set[str] | None:
    if not item.enum_options:
        return None
    return {str(option.get("value")) for option in item.enum_options}


def _parse_rating(item: ChecklistItem, raw: Any, rules: dict) -> RatingValue:
    number = _as_int(item, raw)
    _check_range(item, number, rules.get("min", RATING_MIN), rules.get("max", RATING_MAX))
    return RatingValue(number)


def _parse_integer(item: ChecklistItem, raw: Any, rules: dict) -> IntegerValue:
    number = _as_int(item, raw)
    _check_range(item, number, rules.get("min"), rules.get("max"))
    return IntegerValue(number)


def _parse_boolean(item: ChecklistItem, raw: Any, rules: dict) -> BooleanValue:
    if not isinstance(raw, bool):
        raise _fail(item, "expected true or false")
    return BooleanValue(raw)


def _parse_enum(item: ChecklistItem, raw: Any, rules: dict) -> EnumValue:
    if not isinstance(raw, str):
        raise _fail(item, "expected one of the listed options")
    allowed = _option_values(item)
    if allowed is not None and raw not in allowed:
        raise _fail(item, f"'{raw}' is not one of the listed options")
    return EnumValue(raw)


def _parse_text(item: ChecklistItem, raw: Any, rules: dict) -> TextValue:
    if not isinstance(raw, str):
        raise _fail(item, "expected text")
    max_length = rules.get("max_length")
    if max_length is not None and len(raw) > max_length:
        raise _fail(item, f"must be at most {max_length} characters")
    return TextValue(raw)


def _parse_timestamp(item: ChecklistItem, raw: Any, rules: dict) -> TimestampValue:
    if not isinstance(raw, str):
        raise _fail(item, "expected an ISO 8601 timestamp")
    candidate = raw[:-1] + "+00:00" if raw.endswith("Z") else raw
    try:
        parsed = datetime.fromisoformat(candidate)
    except ValueError:
        raise _fail(item, "expected an ISO 8601 timestamp")
    return TimestampValue(raw, parsed)


def _parse_multi_select(item: ChecklistItem, raw: Any, rules: dict) -> MultiSelectValue:
    if not isinstance(raw, list) or not all(isinstance(entry, str) for entry in raw):
        raise _fail(item, "expected a list of options")
    allowed = _option_values(item)
    if allowed is not None:
        unknown = [entry for entry in raw if entry not in allowed]
        if unknown:
            raise _fail(item, f"unknown options: {', '.join(unknown)}")
    if len(set(raw)) != len(raw):
        raise _fail(item, "options must not repeat")
    return MultiSelectValue(tuple(raw))


_PARSERS = {
    ChecklistItemType.RATING.value: _parse_rating,
    ChecklistItemType.INTEGER.value: _parse_integer,
    ChecklistItemType.BOOLEAN.value: _parse_boolean,
    ChecklistItemType.ENUM.value: _parse_enum,
    ChecklistItemType.TEXT.value: _parse_text,
    ChecklistItemType.TEXTAREA.value: _parse_text,
    ChecklistItemType.TIMESTAMP.value: _parse_timestamp,
    ChecklistItemType.MULTI_SELECT.value: _parse_multi_select,
}


def parse_response_value(item: ChecklistItem, raw: Any) -> ResponseValue:
    """
    Parse a non-empty raw JSON value into the typed value for item.item_type.

    Raises:
        InvalidResponseValueError: wrong type, out of range, or unknown option
    """
    parser = _PARSERS.get(item.item_type)
    if parser is None:
        raise _fail(item, f"unsupported item type '{item.item_type}'")
    return parser(item, raw, item.validation_rules or {})
