"""Checklist validation engine - the submission gate.

Pure: takes template items, stored response values and file records, returns
a ValidationResult. No database access and no side effects.

Rules:
1. Every required item needs a response that is not None and not "".
2. Score items are rating items whose item_key ends with "_score". When any
   score item holds a numeric value at or below the low-score threshold:
   - a "deviation_reason" item (if the template has one) needs a non-empty response
   - at least one file must exist on the inspection, attached to any item or
     to none
   Both checks run independently.
"""

from dataclasses import dataclass, field
from typing import Any, Iterable, Mapping, Sequence
from uuid import UUID

from fieldops.db.enums import DEVIATION_REASON_KEY, SCORE_ITEM_SUFFIX, ChecklistItemType
from fieldops.db.models import ChecklistItem


DEFAULT_LOW_SCORE_THRESHOLD = 2

REQUIRED_MESSAGE = "This field is required"
PHOTO_ITEM_KEY = "photo"
PHOTO_LABEL = "Photo"


@dataclass(frozen=True)
class ValidationError:
    item_key: str
    label: str
    message: str


@dataclass
class ValidationResult:
    errors: list[ValidationError] = field(default_factory=list)
    missing_item_keys: list[str] = field(default_factory=list)

    @property
    def valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict:
        return {
            "valid": self.valid,
            "errors": [
                {"item_key": e.item_key, "label": e.label, "message": e.message}
                for e in self.errors
            ],
            "missing_items": list(self.missing_item_keys),
        }


def _is_missing(value: Any) -> bool:
    return value is None or value == ""


def _is_score_item(item: ChecklistItem) -> bool:
    return item.item_type == ChecklistItemType.RATING.value and item.item_key.endswith(
        SCORE_ITEM_SUFFIX
    )


def _is_numeric(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def has_low_score(
    items: Iterable[ChecklistItem],
    responses: Mapping[UUID, Any],
    threshold: int = DEFAULT_LOW_SCORE_THRESHOLD,
) -> bool:
    """True when any score item holds a number at or below threshold."""
    for item in items:
        if not _is_score_item(item):
            continue
        value = responses.get(item.id)
        if _is_numeric(value) and value <= threshold:
            return True
    return False


def validate(
    items: Sequence[ChecklistItem],
    responses: Mapping[UUID, Any],
    files: Sequence[Any],
    low_score_threshold: int = DEFAULT_LOW_SCORE_THRESHOLD,
) -> ValidationResult:
    """
    Run the submission gate.

    Args:
        items: checklist items of the inspection's template version
        responses: stored response values keyed by checklist item id
        files: file records of the inspection (only their presence matters)
        low_score_threshold: score values at or below this trigger the deviation rule
    """
    result = ValidationResult()

    for item in items:
        if item.required and _is_missing(responses.get(item.id)):
            result.missing_item_keys.append(item.item_key)
            result.errors.append(ValidationError(item.item_key, item.label, REQUIRED_MESSAGE))

    if not has_low_score(items, responses, low_score_threshold):
        return result

    deviation_item = next((i for i in items if i.item_key == DEVIATION_REASON_KEY), None)
    if deviation_item is not None and not responses.get(deviation_item.id):
        result.errors.append(
            ValidationError(
                DEVIATION_REASON_KEY,
                deviation_item.label,
                f"Deviation reason is required when any score is {low_score_threshold} or below",
            )
        )

    if not files:
        result.errors.append(
            ValidationError(
                PHOTO_ITEM_KEY,
                PHOTO_LABEL,
                f"At least one photo is required when any score is {low_score_threshold} or below",
            )
        )

    return result
