"""Enum definitions for application constants."""

from enum import Enum


class Role(str, Enum):
    """
    Company roles.

    - ADMIN: company settings, checklist templates, any inspection
    - DISPATCHER: schedules and assigns inspections, any inspection
    - WORKER: fills out inspections assigned to them
    """
    ADMIN = "admin"
    DISPATCHER = "dispatcher"
    WORKER = "worker"

    @classmethod
    def has_value(cls, value: str) -> bool:
        """Check if value is a valid role."""
        return value in cls._value2member_map_


class InspectionStatus(str, Enum):
    """
    Inspection lifecycle (linear, never backward):

        open → in_progress → submitted → reviewed

    open/in_progress are editable; submitted/reviewed lock workers out.
    """
    OPEN = "open"
    IN_PROGRESS = "in_progress"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"


class ChecklistSection(str, Enum):
    """Fixed, ordered checklist sections (declaration order is display order)."""
    META = "meta"
    CORE_QUALITY = "core_quality"
    MODULES = "modules"
    EXTRAS = "extras"
    FINALIZATION = "finalization"


class ChecklistItemType(str, Enum):
    RATING = "rating"  # 1-5
    BOOLEAN = "boolean"
    ENUM = "enum"
    INTEGER = "integer"
    TEXT = "text"
    TEXTAREA = "textarea"
    TIMESTAMP = "timestamp"
    MULTI_SELECT = "multi_select"


class InspectionActivityAction(str, Enum):
    CREATED = "created"
    TEMPLATE_ASSIGNED = "template_assigned"
    STARTED = "started"
    SUBMITTED = "submitted"
    REVIEWED = "reviewed"


SECTION_ORDER: dict[str, int] = {
    section.value: index for index, section in enumerate(ChecklistSection)
}

EDITABLE_STATUSES = frozenset({InspectionStatus.OPEN.value, InspectionStatus.IN_PROGRESS.value})
LOCKED_STATUSES = frozenset({InspectionStatus.SUBMITTED.value, InspectionStatus.REVIEWED.value})

# Forward-only transitions driven by the state machine
ALLOWED_STATUS_TRANSITIONS: dict[str, frozenset[str]] = {
    InspectionStatus.OPEN.value: frozenset(
        {InspectionStatus.IN_PROGRESS.value, InspectionStatus.SUBMITTED.value}
    ),
    InspectionStatus.IN_PROGRESS.value: frozenset({InspectionStatus.SUBMITTED.value}),
    InspectionStatus.SUBMITTED.value: frozenset({InspectionStatus.REVIEWED.value}),
    InspectionStatus.REVIEWED.value: frozenset(),
}

# Role sets (use these instead of ad-hoc string comparisons)
ROLES_CAN_MANAGE_INSPECTIONS = frozenset({Role.ADMIN, Role.DISPATCHER})
ROLES_CAN_MANAGE_TEMPLATES = frozenset({Role.ADMIN})

# Suffix marking rating items that feed the deviation rule
SCORE_ITEM_SUFFIX = "_score"
DEVIATION_REASON_KEY = "deviation_reason"
