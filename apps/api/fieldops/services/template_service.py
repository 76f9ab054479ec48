"""Checklist template store - versioned checklist definitions per company.

A company has at most one active template version. Versions are immutable once
created with their items; changing a checklist means creating a new version and
activating it.
"""

import logging
from dataclasses import dataclass, field
from uuid import UUID

from sqlalchemy import func, select, update
from sqlalchemy.orm import Session

from fieldops.core.exceptions import InvalidTemplateError, TemplateNotFoundError
from fieldops.core.structured_logging import build_log_context
from fieldops.db.enums import SECTION_ORDER, ChecklistItemType
from fieldops.db.models import ChecklistItem, ChecklistTemplate, ChecklistTemplateVersion
from fieldops.schemas.auth import UserSession
from fieldops.schemas.checklist import ChecklistItemCreate, TemplateVersionCreate


logger = logging.getLogger(__name__)

DEFAULT_TEMPLATE_NAME = "Standard Cleaning Inspection"
DEFAULT_TEMPLATE_DESCRIPTION = "Default standardized cleaning inspection checklist"
DEFAULT_VERSION_NAME = "v1.0 - Standard Cleaning Inspection"
DEFAULT_VERSION_DESCRIPTION = "Initial version of standardized cleaning inspection checklist"

NO_ITEMS_WARNING = (
    "Checklist template version has no items. "
    "Seed checklist items before inspections can be completed."
)
NO_ACTIVE_TEMPLATE_WARNING = "No active checklist template. Inspections cannot be filled out."

OPTION_ITEM_TYPES = frozenset({ChecklistItemType.ENUM, ChecklistItemType.MULTI_SELECT})
NUMERIC_RULES = ("min", "max", "max_length")


@dataclass
class TemplateSnapshot:
    """A template version with its items in display order."""
    version: ChecklistTemplateVersion
    items: list[ChecklistItem]
    warnings: list[str] = field(default_factory=list)


# =============================================================================
# Ordering
# =============================================================================

def item_sort_key(item: ChecklistItem) -> tuple[int, int, int]:
    """Section in fixed order, then sort_order, then insertion position."""
    return (SECTION_ORDER.get(item.section, len(SECTION_ORDER)), item.sort_order, item.seq)


def sort_items(items: list[ChecklistItem]) -> list[ChecklistItem]:
    return sorted(items, key=item_sort_key)


def template_warnings(item_count: int) -> list[str]:
    if item_count == 0:
        return [NO_ITEMS_WARNING]
    return []


# =============================================================================
# Reads
# =============================================================================

def get_active_version(db: Session, org_id: UUID) -> ChecklistTemplateVersion | None:
    """Return the company's active version (newest first if the invariant was ever broken)."""
    return db.execute(
        select(ChecklistTemplateVersion)
        .where(
            ChecklistTemplateVersion.organization_id == org_id,
            ChecklistTemplateVersion.is_active.is_(True),
        )
        .order_by(
            ChecklistTemplateVersion.created_at.desc(),
            ChecklistTemplateVersion.version_number.desc(),
        )
        .limit(1)
    ).scalar_one_or_none()


def get_version(db: Session, org_id: UUID, version_id: UUID) -> ChecklistTemplateVersion | None:
    return db.execute(
        select(ChecklistTemplateVersion).where(
            ChecklistTemplateVersion.id == version_id,
            ChecklistTemplateVersion.organization_id == org_id,
        )
    ).scalar_one_or_none()


def list_versions(db: Session, org_id: UUID) -> list[ChecklistTemplateVersion]:
    return list(
        db.execute(
            select(ChecklistTemplateVersion)
            .where(ChecklistTemplateVersion.organization_id == org_id)
            .order_by(ChecklistTemplateVersion.created_at.desc())
        ).scalars().all()
    )


def get_version_items(db: Session, org_id: UUID, version_id: UUID) -> list[ChecklistItem]:
    """All items of a version, ordered for display."""
    items = db.execute(
        select(ChecklistItem).where(
            ChecklistItem.template_version_id == version_id,
            ChecklistItem.organization_id == org_id,
        )
    ).scalars().all()
    return sort_items(list(items))


def get_item(
    db: Session,
    org_id: UUID,
    version_id: UUID,
    item_id: UUID,
) -> ChecklistItem | None:
    """Get an item only if it belongs to the given version."""
    return db.execute(
        select(ChecklistItem).where(
            ChecklistItem.id == item_id,
            ChecklistItem.template_version_id == version_id,
            ChecklistItem.organization_id == org_id,
        )
    ).scalar_one_or_none()


def count_items(db: Session, org_id: UUID, version_id: UUID) -> int:
    return db.execute(
        select(func.count(ChecklistItem.id)).where(
            ChecklistItem.template_version_id == version_id,
            ChecklistItem.organization_id == org_id,
        )
    ).scalar_one()


def _snapshot(db: Session, org_id: UUID, version: ChecklistTemplateVersion) -> TemplateSnapshot:
    items = get_version_items(db, org_id, version.id)
    warnings = template_warnings(len(items))
    if warnings and version.is_active:
        logger.warning(
            "checklist_active_template_empty",
            extra=build_log_context(org_id=org_id),
        )
    return TemplateSnapshot(version=version, items=items, warnings=warnings)


def get_active_template(db: Session, org_id: UUID) -> TemplateSnapshot:
    """
    Get the company's active template version with ordered items.

    Raises:
        TemplateNotFoundError: company has no active version
    """
    version = get_active_version(db, org_id)
    if not version:
        logger.warning("checklist_template_not_found", extra=build_log_context(org_id=org_id))
        raise TemplateNotFoundError("No active checklist template found for your company")
    return _snapshot(db, org_id, version)


def get_template_by_id(db: Session, org_id: UUID, version_id: UUID) -> TemplateSnapshot:
    """
    Get a specific template version (active or not) with ordered items.

    Raises:
        TemplateNotFoundError: version absent or owned by another company
    """
    version = get_version(db, org_id, version_id)
    if not version:
        raise TemplateNotFoundError("Checklist template version not found")
    return _snapshot(db, org_id, version)


def get_template_status(db: Session, org_id: UUID) -> dict:
    """Summarize checklist setup for operators, surfacing empty or missing templates."""
    active = get_active_version(db, org_id)
    item_count = count_items(db, org_id, active.id) if active else 0
    if active:
        warnings = template_warnings(item_count)
    else:
        warnings = [NO_ACTIVE_TEMPLATE_WARNING]
    return {
        "has_active_template": active is not None,
        "active_version": active,
        "item_count": item_count,
        "versions": list_versions(db, org_id),
        "warnings": warnings,
    }


# =============================================================================
# Admin writes
# =============================================================================

def _next_version_number(db: Session, template_id: UUID) -> int:
    current = db.execute(
        select(func.max(ChecklistTemplateVersion.version_number)).where(
            ChecklistTemplateVersion.template_id == template_id
        )
    ).scalar_one()
    return (current or 0) + 1


def _validate_item_definitions(items: list[ChecklistItemCreate]) -> None:
    seen: set[str] = set()
    for item in items:
        if item.item_key in seen:
            raise InvalidTemplateError(f"Duplicate item_key '{item.item_key}'")
        seen.add(item.item_key)
        if item.item_type in OPTION_ITEM_TYPES and not item.enum_options:
            raise InvalidTemplateError(
                f"Item '{item.item_key}' of type {item.item_type.value} needs enum_options"
            )
        rules = item.validation_rules or {}
        for name in NUMERIC_RULES:
            bound = rules.get(name)
            if bound is not None and (isinstance(bound, bool) or not isinstance(bound, int)):
                raise InvalidTemplateError(
                    f"Item '{item.item_key}' rule '{name}' must be a whole number"
                )
        low, high = rules.get("min"), rules.get("max")
        if low is not None and high is not None and low > high:
            raise InvalidTemplateError(f"Item '{item.item_key}' has min greater than max")


def _deactivate_other_versions(db: Session, org_id: UUID, keep_version_id: UUID) -> None:
    db.execute(
        update(ChecklistTemplateVersion)
        .where(
            ChecklistTemplateVersion.organization_id == org_id,
            ChecklistTemplateVersion.id != keep_version_id,
            ChecklistTemplateVersion.is_active.is_(True),
        )
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )


def _deactivate_other_templates(db: Session, org_id: UUID, keep_template_id: UUID) -> None:
    db.execute(
        update(ChecklistTemplate)
        .where(
            ChecklistTemplate.organization_id == org_id,
            ChecklistTemplate.id != keep_template_id,
            ChecklistTemplate.is_active.is_(True),
        )
        .values(is_active=False)
        .execution_options(synchronize_session="fetch")
    )


def create_template_version(
    db: Session,
    session: UserSession,
    data: TemplateVersionCreate,
) -> ChecklistTemplateVersion:
    """
    Create the next version of a template together with all of its items.

    Items cannot be added later; to change a checklist, create another version.
    """
    _validate_item_definitions(data.items)

    if data.template_id:
        template = db.execute(
            select(ChecklistTemplate).where(
                ChecklistTemplate.id == data.template_id,
                ChecklistTemplate.organization_id == session.org_id,
            )
        ).scalar_one_or_none()
        if not template:
            raise TemplateNotFoundError("Checklist template not found")
    else:
        template = ChecklistTemplate(
            organization_id=session.org_id,
            name=(data.template_name or data.name).strip(),
            description=data.description,
        )
        db.add(template)
        db.flush()

    version = ChecklistTemplateVersion(
        organization_id=session.org_id,
        template_id=template.id,
        version_number=_next_version_number(db, template.id),
        name=data.name.strip(),
        description=data.description,
        is_active=False,
        created_by_user_id=session.user_id,
    )
    db.add(version)
    db.flush()

    for position, item in enumerate(data.items):
        db.add(
            ChecklistItem(
                organization_id=session.org_id,
                template_version_id=version.id,
                section=item.section.value,
                sort_order=item.sort_order,
                seq=position,
                item_key=item.item_key,
                label=item.label,
                help_text=item.help_text,
                item_type=item.item_type.value,
                required=item.required,
                validation_rules=item.validation_rules,
                conditional_logic=item.conditional_logic,
                enum_options=(
                    [option.model_dump() for option in item.enum_options]
                    if item.enum_options
                    else None
                ),
                default_value=item.default_value,
            )
        )
    db.flush()

    logger.info(
        "checklist_version_created",
        extra=build_log_context(user_id=session.user_id, org_id=session.org_id),
    )
    if not data.items:
        logger.warning(
            "checklist_version_created_without_items",
            extra=build_log_context(user_id=session.user_id, org_id=session.org_id),
        )

    if data.activate:
        activate_template_version(db, session.org_id, version.id)
    return version


def activate_template_version(
    db: Session,
    org_id: UUID,
    version_id: UUID,
) -> ChecklistTemplateVersion:
    """Make one version active and deactivate every other version of the company."""
    version = get_version(db, org_id, version_id)
    if not version:
        raise TemplateNotFoundError("Checklist template version not found")

    _deactivate_other_versions(db, org_id, version.id)
    _deactivate_other_templates(db, org_id, version.template_id)
    version.is_active = True
    version.template.is_active = True
    db.flush()

    logger.info("checklist_version_activated", extra=build_log_context(org_id=org_id))
    return version


def init_default_template(
    db: Session,
    session: UserSession,
) -> tuple[ChecklistTemplateVersion, bool]:
    """
    Create the default template and its first version (no items) if needed.

    Idempotent: when the company already has an active version it is returned
    unchanged. Returns (version, created).
    """
    existing = get_active_version(db, session.org_id)
    if existing:
        return existing, False

    template = ChecklistTemplate(
        organization_id=session.org_id,
        name=DEFAULT_TEMPLATE_NAME,
        description=DEFAULT_TEMPLATE_DESCRIPTION,
        is_active=True,
    )
    db.add(template)
    db.flush()

    version = ChecklistTemplateVersion(
        organization_id=session.org_id,
        template_id=template.id,
        version_number=1,
        name=DEFAULT_VERSION_NAME,
        description=DEFAULT_VERSION_DESCRIPTION,
        is_active=True,
        created_by_user_id=session.user_id,
    )
    db.add(version)
    db.flush()

    logger.warning(
        "checklist_default_template_created_without_items",
        extra=build_log_context(user_id=session.user_id, org_id=session.org_id),
    )
    return version, True
