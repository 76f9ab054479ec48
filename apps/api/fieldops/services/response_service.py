"""Response store - per-inspection, per-item answers with upsert-by-key writes."""

import logging
from typing import Any
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops.core.exceptions import ChecklistItemNotFoundError, TemplateNotAssignedError
from fieldops.core.inspection_access import check_edit_access, check_view_access
from fieldops.core.structured_logging import build_log_context
from fieldops.db.models import InspectionResponse
from fieldops.schemas.auth import UserSession
from fieldops.schemas.checklist import ResponseWrite
from fieldops.services import inspection_service, template_service
from fieldops.services.response_values import is_empty_value, parse_response_value


logger = logging.getLogger(__name__)


def _stored_responses(db: Session, org_id: UUID, inspection_id: UUID) -> list[InspectionResponse]:
    return list(
        db.execute(
            select(InspectionResponse).where(
                InspectionResponse.organization_id == org_id,
                InspectionResponse.inspection_id == inspection_id,
            )
        ).scalars().all()
    )


def upsert_responses(
    db: Session,
    session: UserSession,
    inspection_id: UUID,
    entries: list[ResponseWrite],
) -> dict[str, int]:
    """
    Write answers keyed by (company, inspection, item).

    Empty values (None, "", []) are never stored: they remove an existing
    answer for that item, or are skipped when there is none. When the same item
    appears more than once, the last entry wins.

    Returns counts: saved, removed, skipped.

    Raises:
        InspectionAccessError / InspectionLockedError: edit-lock denies the caller
        TemplateNotAssignedError: inspection has no checklist version yet
        ChecklistItemNotFoundError: item is not part of the inspection's version
        InvalidResponseValueError: value does not match the item's type
    """
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    check_edit_access(inspection, session)

    version_id = inspection.checklist_template_version_id
    if not version_id:
        raise TemplateNotAssignedError()

    items = {item.id: item for item in template_service.get_version_items(db, session.org_id, version_id)}
    existing = {row.checklist_item_id: row for row in _stored_responses(db, session.org_id, inspection.id)}

    latest: dict[UUID, ResponseWrite] = {}
    for entry in entries:
        if entry.item_id not in items:
            raise ChecklistItemNotFoundError(
                f"Checklist item {entry.item_id} is not part of this inspection's checklist"
            )
        latest[entry.item_id] = entry

    saved = removed = skipped = 0
    for item_id, entry in latest.items():
        item = items[item_id]
        row = existing.get(item_id)

        if is_empty_value(entry.value):
            if row:
                db.delete(row)
                removed += 1
            else:
                skipped += 1
            continue

        value = parse_response_value(item, entry.value).to_json()
        note = entry.note or None
        if row:
            row.value = value
            row.note = note
            row.updated_by_user_id = session.user_id
        else:
            db.add(
                InspectionResponse(
                    organization_id=session.org_id,
                    inspection_id=inspection.id,
                    checklist_item_id=item_id,
                    value=value,
                    note=note,
                    updated_by_user_id=session.user_id,
                )
            )
        saved += 1

    db.flush()

    logger.info(
        "checklist_responses_saved",
        extra=build_log_context(
            user_id=session.user_id,
            org_id=session.org_id,
            inspection_id=inspection.id,
        ),
    )
    if removed or skipped:
        logger.debug(
            "checklist_empty_responses_dropped removed=%s skipped=%s",
            removed,
            skipped,
            extra=build_log_context(org_id=session.org_id, inspection_id=inspection.id),
        )
    return {"saved": saved, "removed": removed, "skipped": skipped}


def get_responses(
    db: Session,
    session: UserSession,
    inspection_id: UUID,
) -> dict[UUID, InspectionResponse]:
    """Stored answers for an inspection in the caller's company, keyed by item id."""
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    check_view_access(inspection, session)
    return {
        row.checklist_item_id: row
        for row in _stored_responses(db, session.org_id, inspection.id)
    }


def response_values(db: Session, org_id: UUID, inspection_id: UUID) -> dict[UUID, Any]:
    """Raw stored values keyed by item id (validation engine input)."""
    return {
        row.checklist_item_id: row.value
        for row in _stored_responses(db, org_id, inspection_id)
    }
