"""Template assignment resolver - binds an inspection to a checklist version once.

The binding is lazy (first read, creation, or an explicit admin/dispatcher
action) and set-once: a bound inspection keeps its version even after the
company activates a newer one.
"""

import logging
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from fieldops.core.structured_logging import build_log_context
from fieldops.db.enums import InspectionActivityAction
from fieldops.db.models import Inspection
from fieldops.services import activity_service, template_service


logger = logging.getLogger(__name__)


def ensure_template_assigned(
    db: Session,
    inspection: Inspection,
    performed_by_user_id: UUID | None = None,
) -> UUID | None:
    """
    Return the inspection's template version id, binding the active one if unset.

    Returns None (and leaves the inspection unbound) when the company has no
    active version; callers surface that as a "no template" state.
    """
    if inspection.checklist_template_version_id:
        return inspection.checklist_template_version_id

    active = template_service.get_active_version(db, inspection.organization_id)
    if not active:
        logger.info(
            "template_assignment_no_active_template",
            extra=build_log_context(
                org_id=inspection.organization_id,
                inspection_id=inspection.id,
            ),
        )
        return None

    # Guarded write: never overwrite a binding made by a concurrent request
    result = db.execute(
        update(Inspection)
        .where(
            Inspection.id == inspection.id,
            Inspection.organization_id == inspection.organization_id,
            Inspection.checklist_template_version_id.is_(None),
        )
        .values(checklist_template_version_id=active.id)
        .execution_options(synchronize_session=False)
    )
    db.refresh(inspection)

    if result.rowcount == 0:
        return inspection.checklist_template_version_id

    activity_service.log_activity(
        db=db,
        inspection_id=inspection.id,
        organization_id=inspection.organization_id,
        action=InspectionActivityAction.TEMPLATE_ASSIGNED,
        performed_by_user_id=performed_by_user_id,
        details={"template_version_id": str(active.id)},
    )
    logger.info(
        "template_assigned",
        extra=build_log_context(
            user_id=performed_by_user_id,
            org_id=inspection.organization_id,
            inspection_id=inspection.id,
        ),
    )
    return active.id
