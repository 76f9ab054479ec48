"""Inspection service - company-scoped inspection reads and scheduling."""

import logging
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.orm import Session

from fieldops.core.exceptions import (
    InspectionNotFoundError,
    MemberNotFoundError,
    TemplateNotFoundError,
)
from fieldops.core.inspection_access import can_edit_inspection, check_manage_access, is_manager
from fieldops.core.structured_logging import build_log_context
from fieldops.db.enums import InspectionActivityAction, InspectionStatus
from fieldops.db.models import Inspection, Membership
from fieldops.schemas.auth import UserSession
from fieldops.schemas.inspection import InspectionCreate
from fieldops.services import activity_service, template_assignment, template_service


logger = logging.getLogger(__name__)


# =============================================================================
# Lookup
# =============================================================================

def get_inspection(db: Session, org_id: UUID, inspection_id: UUID) -> Inspection | None:
    """Get an inspection by ID, scoped to the company."""
    return db.execute(
        select(Inspection).where(
            Inspection.id == inspection_id,
            Inspection.organization_id == org_id,
        )
    ).scalar_one_or_none()


def require_inspection(db: Session, session: UserSession, inspection_id: UUID) -> Inspection:
    """
    Get an inspection in the caller's company or raise InspectionNotFoundError.

    An inspection owned by another company is reported exactly like a missing
    one; the distinction is only written to the operator log.
    """
    inspection = get_inspection(db, session.org_id, inspection_id)
    if inspection:
        return inspection

    exists_elsewhere = db.execute(
        select(Inspection.id).where(Inspection.id == inspection_id)
    ).scalar_one_or_none()
    if exists_elsewhere:
        logger.warning(
            "inspection_cross_tenant_access",
            extra=build_log_context(
                user_id=session.user_id,
                org_id=session.org_id,
                inspection_id=inspection_id,
            ),
        )
    raise InspectionNotFoundError()


# =============================================================================
# Scheduling
# =============================================================================

def _require_member(db: Session, org_id: UUID, user_id: UUID) -> None:
    membership = db.execute(
        select(Membership).where(
            Membership.user_id == user_id,
            Membership.organization_id == org_id,
        )
    ).scalar_one_or_none()
    if not membership:
        raise MemberNotFoundError()


def create_inspection(db: Session, session: UserSession, data: InspectionCreate) -> Inspection:
    """
    Schedule an inspection (admin/dispatcher).

    The assignee defaults to the caller. The company's active checklist
    version is bound immediately when one exists.
    """
    check_manage_access(session)

    assignee_id = data.assigned_to_user_id or session.user_id
    if assignee_id != session.user_id:
        _require_member(db, session.org_id, assignee_id)

    inspection = Inspection(
        organization_id=session.org_id,
        lead_id=data.lead_id,
        site_id=data.site_id,
        scheduled_at=data.scheduled_at,
        status=InspectionStatus.OPEN.value,
        assigned_to_user_id=assignee_id,
        notes=data.notes,
        created_by_user_id=session.user_id,
    )
    db.add(inspection)
    db.flush()

    activity_service.log_activity(
        db=db,
        inspection_id=inspection.id,
        organization_id=session.org_id,
        action=InspectionActivityAction.CREATED,
        performed_by_user_id=session.user_id,
        new_status=InspectionStatus.OPEN.value,
        details={"assigned_to_user_id": str(assignee_id)},
    )
    template_assignment.ensure_template_assigned(db, inspection, session.user_id)
    return inspection


def list_inspections(
    db: Session,
    session: UserSession,
    status: InspectionStatus | None = None,
    limit: int = 50,
    offset: int = 0,
) -> tuple[list[Inspection], int]:
    """
    List company inspections, newest scheduled first.

    Workers only see inspections assigned to them.
    """
    query = select(Inspection).where(Inspection.organization_id == session.org_id)
    if not is_manager(session):
        query = query.where(Inspection.assigned_to_user_id == session.user_id)
    if status:
        query = query.where(Inspection.status == status.value)

    total = db.execute(select(func.count()).select_from(query.subquery())).scalar_one()
    rows = db.execute(
        query.order_by(
            Inspection.scheduled_at.desc().nulls_last(),
            Inspection.created_at.desc(),
        )
        .limit(limit)
        .offset(offset)
    ).scalars().all()
    return list(rows), total


def get_inspection_detail(db: Session, session: UserSession, inspection_id: UUID) -> dict:
    """
    Load an inspection for the form view, resolving its template lazily.

    template_state is "missing" when the company has no active version yet;
    that is a displayable state, not an error.
    """
    inspection = require_inspection(db, session, inspection_id)
    version_id = template_assignment.ensure_template_assigned(db, inspection, session.user_id)
    item_count = template_service.count_items(db, session.org_id, version_id) if version_id else 0
    return {
        "inspection": inspection,
        "template_state": "assigned" if version_id else "missing",
        "template_item_count": item_count,
        "can_edit": can_edit_inspection(inspection, session),
    }


def assign_template(db: Session, session: UserSession, inspection_id: UUID) -> tuple[UUID, bool]:
    """
    Explicitly bind the active template (admin/dispatcher).

    Returns (template_version_id, already_assigned).

    Raises:
        TemplateNotFoundError: inspection unbound and company has no active version
    """
    check_manage_access(session)
    inspection = require_inspection(db, session, inspection_id)
    already_assigned = inspection.checklist_template_version_id is not None

    version_id = template_assignment.ensure_template_assigned(db, inspection, session.user_id)
    if not version_id:
        raise TemplateNotFoundError("No active checklist template found for your company")
    return version_id, already_assigned
