"""Inspection access control - centralized edit-lock and lifecycle permission checks.

Edit-lock policy:
- admin/dispatcher: may edit any inspection in their company, in any status
- worker: may edit only inspections assigned to them, and only while the
  status is open or in_progress

Company scoping is NOT checked here; callers load inspections through
org-scoped queries, so a row from another company never reaches these checks.
"""

from fieldops.core.exceptions import (
    InspectionAccessError,
    InspectionLockedError,
    InvalidStatusTransitionError,
)
from fieldops.db.enums import (
    ALLOWED_STATUS_TRANSITIONS,
    EDITABLE_STATUSES,
    LOCKED_STATUSES,
    ROLES_CAN_MANAGE_INSPECTIONS,
    InspectionStatus,
)
from fieldops.db.models import Inspection
from fieldops.schemas.auth import UserSession


def is_manager(session: UserSession) -> bool:
    """Admin or dispatcher."""
    return session.role in ROLES_CAN_MANAGE_INSPECTIONS


def is_assignee(inspection: Inspection, session: UserSession) -> bool:
    return inspection.assigned_to_user_id == session.user_id


def can_edit_inspection(inspection: Inspection, session: UserSession) -> bool:
    """Return True if the caller may write responses/files on this inspection."""
    if is_manager(session):
        return True
    return is_assignee(inspection, session) and inspection.status in EDITABLE_STATUSES


def check_edit_access(inspection: Inspection, session: UserSession) -> None:
    """
    Enforce the edit-lock policy for response and file writes.

    Raises:
        InspectionAccessError: worker is not the assignee
        InspectionLockedError: worker on a submitted/reviewed inspection
    """
    if is_manager(session):
        return
    if not is_assignee(inspection, session):
        raise InspectionAccessError("Only the assigned worker can edit this inspection")
    if inspection.status in LOCKED_STATUSES:
        raise InspectionLockedError()


def check_manage_access(session: UserSession) -> None:
    """Require admin or dispatcher."""
    if not is_manager(session):
        raise InspectionAccessError(
            f"Role '{session.role.value}' not authorized for this action"
        )


def check_transition(inspection: Inspection, target: InspectionStatus) -> None:
    """
    Verify the lifecycle allows moving from the current status to target.

    Raises:
        InvalidStatusTransitionError: backward move, skip, or terminal status
    """
    allowed = ALLOWED_STATUS_TRANSITIONS.get(inspection.status, frozenset())
    if target.value not in allowed:
        raise InvalidStatusTransitionError(
            f"Cannot move inspection from '{inspection.status}' to '{target.value}'"
        )


def check_progress_access(
    inspection: Inspection,
    session: UserSession,
    target: InspectionStatus,
) -> None:
    """
    Authorize a worker-driven transition (start or submit).

    The assigned worker or an admin/dispatcher may advance the inspection,
    and only while its status is open or in_progress.
    """
    if not (is_manager(session) or is_assignee(inspection, session)):
        raise InspectionAccessError(
            "Only the assigned worker or an admin/dispatcher can update this inspection"
        )
    check_transition(inspection, target)


def check_view_access(inspection: Inspection, session: UserSession) -> None:
    """
    Edit-lock ownership rule without the status lock, for reading stored
    responses, file listings and file downloads.

    Raises:
        InspectionAccessError: worker is not the assignee
    """
    if not (is_manager(session) or is_assignee(inspection, session)):
        raise InspectionAccessError("Only the assigned worker or an admin/dispatcher can view this inspection")
