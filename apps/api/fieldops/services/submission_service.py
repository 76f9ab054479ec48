"""Submission state machine - inspection lifecycle and the submission gate.

    open -> in_progress -> submitted -> reviewed

Every status write is a compare-and-swap on the expected prior status, scoped
by company and inspection id. Losing a race surfaces as
InvalidStatusTransitionError instead of silently overwriting the winner.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import update
from sqlalchemy.orm import Session

from fieldops.core.config import settings
from fieldops.core.exceptions import InvalidStatusTransitionError, TemplateNotAssignedError
from fieldops.core.inspection_access import (
    check_manage_access,
    check_progress_access,
    check_transition,
)
from fieldops.core.structured_logging import build_log_context
from fieldops.db.enums import EDITABLE_STATUSES, InspectionActivityAction, InspectionStatus
from fieldops.db.models import Inspection
from fieldops.schemas.auth import UserSession
from fieldops.services import (
    activity_service,
    attachment_service,
    checklist_validation,
    inspection_service,
    response_service,
    template_assignment,
    template_service,
)
from fieldops.services.checklist_validation import ValidationResult


logger = logging.getLogger(__name__)


@dataclass
class SubmissionResult:
    inspection: Inspection
    validation: ValidationResult

    @property
    def submitted(self) -> bool:
        return self.validation.valid


# =============================================================================
# Validation gate
# =============================================================================

def _run_gate(db: Session, session: UserSession, inspection: Inspection) -> ValidationResult:
    version_id = template_assignment.ensure_template_assigned(db, inspection, session.user_id)
    if not version_id:
        raise TemplateNotAssignedError()

    items = template_service.get_version_items(db, session.org_id, version_id)
    responses = response_service.response_values(db, session.org_id, inspection.id)
    files = attachment_service.files_for_inspection(db, session.org_id, inspection.id)
    return checklist_validation.validate(
        items,
        responses,
        files,
        low_score_threshold=settings.LOW_SCORE_THRESHOLD,
    )


def validate_inspection(db: Session, session: UserSession, inspection_id: UUID) -> ValidationResult:
    """Run the submission gate without changing anything but a lazy template binding."""
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    return _run_gate(db, session, inspection)


# =============================================================================
# Transitions
# =============================================================================

def _apply_transition(
    db: Session,
    session: UserSession,
    inspection: Inspection,
    expected: frozenset[str],
    target: InspectionStatus,
    action: InspectionActivityAction,
    **values,
) -> Inspection:
    old_status = inspection.status
    result = db.execute(
        update(Inspection)
        .where(
            Inspection.id == inspection.id,
            Inspection.organization_id == session.org_id,
            Inspection.status.in_(sorted(expected)),
        )
        .values(status=target.value, **values)
        .execution_options(synchronize_session=False)
    )
    db.refresh(inspection)
    if result.rowcount == 0:
        raise InvalidStatusTransitionError(
            f"Inspection status changed to '{inspection.status}' by another request"
        )

    activity_service.log_activity(
        db=db,
        inspection_id=inspection.id,
        organization_id=session.org_id,
        action=action,
        performed_by_user_id=session.user_id,
        old_status=old_status,
        new_status=target.value,
    )
    return inspection


def start_inspection(db: Session, session: UserSession, inspection_id: UUID) -> Inspection:
    """open -> in_progress (assignee or admin/dispatcher)."""
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    check_progress_access(inspection, session, InspectionStatus.IN_PROGRESS)
    return _apply_transition(
        db,
        session,
        inspection,
        expected=frozenset({InspectionStatus.OPEN.value}),
        target=InspectionStatus.IN_PROGRESS,
        action=InspectionActivityAction.STARTED,
    )


def submit_inspection(db: Session, session: UserSession, inspection_id: UUID) -> SubmissionResult:
    """
    Validate and, only if valid, move to submitted.

    A failed gate leaves the inspection untouched and returns the same errors
    validate_inspection would. Safe to retry after fixing responses.

    Raises:
        InspectionAccessError: caller is neither the assignee nor admin/dispatcher
        InvalidStatusTransitionError: status is not open/in_progress, or a
            concurrent request changed it first
        TemplateNotAssignedError: no checklist version can be bound
    """
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    check_progress_access(inspection, session, InspectionStatus.SUBMITTED)

    log_context = build_log_context(
        user_id=session.user_id,
        org_id=session.org_id,
        inspection_id=inspection.id,
    )

    validation = _run_gate(db, session, inspection)
    if not validation.valid:
        logger.info(
            "inspection_submission_blocked errors=%s",
            len(validation.errors),
            extra=log_context,
        )
        return SubmissionResult(inspection=inspection, validation=validation)

    _apply_transition(
        db,
        session,
        inspection,
        expected=EDITABLE_STATUSES,
        target=InspectionStatus.SUBMITTED,
        action=InspectionActivityAction.SUBMITTED,
        submitted_by_user_id=session.user_id,
        submitted_at=datetime.now(timezone.utc),
    )
    logger.info("inspection_submitted", extra=log_context)
    return SubmissionResult(inspection=inspection, validation=validation)


def review_inspection(db: Session, session: UserSession, inspection_id: UUID) -> Inspection:
    """submitted -> reviewed (admin/dispatcher)."""
    check_manage_access(session)
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    check_transition(inspection, InspectionStatus.REVIEWED)
    return _apply_transition(
        db,
        session,
        inspection,
        expected=frozenset({InspectionStatus.SUBMITTED.value}),
        target=InspectionStatus.REVIEWED,
        action=InspectionActivityAction.REVIEWED,
    )
