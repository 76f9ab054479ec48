"""Activity logging service - inspection lifecycle event tracking."""

from datetime import datetime, timezone
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from fieldops.db.enums import InspectionActivityAction
from fieldops.db.models import InspectionActivity


DEFAULT_ACTIVITY_LIMIT = 20


def log_activity(
    db: Session,
    inspection_id: UUID,
    organization_id: UUID,
    action: InspectionActivityAction,
    performed_by_user_id: UUID | None = None,
    old_status: str | None = None,
    new_status: str | None = None,
    details: dict | None = None,
) -> InspectionActivity:
    """
    Log an inspection lifecycle event.

    Args:
        db: Database session
        inspection_id: The inspection this event is for
        organization_id: Company context
        action: Event type (from InspectionActivityAction enum)
        performed_by_user_id: User who performed the action (None for system)
        old_status / new_status: Status before and after, for transitions
        details: Event-specific details as JSON

    Returns:
        The created activity log entry
    """
    activity = InspectionActivity(
        inspection_id=inspection_id,
        organization_id=organization_id,
        action=action.value,
        old_status=old_status,
        new_status=new_status,
        performed_by_user_id=performed_by_user_id,
        details=details,
        # Sub-second precision keeps newest-first ordering stable
        created_at=datetime.now(timezone.utc),
    )
    db.add(activity)
    db.flush()  # Don't commit - let caller control transaction
    return activity


def list_activity(
    db: Session,
    org_id: UUID,
    inspection_id: UUID,
    limit: int = DEFAULT_ACTIVITY_LIMIT,
) -> list[InspectionActivity]:
    """Return the most recent events for an inspection, newest first."""
    return list(
        db.execute(
            select(InspectionActivity)
            .where(
                InspectionActivity.organization_id == org_id,
                InspectionActivity.inspection_id == inspection_id,
            )
            .order_by(InspectionActivity.created_at.desc())
            .limit(limit)
        ).scalars().all()
    )
