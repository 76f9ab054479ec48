"""Inspection endpoints: scheduling, detail, and lifecycle transitions."""

from uuid import UUID

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse
from sqlalchemy.orm import Session

from fieldops.core.deps import get_current_session, get_db, require_csrf_header
from fieldops.db.enums import InspectionStatus
from fieldops.schemas.auth import UserSession
from fieldops.schemas.inspection import (
    AssignTemplateResponse,
    InspectionActivityRead,
    InspectionCreate,
    InspectionDetailRead,
    InspectionListResponse,
    InspectionRead,
)
from fieldops.services import (
    activity_service,
    inspection_service,
    submission_service,
)


router = APIRouter(prefix="/inspections", tags=["inspections"])


@router.post(
    "",
    response_model=InspectionRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_inspection(
    data: InspectionCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Schedule an inspection (admin/dispatcher); binds the active checklist."""
    inspection = inspection_service.create_inspection(db, session, data)
    db.commit()
    return inspection


@router.get("", response_model=InspectionListResponse)
def list_inspections(
    status: InspectionStatus | None = Query(None),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    items, total = inspection_service.list_inspections(
        db, session, status=status, limit=limit, offset=offset
    )
    return InspectionListResponse(
        items=[InspectionRead.model_validate(i) for i in items],
        total=total,
    )


@router.get("/{inspection_id}", response_model=InspectionDetailRead)
def get_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """
    Inspection detail for the checklist form.

    Binds the company's active checklist on first view. template_state is
    "missing" when there is nothing to bind yet.
    """
    detail = inspection_service.get_inspection_detail(db, session, inspection_id)
    db.commit()
    base = InspectionRead.model_validate(detail["inspection"])
    return InspectionDetailRead(
        **base.model_dump(),
        template_state=detail["template_state"],
        template_item_count=detail["template_item_count"],
        can_edit=detail["can_edit"],
    )


@router.post(
    "/{inspection_id}/start",
    response_model=InspectionRead,
    dependencies=[Depends(require_csrf_header)],
)
def start_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    inspection = submission_service.start_inspection(db, session, inspection_id)
    db.commit()
    return inspection


@router.post(
    "/{inspection_id}/submit",
    response_model=InspectionRead,
    dependencies=[Depends(require_csrf_header)],
)
def submit_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """
    Submit an inspection through the validation gate.

    Returns 400 with itemized validation_errors when the checklist is
    incomplete; the inspection status is left unchanged in that case.
    """
    result = submission_service.submit_inspection(db, session, inspection_id)
    db.commit()
    if not result.submitted:
        gate = result.validation.to_dict()
        return JSONResponse(
            status_code=400,
            content={
                "detail": "Validation failed",
                "validation_errors": gate["errors"],
                "missing_items": gate["missing_items"],
            },
        )
    return result.inspection


@router.post(
    "/{inspection_id}/review",
    response_model=InspectionRead,
    dependencies=[Depends(require_csrf_header)],
)
def review_inspection(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    inspection = submission_service.review_inspection(db, session, inspection_id)
    db.commit()
    return inspection


@router.post(
    "/{inspection_id}/assign-template",
    response_model=AssignTemplateResponse,
    dependencies=[Depends(require_csrf_header)],
)
def assign_template(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Bind the active checklist (admin/dispatcher). Existing bindings are returned as-is."""
    version_id, already_assigned = inspection_service.assign_template(db, session, inspection_id)
    db.commit()
    return AssignTemplateResponse(
        inspection_id=inspection_id,
        checklist_template_version_id=version_id,
        already_assigned=already_assigned,
    )


@router.get("/{inspection_id}/activity", response_model=list[InspectionActivityRead])
def list_activity(
    inspection_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    return activity_service.list_activity(db, session.org_id, inspection.id)
