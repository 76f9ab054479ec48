"""Checklist endpoints: templates, responses, files, and validation."""

from typing import Annotated
from uuid import UUID

from fastapi import APIRouter, Depends, File, Form, Query, UploadFile
from fastapi.responses import FileResponse
from sqlalchemy.orm import Session

from fieldops.core.deps import get_current_session, get_db, require_csrf_header, require_roles
from fieldops.db.enums import ROLES_CAN_MANAGE_TEMPLATES
from fieldops.db.models import InspectionFile
from fieldops.schemas.auth import UserSession
from fieldops.schemas.checklist import (
    ChecklistItemRead,
    InspectionFileRead,
    ResponseRead,
    ResponsesListResponse,
    ResponsesUpsertRequest,
    ResponsesUpsertResult,
    TemplateInitResponse,
    TemplateStatusRead,
    TemplateVersionCreate,
    TemplateVersionRead,
    TemplateVersionSummary,
    ValidateRequest,
    ValidationResultRead,
)
from fieldops.services import (
    attachment_service,
    response_service,
    submission_service,
    template_service,
)
from fieldops.services.template_service import TemplateSnapshot


router = APIRouter(prefix="/checklist", tags=["checklist"])


# =============================================================================
# Helpers
# =============================================================================

def _version_read(snapshot: TemplateSnapshot) -> TemplateVersionRead:
    version = snapshot.version
    return TemplateVersionRead(
        id=version.id,
        template_id=version.template_id,
        version_number=version.version_number,
        name=version.name,
        description=version.description,
        is_active=version.is_active,
        created_at=version.created_at,
        items=[ChecklistItemRead.model_validate(item) for item in snapshot.items],
        warnings=snapshot.warnings,
    )


def _file_read(record: InspectionFile) -> InspectionFileRead:
    return InspectionFileRead(
        id=record.id,
        inspection_id=record.inspection_id,
        checklist_item_id=record.checklist_item_id,
        file_name=record.file_name,
        file_size=record.file_size,
        mime_type=record.mime_type,
        uploaded_by_user_id=record.uploaded_by_user_id,
        created_at=record.created_at,
        url=attachment_service.generate_signed_url(record.storage_path),
    )


# =============================================================================
# Templates
# =============================================================================

@router.get("/template", response_model=TemplateVersionRead)
def get_template(
    version_id: UUID | None = Query(None),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Active checklist (or a specific version) with items in display order."""
    if version_id:
        snapshot = template_service.get_template_by_id(db, session.org_id, version_id)
    else:
        snapshot = template_service.get_active_template(db, session.org_id)
    return _version_read(snapshot)


@router.get("/template/status", response_model=TemplateStatusRead)
def get_template_status(
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    status = template_service.get_template_status(db, session.org_id)
    active = status["active_version"]
    return TemplateStatusRead(
        has_active_template=status["has_active_template"],
        active_version=TemplateVersionSummary.model_validate(active) if active else None,
        item_count=status["item_count"],
        versions=[TemplateVersionSummary.model_validate(v) for v in status["versions"]],
        warnings=status["warnings"],
    )


@router.post(
    "/template/init",
    response_model=TemplateInitResponse,
    dependencies=[Depends(require_csrf_header)],
)
def init_template(
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_TEMPLATES)),
):
    """Create the default template and first version; no-op if one is active."""
    version, created = template_service.init_default_template(db, session)
    db.commit()
    item_count = template_service.count_items(db, session.org_id, version.id)
    return TemplateInitResponse(
        created=created,
        version=TemplateVersionSummary.model_validate(version),
        item_count=item_count,
        warnings=template_service.template_warnings(item_count),
    )


@router.post(
    "/template/versions",
    response_model=TemplateVersionRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
def create_template_version(
    data: TemplateVersionCreate,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_TEMPLATES)),
):
    version = template_service.create_template_version(db, session, data)
    db.commit()
    return _version_read(template_service.get_template_by_id(db, session.org_id, version.id))


@router.post(
    "/template/versions/{version_id}/activate",
    response_model=TemplateVersionSummary,
    dependencies=[Depends(require_csrf_header)],
)
def activate_template_version(
    version_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(require_roles(ROLES_CAN_MANAGE_TEMPLATES)),
):
    version = template_service.activate_template_version(db, session.org_id, version_id)
    db.commit()
    return TemplateVersionSummary.model_validate(version)


# =============================================================================
# Responses
# =============================================================================

@router.get("/responses", response_model=ResponsesListResponse)
def list_responses(
    inspection_id: UUID = Query(...),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Stored answers keyed by checklist item id, plus the inspection's files."""
    rows = response_service.get_responses(db, session, inspection_id)
    files = attachment_service.list_files(db, session, inspection_id)
    return ResponsesListResponse(
        inspection_id=inspection_id,
        responses={
            item_id: ResponseRead(value=row.value, note=row.note, updated_at=row.updated_at)
            for item_id, row in rows.items()
        },
        files=[_file_read(f) for f in files],
    )


@router.post(
    "/responses",
    response_model=ResponsesUpsertResult,
    dependencies=[Depends(require_csrf_header)],
)
def save_responses(
    data: ResponsesUpsertRequest,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    counts = response_service.upsert_responses(db, session, data.inspection_id, data.responses)
    db.commit()
    return ResponsesUpsertResult(**counts)


# =============================================================================
# Files
# =============================================================================

@router.post(
    "/files",
    response_model=InspectionFileRead,
    status_code=201,
    dependencies=[Depends(require_csrf_header)],
)
async def upload_file(
    file: Annotated[UploadFile, File()],
    inspection_id: Annotated[UUID, Form()],
    item_id: Annotated[UUID | None, Form()] = None,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Upload a photo/document for an inspection, optionally tied to one item."""
    content = await file.read()
    record = attachment_service.add_file(
        db,
        session,
        inspection_id=inspection_id,
        item_id=item_id,
        content=content,
        file_name=file.filename or "untitled",
        mime_type=file.content_type or "application/octet-stream",
    )
    db.commit()
    return _file_read(record)


@router.get("/files", response_model=list[InspectionFileRead])
def list_files(
    inspection_id: UUID = Query(...),
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    return [_file_read(f) for f in attachment_service.list_files(db, session, inspection_id)]


@router.get("/files/local/{storage_path:path}")
def download_local_file(
    storage_path: str,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Serve a local-backend file (dev/test only; S3 uses presigned URLs)."""
    path, record = attachment_service.get_local_file(db, session, storage_path)
    return FileResponse(path, media_type=record.mime_type, filename=record.file_name)


@router.delete(
    "/files/{file_id}",
    status_code=204,
    dependencies=[Depends(require_csrf_header)],
)
def delete_file(
    file_id: UUID,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    attachment_service.remove_file(db, session, file_id)
    db.commit()


# =============================================================================
# Validation
# =============================================================================

@router.post(
    "/validate",
    response_model=ValidationResultRead,
    dependencies=[Depends(require_csrf_header)],
)
def validate_inspection(
    data: ValidateRequest,
    db: Session = Depends(get_db),
    session: UserSession = Depends(get_current_session),
):
    """Run the submission gate and report per-item errors (never changes status)."""
    result = submission_service.validate_inspection(db, session, data.inspection_id)
    db.commit()  # persists a lazy template binding, if one happened
    return ValidationResultRead(**result.to_dict())
