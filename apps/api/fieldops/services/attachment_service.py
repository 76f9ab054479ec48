"""Attachment store - inspection files in object storage plus metadata rows.

Upload is two independent steps (object write, then record insert). When the
insert fails the stored object is deleted again; failure of that cleanup is
logged and the original error propagates.
"""

import logging
import os
import uuid
from uuid import UUID

from botocore.exceptions import BotoCoreError, ClientError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from fieldops.core.config import settings
from fieldops.core.exceptions import (
    ChecklistItemNotFoundError,
    InspectionFileNotFoundError,
    InvalidFileError,
    StorageError,
    TemplateNotAssignedError,
)
from fieldops.core.inspection_access import check_edit_access, check_view_access
from fieldops.core.structured_logging import build_log_context
from fieldops.db.models import InspectionFile
from fieldops.schemas.auth import UserSession
from fieldops.services import inspection_service, template_service
from fieldops.services.storage_client import get_s3_client


logger = logging.getLogger(__name__)


# =============================================================================
# Configuration
# =============================================================================

ALLOWED_MIME_TYPES = {
    "image/jpeg",
    "image/png",
    "image/webp",
    "image/heic",
    "image/heif",
    "application/pdf",
}
STORAGE_PREFIX = "inspections"
GENERAL_FOLDER = "general"
LOCAL_URL_PREFIX = "/checklist/files/local"


# =============================================================================
# Storage Backend
# =============================================================================

def _get_storage_backend() -> str:
    return settings.STORAGE_BACKEND


def _get_local_storage_path() -> str:
    path = settings.LOCAL_STORAGE_PATH
    os.makedirs(path, exist_ok=True)
    return path


def resolve_local_path(storage_path: str) -> str:
    """Absolute path for a storage key; refuses keys escaping the storage root."""
    root = os.path.realpath(_get_local_storage_path())
    path = os.path.realpath(os.path.join(root, storage_path))
    if os.path.commonpath([root, path]) != root:
        raise InspectionFileNotFoundError()
    return path


def build_storage_path(
    org_id: UUID,
    inspection_id: UUID,
    item_id: UUID | None,
    file_id: UUID,
    file_name: str,
) -> str:
    """inspections/{company}/{inspection}/{item or "general"}/{file_id}.{ext}"""
    ext = file_name.rsplit(".", 1)[-1].lower() if "." in file_name else "bin"
    folder = str(item_id) if item_id else GENERAL_FOLDER
    return f"{STORAGE_PREFIX}/{org_id}/{inspection_id}/{folder}/{file_id}.{ext}"


def validate_file(file_name: str, mime_type: str, file_size: int) -> None:
    """
    Validate an upload against the type allowlist and size limit.

    Raises:
        InvalidFileError: empty, too large, or disallowed type
    """
    if file_size <= 0:
        raise InvalidFileError("File is empty")
    if mime_type not in ALLOWED_MIME_TYPES:
        raise InvalidFileError(f"Content type '{mime_type}' not allowed")
    if file_size > settings.MAX_INSPECTION_FILE_BYTES:
        max_mb = settings.MAX_INSPECTION_FILE_BYTES / (1024 * 1024)
        raise InvalidFileError(f"File size exceeds {max_mb:.0f} MB limit")


def store_file(storage_path: str, content: bytes, mime_type: str) -> None:
    """Store bytes in the configured backend."""
    try:
        if _get_storage_backend() == "s3":
            get_s3_client().put_object(
                Bucket=settings.S3_BUCKET,
                Key=storage_path,
                Body=content,
                ContentType=mime_type,
            )
        else:
            path = resolve_local_path(storage_path)
            os.makedirs(os.path.dirname(path), exist_ok=True)
            with open(path, "wb") as f:
                f.write(content)
    except (BotoCoreError, ClientError, OSError) as exc:
        raise StorageError() from exc


def delete_file(storage_path: str) -> None:
    """Delete an object from storage (missing local files are ignored)."""
    try:
        if _get_storage_backend() == "s3":
            get_s3_client().delete_object(Bucket=settings.S3_BUCKET, Key=storage_path)
        else:
            path = resolve_local_path(storage_path)
            if os.path.exists(path):
                os.remove(path)
    except (BotoCoreError, ClientError, OSError) as exc:
        raise StorageError() from exc


def generate_signed_url(storage_path: str) -> str:
    """Time-limited download URL (presigned on S3, app-served path locally)."""
    if _get_storage_backend() == "s3":
        try:
            return get_s3_client().generate_presigned_url(
                "get_object",
                Params={"Bucket": settings.S3_BUCKET, "Key": storage_path},
                ExpiresIn=settings.SIGNED_URL_EXPIRY_SECONDS,
            )
        except (BotoCoreError, ClientError):
            logger.warning("inspection_file_signed_url_failed", exc_info=True)
            return ""
    return f"{LOCAL_URL_PREFIX}/{storage_path}"


# =============================================================================
# Service Functions
# =============================================================================

def get_file(db: Session, org_id: UUID, file_id: UUID) -> InspectionFile | None:
    return db.execute(
        select(InspectionFile).where(
            InspectionFile.id == file_id,
            InspectionFile.organization_id == org_id,
        )
    ).scalar_one_or_none()


def files_for_inspection(db: Session, org_id: UUID, inspection_id: UUID) -> list[InspectionFile]:
    return list(
        db.execute(
            select(InspectionFile)
            .where(
                InspectionFile.organization_id == org_id,
                InspectionFile.inspection_id == inspection_id,
            )
            .order_by(InspectionFile.created_at)
        ).scalars().all()
    )


def list_files(db: Session, session: UserSession, inspection_id: UUID) -> list[InspectionFile]:
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    check_view_access(inspection, session)
    return files_for_inspection(db, session.org_id, inspection.id)


def add_file(
    db: Session,
    session: UserSession,
    inspection_id: UUID,
    item_id: UUID | None,
    content: bytes,
    file_name: str,
    mime_type: str,
) -> InspectionFile:
    """
    Upload a file for an inspection, optionally tied to one checklist item.

    Raises:
        InspectionAccessError / InspectionLockedError: edit-lock denies the caller
        InvalidFileError: upload rejected
        ChecklistItemNotFoundError: item_id is not part of the inspection's checklist
        StorageError: object store write failed
    """
    inspection = inspection_service.require_inspection(db, session, inspection_id)
    check_edit_access(inspection, session)
    validate_file(file_name, mime_type, len(content))

    if item_id:
        version_id = inspection.checklist_template_version_id
        if not version_id:
            raise TemplateNotAssignedError()
        if not template_service.get_item(db, session.org_id, version_id, item_id):
            raise ChecklistItemNotFoundError(
                f"Checklist item {item_id} is not part of this inspection's checklist"
            )

    file_id = uuid.uuid4()
    storage_path = build_storage_path(session.org_id, inspection.id, item_id, file_id, file_name)
    log_context = build_log_context(
        user_id=session.user_id,
        org_id=session.org_id,
        inspection_id=inspection.id,
    )

    store_file(storage_path, content, mime_type)

    record = InspectionFile(
        id=file_id,
        organization_id=session.org_id,
        inspection_id=inspection.id,
        checklist_item_id=item_id,
        storage_path=storage_path,
        file_name=file_name,
        file_size=len(content),
        mime_type=mime_type,
        uploaded_by_user_id=session.user_id,
    )
    try:
        db.add(record)
        db.flush()
    except SQLAlchemyError:
        db.rollback()
        # Compensate the object write; the insert error is what the caller sees
        try:
            delete_file(storage_path)
        except StorageError:
            logger.exception("inspection_file_cleanup_failed", extra=log_context)
        raise

    logger.info("inspection_file_stored", extra=log_context)
    return record


def remove_file(db: Session, session: UserSession, file_id: UUID) -> None:
    """
    Delete a file record, attempting to delete the stored object first.

    A storage failure is logged and does not block removal of the record.
    """
    record = get_file(db, session.org_id, file_id)
    if not record:
        raise InspectionFileNotFoundError()

    inspection = inspection_service.require_inspection(db, session, record.inspection_id)
    check_edit_access(inspection, session)

    try:
        delete_file(record.storage_path)
    except StorageError:
        logger.warning(
            "inspection_file_storage_delete_failed",
            exc_info=True,
            extra=build_log_context(
                user_id=session.user_id,
                org_id=session.org_id,
                inspection_id=inspection.id,
            ),
        )

    db.delete(record)
    db.flush()


def get_local_file(db: Session, session: UserSession, storage_path: str) -> tuple[str, InspectionFile]:
    """
    Resolve a local-backend download to (absolute path, record).

    Only files in the caller's company, on an inspection the caller may
    view, are served.
    """
    record = db.execute(
        select(InspectionFile).where(
            InspectionFile.organization_id == session.org_id,
            InspectionFile.storage_path == storage_path,
        )
    ).scalar_one_or_none()
    if not record:
        raise InspectionFileNotFoundError()

    inspection = inspection_service.require_inspection(db, session, record.inspection_id)
    check_view_access(inspection, session)

    path = resolve_local_path(storage_path)
    if not os.path.exists(path):
        raise InspectionFileNotFoundError()
    return path, record
