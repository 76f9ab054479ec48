"""Pydantic schemas for checklist templates, responses, files, and validation."""

from datetime import datetime
from typing import Any
from uuid import UUID

from pydantic import BaseModel, Field

from fieldops.db.enums import ChecklistItemType, ChecklistSection


# =============================================================================
# Templates
# =============================================================================

class EnumOption(BaseModel):
    value: str = Field(..., min_length=1, max_length=100)
    label: str = Field(..., min_length=1, max_length=255)


class ChecklistItemCreate(BaseModel):
    """One item definition inside a new template version."""
    section: ChecklistSection
    sort_order: int = 0
    item_key: str = Field(..., min_length=1, max_length=100, pattern=r"^[a-z0-9_]+$")
    label: str = Field(..., min_length=1, max_length=255)
    help_text: str | None = None
    item_type: ChecklistItemType
    required: bool = False
    validation_rules: dict[str, Any] | None = None
    conditional_logic: dict[str, Any] | None = None
    enum_options: list[EnumOption] | None = None
    default_value: Any | None = None


class TemplateVersionCreate(BaseModel):
    """
    Create the next version of a template with all of its items.

    Omit template_id to start a new template named template_name.
    """
    template_id: UUID | None = None
    template_name: str | None = Field(None, max_length=255)
    name: str = Field(..., min_length=1, max_length=255)
    description: str | None = None
    activate: bool = False
    items: list[ChecklistItemCreate] = Field(default_factory=list)


class ChecklistItemRead(BaseModel):
    id: UUID
    section: ChecklistSection
    sort_order: int
    item_key: str
    label: str
    help_text: str | None
    item_type: ChecklistItemType
    required: bool
    validation_rules: dict[str, Any] | None
    conditional_logic: dict[str, Any] | None
    enum_options: list[dict[str, Any]] | None
    default_value: Any | None

    model_config = {"from_attributes": True}


class TemplateVersionRead(BaseModel):
    """Template version with its items in display order."""
    id: UUID
    template_id: UUID
    version_number: int
    name: str
    description: str | None
    is_active: bool
    created_at: datetime
    items: list[ChecklistItemRead]
    warnings: list[str] = []


class TemplateVersionSummary(BaseModel):
    id: UUID
    template_id: UUID
    version_number: int
    name: str
    is_active: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class TemplateStatusRead(BaseModel):
    """Operator view of the company's checklist setup."""
    has_active_template: bool
    active_version: TemplateVersionSummary | None
    item_count: int
    versions: list[TemplateVersionSummary]
    warnings: list[str]


class TemplateInitResponse(BaseModel):
    created: bool
    version: TemplateVersionSummary
    item_count: int
    warnings: list[str]


# =============================================================================
# Responses
# =============================================================================

class ResponseWrite(BaseModel):
    item_id: UUID
    value: Any | None = None
    note: str | None = Field(None, max_length=4000)


class ResponsesUpsertRequest(BaseModel):
    inspection_id: UUID
    responses: list[ResponseWrite]


class ResponsesUpsertResult(BaseModel):
    saved: int
    removed: int
    skipped: int


class ResponseRead(BaseModel):
    value: Any
    note: str | None
    updated_at: datetime | None = None


# =============================================================================
# Files
# =============================================================================

class InspectionFileRead(BaseModel):
    id: UUID
    inspection_id: UUID
    checklist_item_id: UUID | None
    file_name: str
    file_size: int
    mime_type: str
    uploaded_by_user_id: UUID | None
    created_at: datetime
    url: str


class ResponsesListResponse(BaseModel):
    """All stored answers for an inspection, keyed by checklist item id."""
    inspection_id: UUID
    responses: dict[UUID, ResponseRead]
    files: list[InspectionFileRead]


# =============================================================================
# Validation
# =============================================================================

class ValidateRequest(BaseModel):
    inspection_id: UUID


class ValidationErrorRead(BaseModel):
    item_key: str
    label: str
    message: str


class ValidationResultRead(BaseModel):
    valid: bool
    errors: list[ValidationErrorRead]
    missing_items: list[str]
