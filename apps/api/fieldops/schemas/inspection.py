"""Pydantic schemas for inspections and their lifecycle."""

from datetime import datetime
from uuid import UUID

from pydantic import BaseModel, Field

from fieldops.db.enums import InspectionStatus


class InspectionCreate(BaseModel):
    """Request to schedule an inspection (assignee defaults to the caller)."""
    lead_id: UUID | None = None
    site_id: UUID | None = None
    scheduled_at: datetime | None = None
    assigned_to_user_id: UUID | None = None
    notes: str | None = Field(None, max_length=4000)


class InspectionRead(BaseModel):
    id: UUID
    lead_id: UUID | None
    site_id: UUID | None
    scheduled_at: datetime | None
    status: InspectionStatus
    assigned_to_user_id: UUID
    checklist_template_version_id: UUID | None
    submitted_by_user_id: UUID | None
    submitted_at: datetime | None
    notes: str | None
    created_by_user_id: UUID | None
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InspectionDetailRead(InspectionRead):
    """Inspection plus checklist binding state for the form view."""
    template_state: str  # assigned | missing
    template_item_count: int
    can_edit: bool


class InspectionListResponse(BaseModel):
    items: list[InspectionRead]
    total: int


class AssignTemplateResponse(BaseModel):
    inspection_id: UUID
    checklist_template_version_id: UUID
    already_assigned: bool


class InspectionActivityRead(BaseModel):
    id: UUID
    action: str
    old_status: str | None
    new_status: str | None
    performed_by_user_id: UUID | None
    details: dict | None
    created_at: datetime

    model_config = {"from_attributes": True}
