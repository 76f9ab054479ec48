"""Pydantic schemas for API request/response models."""

from fieldops.schemas.auth import TokenPayload, UserSession
from fieldops.schemas.checklist import (
    ChecklistItemCreate,
    ChecklistItemRead,
    InspectionFileRead,
    ResponsesUpsertRequest,
    TemplateVersionCreate,
    TemplateVersionRead,
    ValidationResultRead,
)
from fieldops.schemas.inspection import (
    InspectionCreate,
    InspectionDetailRead,
    InspectionListResponse,
    InspectionRead,
)

__all__ = [
    # Auth
    "TokenPayload",
    "UserSession",
    # Checklist
    "ChecklistItemCreate",
    "ChecklistItemRead",
    "InspectionFileRead",
    "ResponsesUpsertRequest",
    "TemplateVersionCreate",
    "TemplateVersionRead",
    "ValidationResultRead",
    # Inspections
    "InspectionCreate",
    "InspectionDetailRead",
    "InspectionListResponse",
    "InspectionRead",
]
