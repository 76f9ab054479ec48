"""SQLAlchemy ORM models for companies, checklist templates, and inspections.

All domain rows carry ``organization_id`` (the company) and every query must
filter by it; that filter is the only tenant isolation mechanism.
"""

from __future__ import annotations

import uuid
from datetime import datetime
from typing import Any

from sqlalchemy import (
    JSON,
    Boolean,
    CheckConstraint,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
    func,
    text,
)
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import Mapped, mapped_column, relationship

from fieldops.db.base import Base
from fieldops.db.enums import InspectionStatus, Role

JSON_TYPE = JSON().with_variant(JSONB, "postgresql")


# =============================================================================
# Company & Identity (owned by the identity collaborator; kept minimal)
# =============================================================================

class Company(Base):
    """
    A tenant in the multi-tenant system.

    All domain entities belong to a company
    and must be scoped by organization_id in all queries.
    """
    __tablename__ = "companies"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    email: Mapped[str] = mapped_column(String(255), unique=True, nullable=False)
    display_name: Mapped[str] = mapped_column(String(255), nullable=False)
    token_version: Mapped[int] = mapped_column(
        Integer, default=1, server_default=text("1"), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    membership: Mapped["Membership | None"] = relationship(back_populates="user", uselist=False)


class Membership(Base):
    """One company + role per user."""
    __tablename__ = "memberships"
    __table_args__ = (
        UniqueConstraint("user_id", name="uq_memberships_user"),
        Index("idx_memberships_org", "organization_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    role: Mapped[str] = mapped_column(
        String(20), default=Role.WORKER.value, nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    user: Mapped["User"] = relationship(back_populates="membership")
    company: Mapped["Company"] = relationship()


# =============================================================================
# Checklist Templates
# =============================================================================

class ChecklistTemplate(Base):
    """Named checklist; its content lives in immutable versions."""
    __tablename__ = "checklist_templates"
    __table_args__ = (Index("idx_checklist_templates_org", "organization_id"),)

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default=text("true"), nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    versions: Mapped[list["ChecklistTemplateVersion"]] = relationship(
        back_populates="template", order_by="ChecklistTemplateVersion.version_number"
    )


class ChecklistTemplateVersion(Base):
    """
    Immutable-once-populated snapshot of a checklist.

    At most one version per company is active at a time; activation logic in
    template_service keeps that invariant (there is no partial unique index).
    """
    __tablename__ = "checklist_template_versions"
    __table_args__ = (
        UniqueConstraint("template_id", "version_number", name="uq_template_version_number"),
        Index("idx_template_versions_org_active", "organization_id", "is_active"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    template_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("checklist_templates.id", ondelete="CASCADE"), nullable=False
    )
    version_number: Mapped[int] = mapped_column(Integer, nullable=False)
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    description: Mapped[str | None] = mapped_column(Text, nullable=True)
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)

    template: Mapped["ChecklistTemplate"] = relationship(back_populates="versions")
    items: Mapped[list["ChecklistItem"]] = relationship(
        back_populates="template_version",
        order_by="ChecklistItem.seq",
    )


class ChecklistItem(Base):
    """One question/field definition within a template version."""
    __tablename__ = "checklist_items"
    __table_args__ = (
        UniqueConstraint("template_version_id", "item_key", name="uq_checklist_item_key"),
        Index("idx_checklist_items_version", "template_version_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    template_version_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("checklist_template_versions.id", ondelete="CASCADE"),
        nullable=False,
    )
    section: Mapped[str] = mapped_column(String(30), nullable=False)
    sort_order: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    # Insertion position; breaks sort_order ties
    seq: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    item_key: Mapped[str] = mapped_column(String(100), nullable=False)
    label: Mapped[str] = mapped_column(String(255), nullable=False)
    help_text: Mapped[str | None] = mapped_column(Text, nullable=True)
    item_type: Mapped[str] = mapped_column(String(20), nullable=False)
    required: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default=text("false"), nullable=False
    )
    validation_rules: Mapped[dict[str, Any] | None] = mapped_column(JSON_TYPE, nullable=True)
    # Reserved for show/hide rules; not evaluated by the submission gate
    conditional_logic: Mapped[dict[str, Any] | None] = mapped_column(JSON_TYPE, nullable=True)
    enum_options: Mapped[list[dict[str, Any]] | None] = mapped_column(JSON_TYPE, nullable=True)
    default_value: Mapped[Any | None] = mapped_column(JSON_TYPE, nullable=True)

    template_version: Mapped["ChecklistTemplateVersion"] = relationship(back_populates="items")


# =============================================================================
# Inspections
# =============================================================================

class Inspection(Base):
    """
    The unit of field work.

    lead_id/site_id reference the lead-intake collaborator and carry no FK.
    checklist_template_version_id is set once (lazily) and never overwritten.
    """
    __tablename__ = "inspections"
    __table_args__ = (
        Index("idx_inspections_org_status", "organization_id", "status"),
        Index("idx_inspections_org_assignee", "organization_id", "assigned_to_user_id"),
        CheckConstraint(
            "status IN ('open', 'in_progress', 'submitted', 'reviewed')",
            name="ck_inspections_status",
        ),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    lead_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    site_id: Mapped[uuid.UUID | None] = mapped_column(Uuid, nullable=True)
    scheduled_at: Mapped[datetime | None] = mapped_column(nullable=True)
    status: Mapped[str] = mapped_column(
        String(20), default=InspectionStatus.OPEN.value, nullable=False
    )
    assigned_to_user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False
    )
    checklist_template_version_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid,
        ForeignKey("checklist_template_versions.id", ondelete="RESTRICT"),
        nullable=True,
    )
    submitted_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    submitted_at: Mapped[datetime | None] = mapped_column(nullable=True)
    notes: Mapped[str | None] = mapped_column(Text, nullable=True)
    created_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    template_version: Mapped["ChecklistTemplateVersion | None"] = relationship()
    assigned_to: Mapped["User"] = relationship(foreign_keys=[assigned_to_user_id])


class InspectionResponse(Base):
    """Stored answer for one checklist item on one inspection (never empty)."""
    __tablename__ = "inspection_responses"
    __table_args__ = (
        UniqueConstraint(
            "organization_id",
            "inspection_id",
            "checklist_item_id",
            name="uq_inspection_response_item",
        ),
        Index("idx_inspection_responses_inspection", "inspection_id"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    inspection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False
    )
    checklist_item_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("checklist_items.id", ondelete="CASCADE"), nullable=False
    )
    value: Mapped[Any] = mapped_column(JSON_TYPE, nullable=False)
    note: Mapped[str | None] = mapped_column(Text, nullable=True)
    updated_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        server_default=func.now(), onupdate=func.now(), nullable=False
    )

    item: Mapped["ChecklistItem"] = relationship()


class InspectionFile(Base):
    """Attachment bound to an object-storage path (item-scoped or general)."""
    __tablename__ = "inspection_files"
    __table_args__ = (
        Index("idx_inspection_files_inspection", "inspection_id"),
        Index("idx_inspection_files_org_path", "organization_id", "storage_path"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    inspection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False
    )
    # NULL = general attachment
    checklist_item_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("checklist_items.id", ondelete="SET NULL"), nullable=True
    )
    storage_path: Mapped[str] = mapped_column(String(512), nullable=False)
    file_name: Mapped[str] = mapped_column(String(255), nullable=False)
    file_size: Mapped[int] = mapped_column(Integer, nullable=False)
    mime_type: Mapped[str] = mapped_column(String(100), nullable=False)
    uploaded_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)


class InspectionActivity(Base):
    """Lifecycle event log for an inspection."""
    __tablename__ = "inspection_activity_log"
    __table_args__ = (
        Index("idx_inspection_activity_inspection", "inspection_id", "created_at"),
    )

    id: Mapped[uuid.UUID] = mapped_column(Uuid, primary_key=True, default=uuid.uuid4)
    organization_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("companies.id", ondelete="CASCADE"), nullable=False
    )
    inspection_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("inspections.id", ondelete="CASCADE"), nullable=False
    )
    action: Mapped[str] = mapped_column(String(40), nullable=False)
    old_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    new_status: Mapped[str | None] = mapped_column(String(20), nullable=True)
    performed_by_user_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    details: Mapped[dict[str, Any] | None] = mapped_column(JSON_TYPE, nullable=True)
    created_at: Mapped[datetime] = mapped_column(server_default=func.now(), nullable=False)
