"""Checklist inspection engine - identity, templates, inspections, responses, files.

Revision ID: 0001_checklist_engine
Revises:
Create Date: 2026-10-18

Creates:
- companies, users, memberships (minimal identity tables for scoping/FKs)
- checklist_templates, checklist_template_versions, checklist_items
- inspections, inspection_responses, inspection_files, inspection_activity_log
"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = '0001_checklist_engine'
down_revision = None
branch_labels = None
depends_on = None


def _id() -> sa.Column:
    return sa.Column(
        'id',
        postgresql.UUID(as_uuid=True),
        server_default=sa.text('gen_random_uuid()'),
        nullable=False,
    )


def _org() -> sa.Column:
    return sa.Column('organization_id', postgresql.UUID(as_uuid=True), nullable=False)


def _created_at() -> sa.Column:
    return sa.Column(
        'created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
    )


def _updated_at() -> sa.Column:
    return sa.Column(
        'updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False
    )


def upgrade() -> None:
    # ==========================================================================
    # identity
    # ==========================================================================
    op.create_table(
        'companies',
        _id(),
        sa.Column('name', sa.String(255), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
    )

    op.create_table(
        'users',
        _id(),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('display_name', sa.String(255), nullable=False),
        sa.Column('token_version', sa.Integer(), server_default=sa.text('1'), nullable=False),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('TRUE'), nullable=False),
        _created_at(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
    )

    op.create_table(
        'memberships',
        _id(),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), nullable=False),
        _org(),
        sa.Column('role', sa.String(20), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['organization_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', name='uq_memberships_user'),
    )
    op.create_index('idx_memberships_org', 'memberships', ['organization_id'])

    # ==========================================================================
    # checklist templates
    # ==========================================================================
    op.create_table(
        'checklist_templates',
        _id(),
        _org(),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('TRUE'), nullable=False),
        _created_at(),
        sa.ForeignKeyConstraint(['organization_id'], ['companies.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_checklist_templates_org', 'checklist_templates', ['organization_id'])

    op.create_table(
        'checklist_template_versions',
        _id(),
        _org(),
        sa.Column('template_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('version_number', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('is_active', sa.Boolean(), server_default=sa.text('FALSE'), nullable=False),
        sa.Column('created_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['organization_id'], ['companies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['template_id'], ['checklist_templates.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('template_id', 'version_number', name='uq_template_version_number'),
    )
    op.create_index(
        'idx_template_versions_org_active',
        'checklist_template_versions',
        ['organization_id', 'is_active'],
    )

    op.create_table(
        'checklist_items',
        _id(),
        _org(),
        sa.Column('template_version_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('section', sa.String(30), nullable=False),
        sa.Column('sort_order', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('seq', sa.Integer(), server_default=sa.text('0'), nullable=False),
        sa.Column('item_key', sa.String(100), nullable=False),
        sa.Column('label', sa.String(255), nullable=False),
        sa.Column('help_text', sa.Text(), nullable=True),
        sa.Column('item_type', sa.String(20), nullable=False),
        sa.Column('required', sa.Boolean(), server_default=sa.text('FALSE'), nullable=False),
        sa.Column('validation_rules', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('conditional_logic', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('enum_options', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.Column('default_value', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        sa.ForeignKeyConstraint(['organization_id'], ['companies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(
            ['template_version_id'], ['checklist_template_versions.id'], ondelete='CASCADE'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('template_version_id', 'item_key', name='uq_checklist_item_key'),
    )
    op.create_index('idx_checklist_items_version', 'checklist_items', ['template_version_id'])

    # ==========================================================================
    # inspections
    # ==========================================================================
    op.create_table(
        'inspections',
        _id(),
        _org(),
        sa.Column('lead_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('site_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(20), server_default=sa.text("'open'"), nullable=False),
        sa.Column('assigned_to_user_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('checklist_template_version_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('submitted_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['organization_id'], ['companies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['assigned_to_user_id'], ['users.id'], ondelete='RESTRICT'),
        sa.ForeignKeyConstraint(
            ['checklist_template_version_id'],
            ['checklist_template_versions.id'],
            ondelete='RESTRICT',
        ),
        sa.ForeignKeyConstraint(['submitted_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint(
            "status IN ('open', 'in_progress', 'submitted', 'reviewed')",
            name='ck_inspections_status',
        ),
    )
    op.create_index('idx_inspections_org_status', 'inspections', ['organization_id', 'status'])
    op.create_index(
        'idx_inspections_org_assignee', 'inspections', ['organization_id', 'assigned_to_user_id']
    )

    op.create_table(
        'inspection_responses',
        _id(),
        _org(),
        sa.Column('inspection_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('checklist_item_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('value', postgresql.JSONB(astext_type=sa.Text()), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('updated_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['organization_id'], ['companies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['inspection_id'], ['inspections.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['checklist_item_id'], ['checklist_items.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['updated_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint(
            'organization_id',
            'inspection_id',
            'checklist_item_id',
            name='uq_inspection_response_item',
        ),
    )
    op.create_index(
        'idx_inspection_responses_inspection', 'inspection_responses', ['inspection_id']
    )

    op.create_table(
        'inspection_files',
        _id(),
        _org(),
        sa.Column('inspection_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('checklist_item_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('storage_path', sa.String(512), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('file_size', sa.Integer(), nullable=False),
        sa.Column('mime_type', sa.String(100), nullable=False),
        sa.Column('uploaded_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['organization_id'], ['companies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['inspection_id'], ['inspections.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['checklist_item_id'], ['checklist_items.id'], ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['uploaded_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('idx_inspection_files_inspection', 'inspection_files', ['inspection_id'])
    op.create_index(
        'idx_inspection_files_org_path', 'inspection_files', ['organization_id', 'storage_path']
    )

    op.create_table(
        'inspection_activity_log',
        _id(),
        _org(),
        sa.Column('inspection_id', postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column('action', sa.String(40), nullable=False),
        sa.Column('old_status', sa.String(20), nullable=True),
        sa.Column('new_status', sa.String(20), nullable=True),
        sa.Column('performed_by_user_id', postgresql.UUID(as_uuid=True), nullable=True),
        sa.Column('details', postgresql.JSONB(astext_type=sa.Text()), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['organization_id'], ['companies.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['inspection_id'], ['inspections.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['performed_by_user_id'], ['users.id'], ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index(
        'idx_inspection_activity_inspection',
        'inspection_activity_log',
        ['inspection_id', 'created_at'],
    )


def downgrade() -> None:
    op.drop_table('inspection_activity_log')
    op.drop_table('inspection_files')
    op.drop_table('inspection_responses')
    op.drop_table('inspections')
    op.drop_table('checklist_items')
    op.drop_table('checklist_template_versions')
    op.drop_table('checklist_templates')
    op.drop_table('memberships')
    op.drop_table('users')
    op.drop_table('companies')
