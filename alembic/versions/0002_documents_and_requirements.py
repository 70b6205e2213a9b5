"""documents_and_requirements

Revision ID: 0002_documents_and_requirements
Revises: 0001_tenants_and_leads
Create Date: 2026-09-14

Adds applicant documents and entry requirements:
- entry_requirements: Admission criteria defined per program
- lead_documents: Files submitted by a lead, optionally tied to a requirement
- lead_entry_requirements: Requirements instantiated per lead

lead_documents.entry_requirement_id and
lead_entry_requirements.linked_document_id are kept consistent by the
application, not by constraints.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0002_documents_and_requirements'
down_revision: Union[str, Sequence[str], None] = '0001_tenants_and_leads'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create requirement and document tables."""

    op.create_table(
        'entry_requirements',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('program_name', sa.String(255), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('requirement_type', sa.String(20), nullable=False, server_default='other'),
        sa.Column('is_mandatory', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('threshold_data', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('linked_document_type', sa.String(100), nullable=True),
        sa.Column('display_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_entry_requirements_tenant_id', 'entry_requirements', ['tenant_id'])
    op.create_index('ix_entry_requirements_program_name', 'entry_requirements', ['program_name'])

    op.create_table(
        'lead_documents',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lead_id', sa.UUID(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('document_type', sa.String(100), nullable=False),
        sa.Column('file_name', sa.String(255), nullable=False),
        sa.Column('storage_path', sa.String(500), nullable=True),
        sa.Column('content_type', sa.String(100), nullable=True),
        sa.Column('file_size', sa.Integer(), nullable=True),
        sa.Column('admin_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column(
            'entry_requirement_id', sa.UUID(),
            sa.ForeignKey('entry_requirements.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('reviewed_by', sa.UUID(), nullable=True),
        sa.Column('reviewed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_lead_documents_tenant_id', 'lead_documents', ['tenant_id'])
    op.create_index('ix_lead_documents_lead_id', 'lead_documents', ['lead_id'])
    op.create_index('ix_lead_documents_entry_requirement_id', 'lead_documents', ['entry_requirement_id'])

    op.create_table(
        'lead_entry_requirements',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lead_id', sa.UUID(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'entry_requirement_id', sa.UUID(),
            sa.ForeignKey('entry_requirements.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column(
            'linked_document_id', sa.UUID(),
            sa.ForeignKey('lead_documents.id', ondelete='SET NULL'), nullable=True
        ),
        sa.Column('approved_by', sa.UUID(), nullable=True),
        sa.Column('approved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('lead_id', 'entry_requirement_id', name='uq_lead_entry_requirement'),
    )
    op.create_index('ix_lead_entry_requirements_tenant_id', 'lead_entry_requirements', ['tenant_id'])
    op.create_index('ix_lead_entry_requirements_lead_id', 'lead_entry_requirements', ['lead_id'])
    op.create_index(
        'ix_lead_entry_requirements_entry_requirement_id',
        'lead_entry_requirements',
        ['entry_requirement_id'],
    )


def downgrade() -> None:
    """Drop requirement and document tables."""
    op.drop_index('ix_lead_entry_requirements_entry_requirement_id', table_name='lead_entry_requirements')
    op.drop_index('ix_lead_entry_requirements_lead_id', table_name='lead_entry_requirements')
    op.drop_index('ix_lead_entry_requirements_tenant_id', table_name='lead_entry_requirements')
    op.drop_table('lead_entry_requirements')
    op.drop_index('ix_lead_documents_entry_requirement_id', table_name='lead_documents')
    op.drop_index('ix_lead_documents_lead_id', table_name='lead_documents')
    op.drop_index('ix_lead_documents_tenant_id', table_name='lead_documents')
    op.drop_table('lead_documents')
    op.drop_index('ix_entry_requirements_program_name', table_name='entry_requirements')
    op.drop_index('ix_entry_requirements_tenant_id', table_name='entry_requirements')
    op.drop_table('entry_requirements')
