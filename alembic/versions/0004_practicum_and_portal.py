"""practicum_and_portal

Revision ID: 0004_practicum_and_portal
Revises: 0003_program_fit_and_capacity
Create Date: 2026-10-02

Adds practicum tracking and student portal configuration:
- practicum_programs, practicum_assignments, practicum_records
- student_portal_branding: One row per tenant
- student_portal_navigation: Ordered menu items
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0004_practicum_and_portal'
down_revision: Union[str, Sequence[str], None] = '0003_program_fit_and_capacity'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create practicum and portal tables."""

    op.create_table(
        'practicum_programs',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('batch_label', sa.String(100), nullable=True),
        sa.Column('hours_required', sa.Integer(), nullable=True),
        sa.Column('competencies_required', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_practicum_programs_tenant_id', 'practicum_programs', ['tenant_id'])

    op.create_table(
        'practicum_assignments',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lead_id', sa.UUID(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'program_id', sa.UUID(),
            sa.ForeignKey('practicum_programs.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('site_name', sa.String(255), nullable=False),
        sa.Column('site_city', sa.String(100), nullable=True),
        sa.Column('site_state', sa.String(100), nullable=True),
        sa.Column('preceptor_name', sa.String(255), nullable=True),
        sa.Column('preceptor_email', sa.String(255), nullable=True),
        sa.Column('start_date', sa.Date(), nullable=True),
        sa.Column('end_date', sa.Date(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='scheduled'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_practicum_assignments_tenant_id', 'practicum_assignments', ['tenant_id'])
    op.create_index('ix_practicum_assignments_lead_id', 'practicum_assignments', ['lead_id'])
    op.create_index('ix_practicum_assignments_program_id', 'practicum_assignments', ['program_id'])

    op.create_table(
        'practicum_records',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column(
            'assignment_id', sa.UUID(),
            sa.ForeignKey('practicum_assignments.id', ondelete='CASCADE'), nullable=False
        ),
        sa.Column('record_type', sa.String(20), nullable=False),
        sa.Column('record_date', sa.Date(), nullable=True),
        sa.Column('hours_submitted', sa.Float(), nullable=False, server_default='0'),
        sa.Column('competency_name', sa.String(255), nullable=True),
        sa.Column('content', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('preceptor_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('instructor_status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('preceptor_feedback', sa.Text(), nullable=True),
        sa.Column('instructor_feedback', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_practicum_records_tenant_id', 'practicum_records', ['tenant_id'])
    op.create_index('ix_practicum_records_assignment_id', 'practicum_records', ['assignment_id'])

    op.create_table(
        'student_portal_branding',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('portal_name', sa.String(255), nullable=False, server_default='Student Portal'),
        sa.Column('logo_url', sa.String(500), nullable=True),
        sa.Column('primary_color', sa.String(20), nullable=False, server_default='#1e40af'),
        sa.Column('secondary_color', sa.String(20), nullable=False, server_default='#64748b'),
        sa.Column('welcome_message', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_student_portal_branding_tenant_id', 'student_portal_branding', ['tenant_id'], unique=True)

    op.create_table(
        'student_portal_navigation',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('label', sa.String(100), nullable=False),
        sa.Column('path', sa.String(255), nullable=False),
        sa.Column('icon', sa.String(50), nullable=True),
        sa.Column('is_visible', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('roles', sa.JSON(), nullable=False, server_default='[]'),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_student_portal_navigation_tenant_id', 'student_portal_navigation', ['tenant_id'])
    op.create_index('ix_student_portal_navigation_position', 'student_portal_navigation', ['position'])


def downgrade() -> None:
    """Drop practicum and portal tables."""
    op.drop_index('ix_student_portal_navigation_position', table_name='student_portal_navigation')
    op.drop_index('ix_student_portal_navigation_tenant_id', table_name='student_portal_navigation')
    op.drop_table('student_portal_navigation')
    op.drop_index('ix_student_portal_branding_tenant_id', table_name='student_portal_branding')
    op.drop_table('student_portal_branding')
    op.drop_index('ix_practicum_records_assignment_id', table_name='practicum_records')
    op.drop_index('ix_practicum_records_tenant_id', table_name='practicum_records')
    op.drop_table('practicum_records')
    op.drop_index('ix_practicum_assignments_program_id', table_name='practicum_assignments')
    op.drop_index('ix_practicum_assignments_lead_id', table_name='practicum_assignments')
    op.drop_index('ix_practicum_assignments_tenant_id', table_name='practicum_assignments')
    op.drop_table('practicum_assignments')
    op.drop_index('ix_practicum_programs_tenant_id', table_name='practicum_programs')
    op.drop_table('practicum_programs')
