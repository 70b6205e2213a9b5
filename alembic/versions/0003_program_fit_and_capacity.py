"""program_fit_and_capacity

Revision ID: 0003_program_fit_and_capacity
Revises: 0002_documents_and_requirements
Create Date: 2026-09-21

Adds scoring inputs/outputs and seat planning:
- applicant_engagement_metrics: Engagement signals, one row per lead
- program_fit_assessments: Latest fit/yield assessment, one row per lead
- program_capacity: Seat counts per program
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '0003_program_fit_and_capacity'
down_revision: Union[str, Sequence[str], None] = '0002_documents_and_requirements'
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create engagement, assessment and capacity tables."""

    op.create_table(
        'applicant_engagement_metrics',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lead_id', sa.UUID(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('first_response_time_hours', sa.Float(), nullable=True),
        sa.Column('email_open_rate', sa.Float(), nullable=True),
        sa.Column('portal_login_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('portal_time_spent_minutes', sa.Float(), nullable=False, server_default='0'),
        sa.Column('event_attendance_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('application_velocity_days', sa.Float(), nullable=True),
        sa.Column('nudge_responsiveness_score', sa.Float(), nullable=True),
        sa.Column('self_scheduling_speed_hours', sa.Float(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    )
    op.create_index('ix_applicant_engagement_metrics_tenant_id', 'applicant_engagement_metrics', ['tenant_id'])
    op.create_index(
        'ix_applicant_engagement_metrics_lead_id', 'applicant_engagement_metrics', ['lead_id'], unique=True
    )

    op.create_table(
        'program_fit_assessments',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('lead_id', sa.UUID(), sa.ForeignKey('leads.id', ondelete='CASCADE'), nullable=False),
        sa.Column('program_name', sa.String(255), nullable=True),
        sa.Column('program_fit_score', sa.Integer(), nullable=False),
        sa.Column('yield_propensity_score', sa.Integer(), nullable=False),
        sa.Column('hard_eligibility_passed', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('academic_alignment_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('engagement_intent_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('behavioral_signals_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('financial_readiness_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('risk_flags_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('confidence_score', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('assessment_data', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('assessed_by', sa.UUID(), nullable=True),
        sa.Column('assessed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.CheckConstraint('program_fit_score BETWEEN 0 AND 100', name='ck_program_fit_score_range'),
        sa.CheckConstraint('yield_propensity_score BETWEEN 0 AND 100', name='ck_yield_propensity_score_range'),
    )
    op.create_index('ix_program_fit_assessments_tenant_id', 'program_fit_assessments', ['tenant_id'])
    op.create_index('ix_program_fit_assessments_lead_id', 'program_fit_assessments', ['lead_id'], unique=True)

    op.create_table(
        'program_capacity',
        sa.Column('id', sa.UUID(), nullable=False, primary_key=True),
        sa.Column('tenant_id', sa.UUID(), sa.ForeignKey('tenants.id', ondelete='CASCADE'), nullable=False),
        sa.Column('program_name', sa.String(255), nullable=False),
        sa.Column('intake_term', sa.String(50), nullable=True),
        sa.Column('total_seats', sa.Integer(), nullable=False),
        sa.Column('filled_seats', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('reserved_seats', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('waitlist_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('demographic_targets', sa.JSON(), nullable=False, server_default='{}'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.UniqueConstraint('tenant_id', 'program_name', name='uq_program_capacity_program'),
    )
    op.create_index('ix_program_capacity_tenant_id', 'program_capacity', ['tenant_id'])


def downgrade() -> None:
    """Drop engagement, assessment and capacity tables."""
    op.drop_index('ix_program_capacity_tenant_id', table_name='program_capacity')
    op.drop_table('program_capacity')
    op.drop_index('ix_program_fit_assessments_lead_id', table_name='program_fit_assessments')
    op.drop_index('ix_program_fit_assessments_tenant_id', table_name='program_fit_assessments')
    op.drop_table('program_fit_assessments')
    op.drop_index('ix_applicant_engagement_metrics_lead_id', table_name='applicant_engagement_metrics')
    op.drop_index('ix_applicant_engagement_metrics_tenant_id', table_name='applicant_engagement_metrics')
    op.drop_table('applicant_engagement_metrics')
