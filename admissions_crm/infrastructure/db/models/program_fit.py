"""
Program Fit Models

ApplicantEngagementMetrics: behavioral inputs to scoring.
ProgramFitAssessment: persisted scoring output, one row per lead.
"""

from datetime import datetime
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import DateTime, JSON
from sqlmodel import Field, SQLModel

from admissions_crm.infrastructure.db.models.base import TenantModel


class EngagementMetricsBase(SQLModel):
    """Engagement signals collected for an applicant."""

    first_response_time_hours: Optional[float] = Field(default=None, ge=0)
    email_open_rate: Optional[float] = Field(default=None, ge=0, le=100)
    portal_login_count: int = Field(default=0, ge=0)
    portal_time_spent_minutes: float = Field(default=0, ge=0)
    event_attendance_count: int = Field(default=0, ge=0)
    application_velocity_days: Optional[float] = Field(default=None, ge=0)
    nudge_responsiveness_score: Optional[float] = Field(default=None, ge=0, le=100)
    self_scheduling_speed_hours: Optional[float] = Field(default=None, ge=0)


class ApplicantEngagementMetrics(EngagementMetricsBase, TenantModel, table=True):
    __tablename__ = "applicant_engagement_metrics"

    lead_id: UUID = Field(..., foreign_key="leads.id", unique=True, index=True)


class EngagementMetricsUpdate(EngagementMetricsBase):
    """Full replacement of a lead's engagement metrics."""
    pass


class ProgramFitAssessment(TenantModel, table=True):
    """Latest program-fit / yield assessment for a lead."""

    __tablename__ = "program_fit_assessments"

    lead_id: UUID = Field(..., foreign_key="leads.id", unique=True, index=True)
    program_name: Optional[str] = Field(default=None, max_length=255)
    program_fit_score: int = Field(..., ge=0, le=100)
    yield_propensity_score: int = Field(..., ge=0, le=100)
    hard_eligibility_passed: bool = Field(default=False)
    academic_alignment_score: int = Field(default=0)
    engagement_intent_score: int = Field(default=0)
    behavioral_signals_score: int = Field(default=0)
    financial_readiness_score: int = Field(default=0)
    risk_flags_count: int = Field(default=0)
    confidence_score: int = Field(default=0)
    assessment_data: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    assessed_by: Optional[UUID] = None
    assessed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))


class ApplicantSignals(SQLModel):
    """
    Optional reviewer-supplied scoring inputs.

    Anything left unset falls back to the scorer's neutral default.
    """
    gpa_minimum_met: Optional[bool] = None
    test_scores_met: Optional[bool] = None
    coursework_match: Optional[float] = Field(default=None, ge=0, le=100)
    grade_alignment: Optional[float] = Field(default=None, ge=0, le=100)
    prerequisite_recency: Optional[float] = Field(default=None, ge=0, le=100)
    academic_progression: Optional[float] = Field(default=None, ge=0, le=100)
    consistency: Optional[float] = Field(default=None, ge=0, le=100)
    visa_risk: Optional[float] = Field(default=None, ge=0, le=100)
