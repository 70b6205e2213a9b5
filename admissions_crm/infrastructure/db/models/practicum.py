"""
Practicum Models

Supervised clinical/field placements: programs, student-to-site
assignments, and the attendance/journal/competency records submitted
against an assignment.
"""

from datetime import date
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import JSON, String
from sqlmodel import Field, SQLModel

from admissions_crm.infrastructure.db.models.base import TenantModel


class AssignmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    ACTIVE = "active"
    COMPLETED = "completed"
    WITHDRAWN = "withdrawn"


class RecordType(str, Enum):
    ATTENDANCE = "attendance"
    JOURNAL = "journal"
    COMPETENCY = "competency"
    SELF_EVALUATION = "self_evaluation"


class ReviewStatus(str, Enum):
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"


class PracticumProgramBase(SQLModel):
    name: str = Field(..., max_length=255)
    batch_label: Optional[str] = Field(default=None, max_length=100)
    hours_required: Optional[int] = Field(default=None, ge=0)
    competencies_required: Optional[int] = Field(default=None, ge=0)


class PracticumProgram(PracticumProgramBase, TenantModel, table=True):
    __tablename__ = "practicum_programs"


class PracticumProgramCreate(PracticumProgramBase):
    pass


class PracticumAssignmentBase(SQLModel):
    lead_id: UUID = Field(..., foreign_key="leads.id", index=True)
    program_id: UUID = Field(..., foreign_key="practicum_programs.id", index=True)
    site_name: str = Field(..., max_length=255)
    site_city: Optional[str] = Field(default=None, max_length=100)
    site_state: Optional[str] = Field(default=None, max_length=100)
    preceptor_name: Optional[str] = Field(default=None, max_length=255)
    preceptor_email: Optional[str] = Field(default=None, max_length=255)
    start_date: Optional[date] = None
    end_date: Optional[date] = None


class PracticumAssignment(PracticumAssignmentBase, TenantModel, table=True):
    __tablename__ = "practicum_assignments"

    status: AssignmentStatus = Field(default=AssignmentStatus.SCHEDULED, sa_type=String(20))


class PracticumAssignmentCreate(PracticumAssignmentBase):
    pass


class PracticumRecord(TenantModel, table=True):
    """A single submission (attendance, journal, competency, self-evaluation)."""

    __tablename__ = "practicum_records"

    assignment_id: UUID = Field(..., foreign_key="practicum_assignments.id", index=True)
    record_type: RecordType = Field(..., sa_type=String(20))
    record_date: Optional[date] = None
    hours_submitted: float = Field(default=0, ge=0)
    competency_name: Optional[str] = Field(default=None, max_length=255)
    content: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)
    preceptor_status: ReviewStatus = Field(default=ReviewStatus.PENDING, sa_type=String(20))
    instructor_status: ReviewStatus = Field(default=ReviewStatus.PENDING, sa_type=String(20))
    preceptor_feedback: Optional[str] = None
    instructor_feedback: Optional[str] = None


class RecordSubmission(SQLModel):
    """Payload for any record type; which fields apply depends on the type."""
    record_date: Optional[date] = None
    hours: Optional[float] = None
    competency_name: Optional[str] = None
    content: Dict[str, Any] = Field(default_factory=dict)


class RecordReview(SQLModel):
    reviewer_role: str
    decision: ReviewStatus
    feedback: Optional[str] = None
