"""
Entry Requirement Models

EntryRequirement: an admission criterion defined by a program.
LeadEntryRequirement: that criterion instantiated for one lead, whose
status mirrors the admin status of its linked document.
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy import DateTime, JSON, String, UniqueConstraint
from sqlmodel import Field, SQLModel

from admissions_crm.infrastructure.db.models.base import TenantModel


class RequirementType(str, Enum):
    """Kind of admission criterion."""
    ACADEMIC = "academic"
    LANGUAGE = "language"
    DOCUMENT = "document"
    EXPERIENCE = "experience"
    OTHER = "other"


class RequirementStatus(str, Enum):
    """Approval status of a lead's requirement."""
    PENDING = "pending"
    APPROVED = "approved"
    AUTO_APPROVED = "auto_approved"
    REJECTED = "rejected"
    WAIVED = "waived"


COMPLETED_STATUSES = frozenset({
    RequirementStatus.APPROVED,
    RequirementStatus.AUTO_APPROVED,
    RequirementStatus.WAIVED,
})


class EntryRequirementBase(SQLModel):
    """Program-level requirement definition."""

    program_name: str = Field(..., max_length=255, index=True)
    title: str = Field(..., max_length=255)
    description: Optional[str] = None
    requirement_type: RequirementType = Field(
        default=RequirementType.OTHER, sa_type=String(20)
    )
    is_mandatory: bool = Field(default=True)
    threshold_data: Dict[str, Any] = Field(
        default_factory=dict,
        sa_type=JSON,
        description="Thresholds such as {'minimum_grade': 70}"
    )
    linked_document_type: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Document type that satisfies this requirement"
    )
    display_order: int = Field(default=0)


class EntryRequirement(EntryRequirementBase, TenantModel, table=True):
    __tablename__ = "entry_requirements"


class EntryRequirementCreate(EntryRequirementBase):
    pass


class LeadEntryRequirement(TenantModel, table=True):
    """A program requirement instantiated for a specific lead."""

    __tablename__ = "lead_entry_requirements"
    __table_args__ = (
        UniqueConstraint("lead_id", "entry_requirement_id", name="uq_lead_entry_requirement"),
    )

    lead_id: UUID = Field(..., foreign_key="leads.id", index=True)
    entry_requirement_id: UUID = Field(..., foreign_key="entry_requirements.id", index=True)
    status: RequirementStatus = Field(default=RequirementStatus.PENDING, sa_type=String(20))
    linked_document_id: Optional[UUID] = Field(
        default=None, foreign_key="lead_documents.id"
    )
    approved_by: Optional[UUID] = None
    approved_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    notes: Optional[str] = None

    @property
    def is_completed(self) -> bool:
        return self.status in COMPLETED_STATUSES
