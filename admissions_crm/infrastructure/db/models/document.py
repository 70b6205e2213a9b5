"""
Lead Document Model

Files an applicant submitted, stored in object storage and reviewed by
admissions staff.
"""

from datetime import datetime
from enum import Enum
from typing import Optional
from uuid import UUID

from sqlalchemy import DateTime, String
from sqlmodel import Field

from admissions_crm.infrastructure.db.models.base import TenantModel


class DocumentStatus(str, Enum):
    """Admin review status of a document."""
    PENDING = "pending"
    UPLOADED = "uploaded"
    APPROVED = "approved"
    REJECTED = "rejected"


class LeadDocument(TenantModel, table=True):
    """A document belonging to a lead."""

    __tablename__ = "lead_documents"

    lead_id: UUID = Field(..., foreign_key="leads.id", index=True)
    document_type: str = Field(..., max_length=100)
    file_name: str = Field(..., max_length=255)
    storage_path: Optional[str] = Field(default=None, max_length=500)
    content_type: Optional[str] = Field(default=None, max_length=100)
    file_size: Optional[int] = None
    admin_status: DocumentStatus = Field(default=DocumentStatus.PENDING, sa_type=String(20))
    entry_requirement_id: Optional[UUID] = Field(
        default=None,
        foreign_key="entry_requirements.id",
        index=True,
        description="Program requirement this document satisfies"
    )
    rejection_reason: Optional[str] = None
    notes: Optional[str] = None
    reviewed_by: Optional[UUID] = None
    reviewed_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
