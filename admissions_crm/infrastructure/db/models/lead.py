"""
Lead Model

Prospective students tracked through the enrollment pipeline.
"""

from datetime import datetime
from enum import Enum
from typing import List, Optional
from uuid import UUID

from sqlalchemy import DateTime, JSON, String
from sqlmodel import Field, SQLModel

from admissions_crm.infrastructure.db.models.base import TenantModel


class LeadStatus(str, Enum):
    """Pipeline status of a lead."""
    NEW = "new"
    CONTACTED = "contacted"
    QUALIFIED = "qualified"
    NURTURING = "nurturing"
    CONVERTED = "converted"
    LOST = "lost"


class LeadPriority(str, Enum):
    """Follow-up priority."""
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    URGENT = "urgent"


class PaymentStatus(str, Enum):
    """Application fee / deposit status."""
    PENDING = "pending"
    PARTIAL = "partial"
    COMPLETED = "completed"


class LeadBase(SQLModel):
    """Fields shared by the table model and its create schema."""

    first_name: str = Field(..., max_length=100)
    last_name: str = Field(..., max_length=100)
    email: str = Field(..., max_length=255, index=True)
    phone: Optional[str] = Field(default=None, max_length=50)
    country: Optional[str] = Field(default=None, max_length=100)
    source: str = Field(default="web", max_length=50)
    status: LeadStatus = Field(default=LeadStatus.NEW, sa_type=String(20))
    priority: LeadPriority = Field(default=LeadPriority.MEDIUM, sa_type=String(20))
    lead_score: int = Field(default=0, ge=0, le=100)
    program_interest: List[str] = Field(default_factory=list, sa_type=JSON)
    tags: List[str] = Field(default_factory=list, sa_type=JSON)
    payment_status: PaymentStatus = Field(default=PaymentStatus.PENDING, sa_type=String(20))
    notes: Optional[str] = None


class Lead(LeadBase, TenantModel, table=True):
    """A lead / applicant row."""

    __tablename__ = "leads"

    assigned_to: Optional[UUID] = Field(default=None, index=True)
    assigned_at: Optional[datetime] = Field(default=None, sa_type=DateTime(timezone=True))
    last_contacted_at: Optional[datetime] = Field(
        default=None, sa_type=DateTime(timezone=True)
    )

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}".strip()

    @property
    def primary_program(self) -> Optional[str]:
        return self.program_interest[0] if self.program_interest else None


class LeadCreate(LeadBase):
    """Schema for creating a lead."""
    pass


class LeadUpdate(SQLModel):
    """Schema for partial lead updates."""
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    email: Optional[str] = None
    phone: Optional[str] = None
    country: Optional[str] = None
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    lead_score: Optional[int] = Field(default=None, ge=0, le=100)
    program_interest: Optional[List[str]] = None
    tags: Optional[List[str]] = None
    payment_status: Optional[PaymentStatus] = None
    notes: Optional[str] = None
