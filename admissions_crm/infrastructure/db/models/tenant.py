"""
Tenant Models

Organizations partitioning the application, and the users who belong
to them with a role.
"""

from enum import Enum
from typing import Optional
from uuid import UUID

from sqlalchemy import String, UniqueConstraint
from sqlmodel import Field, SQLModel

from admissions_crm.infrastructure.db.models.base import BaseModel


class TenantRole(str, Enum):
    """Roles a user can hold within a tenant."""
    ADMIN = "admin"
    SALES_REP = "sales_rep"
    STUDENT = "student"
    PRECEPTOR = "preceptor"


class DuplicatePreventionMode(str, Enum):
    """Which lead fields must be unique within a tenant."""
    EMAIL = "email"
    PHONE = "phone"
    BOTH = "both"


class Tenant(BaseModel, table=True):
    """An organization using the CRM."""

    __tablename__ = "tenants"

    name: str = Field(..., max_length=255)
    slug: str = Field(..., max_length=100, unique=True, index=True)
    duplicate_prevention: Optional[str] = Field(
        default=None,
        sa_type=String(20),
        description="email, phone, both, or NULL for no duplicate prevention"
    )


class TenantUser(BaseModel, table=True):
    """Membership of an auth user in a tenant."""

    __tablename__ = "tenant_users"
    __table_args__ = (
        UniqueConstraint("tenant_id", "user_id", name="uq_tenant_user"),
    )

    tenant_id: UUID = Field(..., foreign_key="tenants.id", index=True)
    user_id: UUID = Field(..., index=True, description="Supabase auth user id")
    role: TenantRole = Field(default=TenantRole.SALES_REP, sa_type=String(20))
    is_active: bool = Field(default=True)


class TenantUserCreate(SQLModel):
    """Schema for adding a user to a tenant."""
    user_id: UUID
    role: TenantRole = TenantRole.SALES_REP
