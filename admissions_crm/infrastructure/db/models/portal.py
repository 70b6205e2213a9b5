"""
Student Portal Configuration Models

Per-tenant branding and navigation for the student portal.
"""

import re
from typing import List, Optional

from pydantic import field_validator
from sqlalchemy import JSON
from sqlmodel import Field, SQLModel

from admissions_crm.infrastructure.db.models.base import TenantModel

HEX_COLOR = re.compile(r"^#[0-9a-fA-F]{6}$")


class PortalBranding(TenantModel, table=True):
    __tablename__ = "student_portal_branding"

    portal_name: str = Field(default="Student Portal", max_length=255)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    primary_color: str = Field(default="#1e40af", max_length=20)
    secondary_color: str = Field(default="#64748b", max_length=20)
    welcome_message: Optional[str] = None


class PortalBrandingUpdate(SQLModel):
    portal_name: Optional[str] = Field(default=None, max_length=255)
    logo_url: Optional[str] = Field(default=None, max_length=500)
    primary_color: Optional[str] = None
    secondary_color: Optional[str] = None
    welcome_message: Optional[str] = None

    @field_validator("portal_name", "primary_color", "secondary_color")
    @classmethod
    def validate_not_null(cls, v: Optional[str]) -> str:
        # Only runs for values that were sent; these columns are NOT NULL
        if v is None or not v.strip():
            raise ValueError("Field cannot be null or empty")
        return v.strip()

    @field_validator("primary_color", "secondary_color")
    @classmethod
    def validate_hex_color(cls, v: str) -> str:
        if not HEX_COLOR.match(v):
            raise ValueError("Color must be a hex value like #1e40af")
        return v


class PortalNavigationBase(SQLModel):
    label: str = Field(..., max_length=100)
    path: str = Field(..., max_length=255)
    icon: Optional[str] = Field(default=None, max_length=50)
    is_visible: bool = Field(default=True)
    roles: List[str] = Field(default_factory=list, sa_type=JSON)


class PortalNavigationItem(PortalNavigationBase, TenantModel, table=True):
    __tablename__ = "student_portal_navigation"

    position: int = Field(default=0, index=True)


class PortalNavigationCreate(PortalNavigationBase):
    pass


class PortalNavigationUpdate(SQLModel):
    label: Optional[str] = None
    path: Optional[str] = None
    icon: Optional[str] = None
    is_visible: Optional[bool] = None
    roles: Optional[List[str]] = None
