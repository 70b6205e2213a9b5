"""
Program Capacity Model

Per-program seat counts and demographic targets.
"""

from typing import Any, Dict, Optional

from sqlalchemy import JSON, UniqueConstraint
from sqlmodel import Field, SQLModel

from admissions_crm.infrastructure.db.models.base import TenantModel


class ProgramCapacityBase(SQLModel):
    program_name: str = Field(..., max_length=255)
    intake_term: Optional[str] = Field(default=None, max_length=50)
    total_seats: int = Field(..., ge=0)
    filled_seats: int = Field(default=0, ge=0)
    reserved_seats: int = Field(default=0, ge=0)
    waitlist_count: int = Field(default=0, ge=0)
    demographic_targets: Dict[str, Any] = Field(default_factory=dict, sa_type=JSON)


class ProgramCapacity(ProgramCapacityBase, TenantModel, table=True):
    __tablename__ = "program_capacity"
    __table_args__ = (
        UniqueConstraint("tenant_id", "program_name", name="uq_program_capacity_program"),
    )


class ProgramCapacityCreate(ProgramCapacityBase):
    pass


class ProgramCapacityUpdate(SQLModel):
    intake_term: Optional[str] = None
    total_seats: Optional[int] = Field(default=None, ge=0)
    filled_seats: Optional[int] = Field(default=None, ge=0)
    reserved_seats: Optional[int] = Field(default=None, ge=0)
    waitlist_count: Optional[int] = Field(default=None, ge=0)
    demographic_targets: Optional[Dict[str, Any]] = None
