"""
SQLModel ORM Models for the Admissions CRM

Exports all database models for Alembic autogenerate and application use.
Import models here to register them with SQLModel.metadata.
"""

from admissions_crm.infrastructure.db.models.base import (
    BaseModel,
    TenantModel,
    TenantScopedMixin,
    TimestampMixin,
    UUIDMixin,
    utcnow,
)
from admissions_crm.infrastructure.db.models.tenant import (
    DuplicatePreventionMode,
    Tenant,
    TenantRole,
    TenantUser,
    TenantUserCreate,
)
from admissions_crm.infrastructure.db.models.lead import (
    Lead,
    LeadCreate,
    LeadPriority,
    LeadStatus,
    LeadUpdate,
    PaymentStatus,
)
from admissions_crm.infrastructure.db.models.document import (
    DocumentStatus,
    LeadDocument,
)
from admissions_crm.infrastructure.db.models.entry_requirement import (
    COMPLETED_STATUSES,
    EntryRequirement,
    EntryRequirementCreate,
    LeadEntryRequirement,
    RequirementStatus,
    RequirementType,
)
from admissions_crm.infrastructure.db.models.program_fit import (
    ApplicantEngagementMetrics,
    ApplicantSignals,
    EngagementMetricsUpdate,
    ProgramFitAssessment,
)
from admissions_crm.infrastructure.db.models.program_capacity import (
    ProgramCapacity,
    ProgramCapacityCreate,
    ProgramCapacityUpdate,
)
from admissions_crm.infrastructure.db.models.practicum import (
    AssignmentStatus,
    PracticumAssignment,
    PracticumAssignmentCreate,
    PracticumProgram,
    PracticumProgramCreate,
    PracticumRecord,
    RecordReview,
    RecordSubmission,
    RecordType,
    ReviewStatus,
)
from admissions_crm.infrastructure.db.models.portal import (
    PortalBranding,
    PortalBrandingUpdate,
    PortalNavigationCreate,
    PortalNavigationItem,
    PortalNavigationUpdate,
)


__all__ = [
    # Base
    "BaseModel",
    "TenantModel",
    "TenantScopedMixin",
    "TimestampMixin",
    "UUIDMixin",
    "utcnow",
    # Tenancy
    "DuplicatePreventionMode",
    "Tenant",
    "TenantRole",
    "TenantUser",
    "TenantUserCreate",
    # Leads
    "Lead",
    "LeadCreate",
    "LeadPriority",
    "LeadStatus",
    "LeadUpdate",
    "PaymentStatus",
    # Documents & requirements
    "DocumentStatus",
    "LeadDocument",
    "COMPLETED_STATUSES",
    "EntryRequirement",
    "EntryRequirementCreate",
    "LeadEntryRequirement",
    "RequirementStatus",
    "RequirementType",
    # Program fit
    "ApplicantEngagementMetrics",
    "ApplicantSignals",
    "EngagementMetricsUpdate",
    "ProgramFitAssessment",
    "ProgramCapacity",
    "ProgramCapacityCreate",
    "ProgramCapacityUpdate",
    # Practicum
    "AssignmentStatus",
    "PracticumAssignment",
    "PracticumAssignmentCreate",
    "PracticumProgram",
    "PracticumProgramCreate",
    "PracticumRecord",
    "RecordReview",
    "RecordSubmission",
    "RecordType",
    "ReviewStatus",
    # Portal
    "PortalBranding",
    "PortalBrandingUpdate",
    "PortalNavigationCreate",
    "PortalNavigationItem",
    "PortalNavigationUpdate",
]
