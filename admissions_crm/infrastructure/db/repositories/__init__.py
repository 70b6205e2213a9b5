"""
Repository Layer for the Admissions CRM

Exports all repository classes for dependency injection.
"""

from admissions_crm.infrastructure.db.repositories.base_repository import (
    BaseRepository,
    IReadRepository,
    IWriteRepository,
)
from admissions_crm.infrastructure.db.repositories.tenant_repository import TenantRepository
from admissions_crm.infrastructure.db.repositories.lead_repository import (
    LeadFilters,
    LeadRepository,
)
from admissions_crm.infrastructure.db.repositories.document_repository import DocumentRepository
from admissions_crm.infrastructure.db.repositories.entry_requirement_repository import (
    EntryRequirementRepository,
    LeadEntryRequirementRepository,
)
from admissions_crm.infrastructure.db.repositories.program_fit_repository import (
    EngagementMetricsRepository,
    ProgramFitAssessmentRepository,
)
from admissions_crm.infrastructure.db.repositories.program_capacity_repository import (
    ProgramCapacityRepository,
)
from admissions_crm.infrastructure.db.repositories.practicum_repository import (
    PracticumAssignmentRepository,
    PracticumProgramRepository,
    PracticumRecordRepository,
)
from admissions_crm.infrastructure.db.repositories.portal_repository import (
    PortalBrandingRepository,
    PortalNavigationRepository,
)


__all__ = [
    # Base
    "BaseRepository",
    "IReadRepository",
    "IWriteRepository",
    # Repositories
    "TenantRepository",
    "LeadFilters",
    "LeadRepository",
    "DocumentRepository",
    "EntryRequirementRepository",
    "LeadEntryRequirementRepository",
    "EngagementMetricsRepository",
    "ProgramFitAssessmentRepository",
    "ProgramCapacityRepository",
    "PracticumAssignmentRepository",
    "PracticumProgramRepository",
    "PracticumRecordRepository",
    "PortalBrandingRepository",
    "PortalNavigationRepository",
]
