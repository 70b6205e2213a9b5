"""
Program Fit Repositories

Assessments and engagement metrics are both one-row-per-lead, written
with upsert semantics.
"""

from typing import Any, Dict, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from admissions_crm.infrastructure.db.repositories.base_repository import BaseRepository
from admissions_crm.infrastructure.db.models.program_fit import (
    ApplicantEngagementMetrics,
    EngagementMetricsUpdate,
    ProgramFitAssessment,
)


class ProgramFitAssessmentRepository(
    BaseRepository[ProgramFitAssessment, SQLModel, SQLModel]
):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(ProgramFitAssessment, session, tenant_id)

    async def get_by_lead(self, lead_id: UUID) -> Optional[ProgramFitAssessment]:
        stmt = self._select().where(ProgramFitAssessment.lead_id == lead_id)
        return await self._scalar_one_or_none(stmt)

    async def upsert(self, lead_id: UUID, values: Dict[str, Any]) -> ProgramFitAssessment:
        """Create the lead's assessment if absent, else overwrite it."""
        existing = await self.get_by_lead(lead_id)

        if existing:
            for field, value in values.items():
                setattr(existing, field, value)
            return await self.save(existing)

        assessment = ProgramFitAssessment.model_validate(
            {**values, "lead_id": lead_id, "tenant_id": self._tenant_id}
        )
        return await self.save(assessment)


class EngagementMetricsRepository(
    BaseRepository[ApplicantEngagementMetrics, EngagementMetricsUpdate, EngagementMetricsUpdate]
):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(ApplicantEngagementMetrics, session, tenant_id)

    async def get_by_lead(self, lead_id: UUID) -> Optional[ApplicantEngagementMetrics]:
        stmt = self._select().where(ApplicantEngagementMetrics.lead_id == lead_id)
        return await self._scalar_one_or_none(stmt)

    async def upsert(
        self,
        lead_id: UUID,
        data: EngagementMetricsUpdate
    ) -> ApplicantEngagementMetrics:
        existing = await self.get_by_lead(lead_id)

        if existing:
            for field, value in data.model_dump().items():
                setattr(existing, field, value)
            return await self.save(existing)

        return await self.create(data, lead_id=lead_id)
