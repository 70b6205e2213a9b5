"""
Entry Requirement Repositories

EntryRequirementRepository: program-level requirement definitions.
LeadEntryRequirementRepository: per-lead instances.
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from admissions_crm.infrastructure.db.repositories.base_repository import BaseRepository
from admissions_crm.infrastructure.db.models.entry_requirement import (
    EntryRequirement,
    EntryRequirementCreate,
    LeadEntryRequirement,
)


class EntryRequirementRepository(
    BaseRepository[EntryRequirement, EntryRequirementCreate, SQLModel]
):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(EntryRequirement, session, tenant_id)

    async def list_for_program(self, program_name: str) -> List[EntryRequirement]:
        stmt = (
            self._select()
            .where(EntryRequirement.program_name == program_name)
            .order_by(EntryRequirement.display_order.asc(), EntryRequirement.title.asc())
        )
        return await self._scalars(stmt)


class LeadEntryRequirementRepository(
    BaseRepository[LeadEntryRequirement, SQLModel, SQLModel]
):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(LeadEntryRequirement, session, tenant_id)

    async def list_for_lead(self, lead_id: UUID) -> List[LeadEntryRequirement]:
        stmt = (
            self._select()
            .where(LeadEntryRequirement.lead_id == lead_id)
            .order_by(LeadEntryRequirement.created_at.asc())
        )
        return await self._scalars(stmt)

    async def get_for_lead(
        self,
        lead_id: UUID,
        entry_requirement_id: UUID
    ) -> Optional[LeadEntryRequirement]:
        """The lead's instance of a program requirement, if any."""
        stmt = self._select().where(
            LeadEntryRequirement.lead_id == lead_id,
            LeadEntryRequirement.entry_requirement_id == entry_requirement_id,
        )
        return await self._scalar_one_or_none(stmt)

    async def get_by_linked_document(self, document_id: UUID) -> Optional[LeadEntryRequirement]:
        stmt = self._select().where(LeadEntryRequirement.linked_document_id == document_id)
        return await self._scalar_one_or_none(stmt)
