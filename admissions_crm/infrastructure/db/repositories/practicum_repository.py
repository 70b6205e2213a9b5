"""
Practicum Repositories
"""

from typing import List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from admissions_crm.infrastructure.db.repositories.base_repository import BaseRepository
from admissions_crm.infrastructure.db.models.practicum import (
    PracticumAssignment,
    PracticumAssignmentCreate,
    PracticumProgram,
    PracticumProgramCreate,
    PracticumRecord,
)


class PracticumProgramRepository(
    BaseRepository[PracticumProgram, PracticumProgramCreate, SQLModel]
):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(PracticumProgram, session, tenant_id)

    async def list_ordered(self) -> List[PracticumProgram]:
        return await self._scalars(self._select().order_by(PracticumProgram.name.asc()))


class PracticumAssignmentRepository(
    BaseRepository[PracticumAssignment, PracticumAssignmentCreate, SQLModel]
):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(PracticumAssignment, session, tenant_id)

    async def list_for_program(self, program_id: UUID) -> List[PracticumAssignment]:
        stmt = (
            self._select()
            .where(PracticumAssignment.program_id == program_id)
            .order_by(PracticumAssignment.created_at.asc())
        )
        return await self._scalars(stmt)

    async def list_for_lead(self, lead_id: UUID) -> List[PracticumAssignment]:
        stmt = (
            self._select()
            .where(PracticumAssignment.lead_id == lead_id)
            .order_by(PracticumAssignment.start_date.desc())
        )
        return await self._scalars(stmt)


class PracticumRecordRepository(BaseRepository[PracticumRecord, SQLModel, SQLModel]):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(PracticumRecord, session, tenant_id)

    async def list_for_assignments(self, assignment_ids: List[UUID]) -> List[PracticumRecord]:
        if not assignment_ids:
            return []
        stmt = (
            self._select()
            .where(PracticumRecord.assignment_id.in_(assignment_ids))
            .order_by(PracticumRecord.created_at.asc())
        )
        return await self._scalars(stmt)
