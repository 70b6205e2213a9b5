"""
Program Capacity Repository
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.infrastructure.db.repositories.base_repository import BaseRepository
from admissions_crm.infrastructure.db.models.program_capacity import (
    ProgramCapacity,
    ProgramCapacityCreate,
    ProgramCapacityUpdate,
)


class ProgramCapacityRepository(
    BaseRepository[ProgramCapacity, ProgramCapacityCreate, ProgramCapacityUpdate]
):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(ProgramCapacity, session, tenant_id)

    async def get_by_program(self, program_name: str) -> Optional[ProgramCapacity]:
        stmt = self._select().where(ProgramCapacity.program_name == program_name)
        return await self._scalar_one_or_none(stmt)

    async def list_ordered(self) -> List[ProgramCapacity]:
        return await self._scalars(self._select().order_by(ProgramCapacity.program_name.asc()))
