"""
Program Capacity Service

Seat counts per program and derived availability.
"""

import logging
from typing import Any, Dict, List
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.infrastructure.db.models import (
    ProgramCapacity,
    ProgramCapacityCreate,
    ProgramCapacityUpdate,
)
from admissions_crm.infrastructure.db.repositories import ProgramCapacityRepository
from admissions_crm.infrastructure.exceptions import DuplicateError, NotFoundError


logger = logging.getLogger(__name__)


def compute_availability(capacity: ProgramCapacity) -> Dict[str, Any]:
    """Available seats (never negative), utilization % and at-capacity flag."""
    occupied = capacity.filled_seats + capacity.reserved_seats
    available = max(0, capacity.total_seats - occupied)
    utilization = round(occupied / capacity.total_seats * 100, 1) if capacity.total_seats else 0.0

    return {
        "program_name": capacity.program_name,
        "total_seats": capacity.total_seats,
        "filled_seats": capacity.filled_seats,
        "reserved_seats": capacity.reserved_seats,
        "waitlist_count": capacity.waitlist_count,
        "available_seats": available,
        "utilization_percent": utilization,
        "at_capacity": available == 0,
    }


class ProgramCapacityService:
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        self._repo = ProgramCapacityRepository(session, tenant_id)

    async def list(self) -> List[ProgramCapacity]:
        return await self._repo.list_ordered()

    async def get_by_program(self, program_name: str) -> ProgramCapacity:
        capacity = await self._repo.get_by_program(program_name)
        if capacity is None:
            raise NotFoundError(
                f"No capacity configured for program '{program_name}'",
                operation="get",
                table="program_capacity"
            )
        return capacity

    async def create(self, data: ProgramCapacityCreate) -> ProgramCapacity:
        if await self._repo.get_by_program(data.program_name):
            raise DuplicateError(
                f"Capacity for program '{data.program_name}' already exists",
                operation="create",
                table="program_capacity"
            )
        capacity = await self._repo.create(data)
        logger.info(f"Capacity for '{capacity.program_name}' set to {capacity.total_seats} seats")
        return capacity

    async def update(self, program_name: str, data: ProgramCapacityUpdate) -> ProgramCapacity:
        capacity = await self.get_by_program(program_name)
        return await self._repo.update(capacity.id, data)

    async def delete(self, program_name: str) -> None:
        capacity = await self.get_by_program(program_name)
        await self._repo.delete(capacity.id)
        logger.info(f"Capacity for '{program_name}' deleted")

    async def availability(self, program_name: str) -> Dict[str, Any]:
        return compute_availability(await self.get_by_program(program_name))
