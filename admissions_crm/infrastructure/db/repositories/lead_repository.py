"""
Lead Repository

Extends BaseRepository with filtered listing and duplicate lookups.
"""

from dataclasses import dataclass
from typing import List, Optional, Tuple
from uuid import UUID

from sqlalchemy import String, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.infrastructure.db.repositories.base_repository import BaseRepository
from admissions_crm.infrastructure.db.models.lead import (
    Lead,
    LeadCreate,
    LeadPriority,
    LeadStatus,
    LeadUpdate,
)


@dataclass
class LeadFilters:
    """Optional filters for lead listing."""
    status: Optional[LeadStatus] = None
    priority: Optional[LeadPriority] = None
    assigned_to: Optional[UUID] = None
    search: Optional[str] = None
    tag: Optional[str] = None


class LeadRepository(BaseRepository[Lead, LeadCreate, LeadUpdate]):
    """Repository for leads."""

    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(Lead, session, tenant_id)

    def _apply_filters(self, stmt, filters: LeadFilters):
        if filters.status:
            stmt = stmt.where(Lead.status == filters.status)
        if filters.priority:
            stmt = stmt.where(Lead.priority == filters.priority)
        if filters.assigned_to:
            stmt = stmt.where(Lead.assigned_to == filters.assigned_to)
        if filters.search:
            pattern = f"%{filters.search.strip()}%"
            stmt = stmt.where(or_(
                Lead.first_name.ilike(pattern),
                Lead.last_name.ilike(pattern),
                Lead.email.ilike(pattern),
            ))
        if filters.tag:
            # tags is a JSON array; match the quoted element in its text form
            stmt = stmt.where(cast(Lead.tags, String).ilike(f'%"{filters.tag}"%'))
        return stmt

    async def search(
        self,
        filters: LeadFilters,
        skip: int = 0,
        limit: int = 50
    ) -> Tuple[List[Lead], int]:
        """Filtered page of leads, newest first, plus the total match count."""
        stmt = self._apply_filters(self._select(), filters)

        count_stmt = select(func.count()).select_from(stmt.subquery())
        total = (await self._session.execute(count_stmt)).scalar_one()

        page_stmt = stmt.order_by(Lead.created_at.desc()).offset(skip).limit(limit)
        return await self._scalars(page_stmt), total

    async def list_filtered(self, filters: LeadFilters) -> List[Lead]:
        """Every lead matching ``filters``, oldest first."""
        stmt = self._apply_filters(self._select(), filters)
        return await self._scalars(stmt.order_by(Lead.created_at.asc()))

    async def get_by_email(self, email: str) -> Optional[Lead]:
        """Case-insensitive email lookup (first match)."""
        stmt = (
            self._select()
            .where(func.lower(Lead.email) == email.strip().lower())
            .limit(1)
        )
        return await self._scalar_one_or_none(stmt)

    async def list_with_phone(self) -> List[Lead]:
        """All leads that have a phone number, for normalized comparison."""
        return await self._scalars(self._select().where(Lead.phone.isnot(None)))

    async def list_all(self) -> List[Lead]:
        return await self._scalars(self._select().order_by(Lead.created_at.asc()))
