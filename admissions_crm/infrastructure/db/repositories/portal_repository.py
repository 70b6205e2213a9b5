"""
Student Portal Configuration Repositories
"""

from typing import List, Optional
from uuid import UUID

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlmodel import SQLModel

from admissions_crm.infrastructure.db.repositories.base_repository import BaseRepository
from admissions_crm.infrastructure.db.models.portal import (
    PortalBranding,
    PortalNavigationCreate,
    PortalNavigationItem,
    PortalNavigationUpdate,
)


class PortalBrandingRepository(BaseRepository[PortalBranding, SQLModel, SQLModel]):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(PortalBranding, session, tenant_id)

    async def get_for_tenant(self) -> Optional[PortalBranding]:
        return await self._scalar_one_or_none(self._select().limit(1))


class PortalNavigationRepository(
    BaseRepository[PortalNavigationItem, PortalNavigationCreate, PortalNavigationUpdate]
):
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        super().__init__(PortalNavigationItem, session, tenant_id)

    async def list_ordered(self) -> List[PortalNavigationItem]:
        return await self._scalars(
            self._select().order_by(PortalNavigationItem.position.asc())
        )

    async def next_position(self) -> int:
        stmt = select(func.max(PortalNavigationItem.position)).where(
            PortalNavigationItem.tenant_id == self._tenant_id
        )
        current = (await self._session.execute(stmt)).scalar_one_or_none()
        return 0 if current is None else current + 1
