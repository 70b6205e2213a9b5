"""
Tenant Repository

Tenants are the partitioning key, so this repository is not itself
tenant-scoped.
"""

from typing import Optional
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.infrastructure.db.models.tenant import Tenant, TenantUser


class TenantRepository:
    """Repository for tenants and their memberships."""

    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, tenant_id: UUID) -> Optional[Tenant]:
        return await self._session.get(Tenant, tenant_id)

    async def get_membership(
        self,
        tenant_id: UUID,
        user_id: UUID
    ) -> Optional[TenantUser]:
        """Get the active membership of a user in a tenant."""
        stmt = select(TenantUser).where(
            TenantUser.tenant_id == tenant_id,
            TenantUser.user_id == user_id,
            TenantUser.is_active.is_(True),
        )
        result = await self._session.execute(stmt)
        return result.scalar_one_or_none()

    async def set_duplicate_prevention(
        self,
        tenant_id: UUID,
        mode: Optional[str]
    ) -> Optional[Tenant]:
        tenant = await self.get_by_id(tenant_id)
        if tenant is None:
            return None
        tenant.duplicate_prevention = mode
        self._session.add(tenant)
        await self._session.flush()
        await self._session.refresh(tenant)
        return tenant
