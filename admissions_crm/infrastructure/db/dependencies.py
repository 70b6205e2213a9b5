"""
Dependency Injection Providers for the Admissions CRM

Provides FastAPI dependencies for database sessions and the
tenant-independent repositories.
"""

from typing import Annotated, AsyncGenerator

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.infrastructure.db.database import get_session
from admissions_crm.infrastructure.db.repositories import TenantRepository


# Type alias for session dependency
SessionDep = Annotated[AsyncSession, Depends(get_session)]


async def get_tenant_repository(
    session: SessionDep,
) -> AsyncGenerator[TenantRepository, None]:
    """
    Dependency provider for TenantRepository.

    Usage:
        @router.get("/tenant")
        async def get_tenant(
            repo: TenantRepository = Depends(get_tenant_repository)
        ):
            ...
    """
    yield TenantRepository(session)


TenantRepoDep = Annotated[TenantRepository, Depends(get_tenant_repository)]
