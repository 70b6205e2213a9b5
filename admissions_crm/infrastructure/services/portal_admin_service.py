"""
Portal Admin Service

Branding and navigation of the student portal, configured per tenant.
"""

import logging
from typing import List, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.infrastructure.db.models import (
    PortalBranding,
    PortalBrandingUpdate,
    PortalNavigationCreate,
    PortalNavigationItem,
    PortalNavigationUpdate,
)
from admissions_crm.infrastructure.db.repositories import (
    PortalBrandingRepository,
    PortalNavigationRepository,
)
from admissions_crm.infrastructure.exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)


class PortalAdminService:
    def __init__(self, session: AsyncSession, tenant_id: UUID):
        self._tenant_id = tenant_id
        self._branding_repo = PortalBrandingRepository(session, tenant_id)
        self._navigation_repo = PortalNavigationRepository(session, tenant_id)

    # =========================================================================
    # Branding
    # =========================================================================

    async def get_branding(self) -> PortalBranding:
        """Saved branding, or unsaved defaults when none exists yet."""
        branding = await self._branding_repo.get_for_tenant()
        return branding or PortalBranding(tenant_id=self._tenant_id)

    async def save_branding(self, data: PortalBrandingUpdate) -> PortalBranding:
        branding = await self._branding_repo.get_for_tenant()
        if branding is None:
            branding = PortalBranding(tenant_id=self._tenant_id)

        for field, value in data.model_dump(exclude_unset=True).items():
            setattr(branding, field, value)

        branding = await self._branding_repo.save(branding)
        logger.info(f"Portal branding saved for tenant {self._tenant_id}")
        return branding

    # =========================================================================
    # Navigation
    # =========================================================================

    async def list_navigation(self) -> List[PortalNavigationItem]:
        return await self._navigation_repo.list_ordered()

    async def create_navigation_item(self, data: PortalNavigationCreate) -> PortalNavigationItem:
        position = await self._navigation_repo.next_position()
        item = await self._navigation_repo.create(data, position=position)
        logger.info(f"Navigation item '{item.label}' added at position {position}")
        return item

    async def update_navigation_item(
        self,
        item_id: UUID,
        data: PortalNavigationUpdate
    ) -> PortalNavigationItem:
        item = await self._navigation_repo.update(item_id, data)
        if item is None:
            raise NotFoundError(
                f"Navigation item {item_id} not found",
                operation="update",
                table="student_portal_navigation"
            )
        return item

    async def delete_navigation_item(self, item_id: UUID) -> None:
        if not await self._navigation_repo.delete(item_id):
            raise NotFoundError(
                f"Navigation item {item_id} not found",
                operation="delete",
                table="student_portal_navigation"
            )

    async def reorder_navigation(
        self,
        positions: List[Tuple[UUID, int]]
    ) -> List[PortalNavigationItem]:
        """
        Apply new positions to navigation items.

        Raises:
            ValidationError: Any id does not belong to this tenant
        """
        if not positions:
            return await self.list_navigation()

        ids = [item_id for item_id, _ in positions]
        items = {item.id: item for item in await self._navigation_repo.get_many(ids)}

        unknown = [str(item_id) for item_id in ids if item_id not in items]
        if unknown:
            raise ValidationError(
                "Navigation items not found for this tenant",
                details={"ids": unknown}
            )

        for item_id, position in positions:
            items[item_id].position = position
            await self._navigation_repo.save(items[item_id])

        logger.info(f"Reordered {len(positions)} navigation item(s)")
        return await self.list_navigation()
