"""
Student Portal Admin API Routes

Branding and navigation of the tenant's student portal.
"""

from typing import List
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from admissions_crm.api.dependencies import (
    AdminContextDep,
    PortalAdminServiceDep,
    TenantContextDep,
)
from admissions_crm.infrastructure.db.models import (
    PortalBrandingUpdate,
    PortalNavigationCreate,
    PortalNavigationUpdate,
)

router = APIRouter(prefix="/api/portal", tags=["student-portal"])


class NavigationPosition(BaseModel):
    id: UUID
    position: int = Field(..., ge=0)


class ReorderRequest(BaseModel):
    items: List[NavigationPosition]


@router.get("/branding")
async def get_branding(context: TenantContextDep, service: PortalAdminServiceDep):
    return await service.get_branding()


@router.put("/branding")
async def save_branding(
    data: PortalBrandingUpdate,
    context: AdminContextDep,
    service: PortalAdminServiceDep,
):
    return await service.save_branding(data)


@router.get("/navigation")
async def list_navigation(context: TenantContextDep, service: PortalAdminServiceDep):
    return await service.list_navigation()


@router.post("/navigation", status_code=status.HTTP_201_CREATED)
async def create_navigation_item(
    data: PortalNavigationCreate,
    context: AdminContextDep,
    service: PortalAdminServiceDep,
):
    return await service.create_navigation_item(data)


@router.post("/navigation/reorder")
async def reorder_navigation(
    request: ReorderRequest,
    context: AdminContextDep,
    service: PortalAdminServiceDep,
):
    return await service.reorder_navigation([(item.id, item.position) for item in request.items])


@router.patch("/navigation/{item_id}")
async def update_navigation_item(
    item_id: UUID,
    data: PortalNavigationUpdate,
    context: AdminContextDep,
    service: PortalAdminServiceDep,
):
    return await service.update_navigation_item(item_id, data)


@router.delete("/navigation/{item_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_navigation_item(
    item_id: UUID,
    context: AdminContextDep,
    service: PortalAdminServiceDep,
):
    await service.delete_navigation_item(item_id)
