"""
Lead API Routes

Lead CRUD, filtered listing, bulk pipeline actions and duplicate tools.
"""

import logging
from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Query, Response, status
from pydantic import BaseModel, Field

from admissions_crm.api.dependencies import (
    AdminContextDep,
    LeadServiceDep,
    StaffContextDep,
)
from admissions_crm.domain.duplicates import MergeResolution
from admissions_crm.infrastructure.db.models import (
    DuplicatePreventionMode,
    LeadCreate,
    LeadPriority,
    LeadStatus,
    LeadUpdate,
)
from admissions_crm.infrastructure.db.repositories import LeadFilters

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api", tags=["leads"])


# =============================================================================
# Request Schemas
# =============================================================================

class StatusChangeRequest(BaseModel):
    status: LeadStatus


class AssignRequest(BaseModel):
    lead_ids: List[UUID] = Field(..., min_length=1)
    user_id: UUID


class BulkStatusRequest(BaseModel):
    lead_ids: List[UUID] = Field(..., min_length=1)
    status: LeadStatus


class TagsRequest(BaseModel):
    lead_ids: List[UUID] = Field(..., min_length=1)
    tags: List[str] = Field(..., min_length=1)


class DuplicatePreventionRequest(BaseModel):
    mode: Optional[DuplicatePreventionMode] = None


class ClaimRequest(BaseModel):
    lead_ids: List[UUID] = Field(..., min_length=1)


class MergeOptions(BaseModel):
    merge_programs: bool = True
    merge_tags: bool = True
    merge_documents: bool = True
    highest_priority: bool = False
    highest_score: bool = True
    concatenate_notes: bool = False

    def to_resolution(self) -> MergeResolution:
        return MergeResolution(**self.model_dump())


class MergeRequest(BaseModel):
    primary_id: UUID
    secondary_ids: List[UUID] = Field(..., min_length=1)
    resolution: MergeOptions = Field(default_factory=MergeOptions)


class BulkMergeRequest(BaseModel):
    groups: List[List[UUID]] = Field(..., min_length=1)
    resolution: MergeOptions = Field(default_factory=MergeOptions)


class DeleteDuplicatesRequest(BaseModel):
    lead_ids: List[UUID] = Field(..., min_length=1)


def lead_filters(
    status_filter: Optional[LeadStatus] = Query(None, alias="status"),
    priority: Optional[LeadPriority] = None,
    assigned_to: Optional[UUID] = None,
    search: Optional[str] = None,
    tag: Optional[str] = None,
) -> LeadFilters:
    return LeadFilters(
        status=status_filter,
        priority=priority,
        assigned_to=assigned_to,
        search=search,
        tag=tag,
    )


# =============================================================================
# Endpoints
# =============================================================================

@router.get("/leads")
async def list_leads(
    context: StaffContextDep,
    service: LeadServiceDep,
    filters: LeadFilters = Depends(lead_filters),
    page: int = Query(1, ge=1),
    page_size: int = Query(50, ge=1),
):
    """List leads. ``page_size`` above 100 is capped to 100."""
    return await service.list_leads(filters, page=page, page_size=page_size)


@router.post("/leads", status_code=status.HTTP_201_CREATED)
async def create_lead(data: LeadCreate, context: StaffContextDep, service: LeadServiceDep):
    return await service.create_lead(data)


@router.get("/leads/duplicates")
async def find_duplicates(context: StaffContextDep, service: LeadServiceDep):
    groups = await service.find_duplicates()
    return {"groups": groups, "total": len(groups)}


@router.get("/leads/duplicate-prevention")
async def get_duplicate_prevention(context: StaffContextDep, service: LeadServiceDep):
    return {"mode": await service.get_duplicate_prevention()}


@router.put("/leads/duplicate-prevention")
async def set_duplicate_prevention(
    request: DuplicatePreventionRequest,
    context: AdminContextDep,
    service: LeadServiceDep,
):
    return {"mode": await service.set_duplicate_prevention(request.mode)}


@router.post("/leads/assign")
async def assign_leads(request: AssignRequest, context: StaffContextDep, service: LeadServiceDep):
    return await service.assign_leads(request.lead_ids, request.user_id)


@router.post("/leads/bulk-status")
async def bulk_update_status(
    request: BulkStatusRequest,
    context: StaffContextDep,
    service: LeadServiceDep,
):
    return await service.bulk_update_status(request.lead_ids, request.status)


@router.post("/leads/tags")
async def add_tags(request: TagsRequest, context: StaffContextDep, service: LeadServiceDep):
    return await service.add_tags(request.lead_ids, request.tags)


@router.post("/leads/tags/remove")
async def remove_tags(request: TagsRequest, context: StaffContextDep, service: LeadServiceDep):
    return await service.remove_tags(request.lead_ids, request.tags)


@router.get("/leads/export.csv")
async def export_leads(
    context: StaffContextDep,
    service: LeadServiceDep,
    filters: LeadFilters = Depends(lead_filters),
):
    """Export every lead matching the list filters as CSV."""
    content = await service.export_leads_csv(filters)
    return Response(
        content=content,
        media_type="text/csv",
        headers={"Content-Disposition": 'attachment; filename="leads.csv"'},
    )


@router.post("/leads/claim")
async def claim_leads(request: ClaimRequest, context: StaffContextDep, service: LeadServiceDep):
    """Assign unassigned leads to the calling user."""
    return await service.claim_leads(request.lead_ids, context.user_id)


@router.post("/leads/merge")
async def merge_leads(request: MergeRequest, context: AdminContextDep, service: LeadServiceDep):
    return await service.merge_leads(
        request.primary_id,
        request.secondary_ids,
        request.resolution.to_resolution(),
    )


@router.post("/leads/merge/bulk")
async def bulk_merge_leads(
    request: BulkMergeRequest,
    context: AdminContextDep,
    service: LeadServiceDep,
):
    """Merge each group into its first lead. Groups succeed or fail independently."""
    return await service.bulk_merge_groups(
        request.groups, request.resolution.to_resolution()
    )


@router.post("/leads/duplicates/delete")
async def delete_duplicates(
    request: DeleteDuplicatesRequest,
    context: AdminContextDep,
    service: LeadServiceDep,
):
    return await service.delete_duplicates(request.lead_ids)


@router.get("/leads/{lead_id}")
async def get_lead(lead_id: UUID, context: StaffContextDep, service: LeadServiceDep):
    return await service.get_lead(lead_id)


@router.patch("/leads/{lead_id}")
async def update_lead(
    lead_id: UUID,
    data: LeadUpdate,
    context: StaffContextDep,
    service: LeadServiceDep,
):
    return await service.update_lead(lead_id, data)


@router.delete("/leads/{lead_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_lead(lead_id: UUID, context: AdminContextDep, service: LeadServiceDep):
    await service.delete_lead(lead_id)


@router.post("/leads/{lead_id}/status")
async def change_status(
    lead_id: UUID,
    request: StatusChangeRequest,
    context: StaffContextDep,
    service: LeadServiceDep,
):
    return await service.change_status(lead_id, request.status)
