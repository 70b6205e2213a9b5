"""
Entry Requirement API Routes

Program requirement definitions and each lead's requirement checklist.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, status
from pydantic import BaseModel, Field

from admissions_crm.api.dependencies import (
    AdminContextDep,
    RequirementServiceDep,
    StaffContextDep,
    TenantContextDep,
    ensure_lead_access,
)
from admissions_crm.infrastructure.db.models import EntryRequirementCreate

router = APIRouter(prefix="/api", tags=["entry-requirements"])


class InstantiateRequest(BaseModel):
    program_name: Optional[str] = None


class ApproveRequirementRequest(BaseModel):
    cascade: bool = False
    notes: Optional[str] = None


class RejectRequirementRequest(BaseModel):
    reason: str = Field(..., min_length=1)
    cascade: bool = False


class WaiveRequirementRequest(BaseModel):
    reason: str = Field(..., min_length=1)


class LinkDocumentRequest(BaseModel):
    document_id: UUID


# =============================================================================
# Program definitions
# =============================================================================

@router.get("/entry-requirements")
async def list_program_requirements(
    program: str,
    context: TenantContextDep,
    service: RequirementServiceDep,
):
    return await service.list_program_requirements(program)


@router.post("/entry-requirements", status_code=status.HTTP_201_CREATED)
async def create_program_requirement(
    data: EntryRequirementCreate,
    context: AdminContextDep,
    service: RequirementServiceDep,
):
    return await service.create_requirement(data)


# =============================================================================
# Lead checklist
# =============================================================================

@router.get("/leads/{lead_id}/requirements")
async def list_lead_requirements(
    lead_id: UUID,
    context: TenantContextDep,
    service: RequirementServiceDep,
):
    if not context.is_staff:
        ensure_lead_access(context, await service.get_lead(lead_id))
    return await service.list_for_lead(lead_id)


@router.post("/leads/{lead_id}/requirements/instantiate")
async def instantiate_requirements(
    lead_id: UUID,
    request: InstantiateRequest,
    context: StaffContextDep,
    service: RequirementServiceDep,
):
    return await service.instantiate_for_lead(lead_id, request.program_name)


@router.get("/leads/{lead_id}/requirements/progress")
async def get_requirement_progress(
    lead_id: UUID,
    context: TenantContextDep,
    service: RequirementServiceDep,
):
    if not context.is_staff:
        ensure_lead_access(context, await service.get_lead(lead_id))
    return await service.get_progress(lead_id)


@router.post("/requirements/{requirement_id}/approve")
async def approve_requirement(
    requirement_id: UUID,
    request: ApproveRequirementRequest,
    context: StaffContextDep,
    service: RequirementServiceDep,
):
    return await service.approve_requirement(
        requirement_id, context.user_id, cascade=request.cascade, notes=request.notes
    )


@router.post("/requirements/{requirement_id}/reject")
async def reject_requirement(
    requirement_id: UUID,
    request: RejectRequirementRequest,
    context: StaffContextDep,
    service: RequirementServiceDep,
):
    return await service.reject_requirement(
        requirement_id, request.reason, context.user_id, cascade=request.cascade
    )


@router.post("/requirements/{requirement_id}/waive")
async def waive_requirement(
    requirement_id: UUID,
    request: WaiveRequirementRequest,
    context: AdminContextDep,
    service: RequirementServiceDep,
):
    return await service.waive_requirement(requirement_id, request.reason, context.user_id)


@router.post("/requirements/{requirement_id}/link")
async def link_document(
    requirement_id: UUID,
    request: LinkDocumentRequest,
    context: StaffContextDep,
    service: RequirementServiceDep,
):
    return await service.link_document(requirement_id, request.document_id)


@router.post("/requirements/{requirement_id}/unlink")
async def unlink_document(
    requirement_id: UUID,
    context: StaffContextDep,
    service: RequirementServiceDep,
):
    return await service.unlink_document(requirement_id)
