"""
Document API Routes

Upload, download and review of lead documents. Review endpoints keep the
linked entry requirement in sync.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, File, Form, UploadFile, status
from pydantic import BaseModel, Field

from admissions_crm.api.dependencies import (
    DocumentServiceDep,
    StaffContextDep,
    TenantContext,
    TenantContextDep,
    ensure_lead_access,
)
from admissions_crm.infrastructure.services.document_service import DocumentService
from admissions_crm.infrastructure.services.entry_requirement_service import SyncResult

router = APIRouter(prefix="/api", tags=["documents"])


class ApproveDocumentRequest(BaseModel):
    notes: Optional[str] = None


class RejectDocumentRequest(BaseModel):
    reason: str = Field(..., min_length=1)


async def _check_lead(context: TenantContext, service: DocumentService, lead_id: UUID) -> None:
    if not context.is_staff:
        ensure_lead_access(context, await service.get_lead(lead_id))


def _sync_response(result: SyncResult) -> dict:
    return {"document": result.document, "requirement": result.requirement}


@router.post("/leads/{lead_id}/documents", status_code=status.HTTP_201_CREATED)
async def upload_document(
    lead_id: UUID,
    context: TenantContextDep,
    service: DocumentServiceDep,
    file: UploadFile = File(...),
    document_type: str = Form(...),
    entry_requirement_id: Optional[UUID] = Form(None),
):
    await _check_lead(context, service, lead_id)
    content = await file.read()
    return await service.upload_document(
        lead_id=lead_id,
        document_type=document_type,
        file_name=file.filename or "upload",
        content=content,
        content_type=file.content_type,
        entry_requirement_id=entry_requirement_id,
    )


@router.get("/leads/{lead_id}/documents")
async def list_documents(lead_id: UUID, context: TenantContextDep, service: DocumentServiceDep):
    await _check_lead(context, service, lead_id)
    return await service.list_documents(lead_id)


@router.get("/documents/{document_id}")
async def get_document(document_id: UUID, context: TenantContextDep, service: DocumentServiceDep):
    document = await service.get_document(document_id)
    await _check_lead(context, service, document.lead_id)
    return document


@router.get("/documents/{document_id}/download-url")
async def get_download_url(
    document_id: UUID,
    context: TenantContextDep,
    service: DocumentServiceDep,
):
    document = await service.get_document(document_id)
    await _check_lead(context, service, document.lead_id)
    return await service.get_download_url(document_id)


@router.delete("/documents/{document_id}", status_code=status.HTTP_204_NO_CONTENT)
async def delete_document(
    document_id: UUID,
    context: StaffContextDep,
    service: DocumentServiceDep,
):
    await service.delete_document(document_id)


@router.post("/documents/{document_id}/approve")
async def approve_document(
    document_id: UUID,
    request: ApproveDocumentRequest,
    context: StaffContextDep,
    service: DocumentServiceDep,
):
    result = await service.approve_document(document_id, context.user_id, request.notes)
    return _sync_response(result)


@router.post("/documents/{document_id}/reject")
async def reject_document(
    document_id: UUID,
    request: RejectDocumentRequest,
    context: StaffContextDep,
    service: DocumentServiceDep,
):
    result = await service.reject_document(document_id, request.reason, context.user_id)
    return _sync_response(result)
