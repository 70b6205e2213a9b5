"""
Document Service

Upload, listing and review of lead documents. Review decisions go through
EntryRequirementService so the requirement mirror stays in sync.
"""

import logging
from functools import partial
from typing import Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.config.settings import get_settings
from admissions_crm.infrastructure.db.database import run_after_commit, run_after_rollback
from admissions_crm.infrastructure.db.models import DocumentStatus, Lead, LeadDocument
from admissions_crm.infrastructure.db.repositories import DocumentRepository, LeadRepository
from admissions_crm.infrastructure.exceptions import NotFoundError, ValidationError
from admissions_crm.infrastructure.services.entry_requirement_service import (
    EntryRequirementService,
    SyncResult,
)
from admissions_crm.infrastructure.services.storage_service import StorageService


logger = logging.getLogger(__name__)


class DocumentService:
    """Lead documents backed by object storage."""

    def __init__(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        storage: Optional[StorageService] = None,
    ):
        self._session = session
        self._tenant_id = tenant_id
        self._document_repo = DocumentRepository(session, tenant_id)
        self._lead_repo = LeadRepository(session, tenant_id)
        self._requirements = EntryRequirementService(session, tenant_id)
        self._storage = storage or StorageService()

    async def upload_document(
        self,
        lead_id: UUID,
        document_type: str,
        file_name: str,
        content: bytes,
        content_type: Optional[str] = None,
        entry_requirement_id: Optional[UUID] = None,
    ) -> LeadDocument:
        """
        Store a file and record it as an uploaded document of the lead.

        Raises:
            NotFoundError: Unknown lead
            ValidationError: Empty or oversized file
            StorageError: Upload failed
        """
        if not await self._lead_repo.exists(lead_id):
            raise NotFoundError(f"Lead {lead_id} not found", operation="get", table="leads")

        if not content:
            raise ValidationError("Uploaded file is empty")
        max_bytes = get_settings().max_upload_bytes
        if len(content) > max_bytes:
            raise ValidationError(
                "Uploaded file is too large",
                details={"size": len(content), "max_bytes": max_bytes}
            )

        path = await self._storage.upload(self._tenant_id, lead_id, file_name, content, content_type)
        # The object must not outlive a row that never commits
        run_after_rollback(self._session, partial(self._storage.remove, path))

        document = LeadDocument(
            tenant_id=self._tenant_id,
            lead_id=lead_id,
            document_type=document_type,
            file_name=file_name,
            storage_path=path,
            content_type=content_type,
            file_size=len(content),
            admin_status=DocumentStatus.UPLOADED,
            entry_requirement_id=entry_requirement_id,
        )
        document = await self._document_repo.save(document)
        logger.info(f"Document {document.id} ({document_type}) uploaded for lead {lead_id}")
        return document

    async def get_lead(self, lead_id: UUID) -> Lead:
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found", operation="get", table="leads")
        return lead

    async def list_documents(self, lead_id: UUID) -> List[LeadDocument]:
        return await self._document_repo.list_for_lead(lead_id)

    async def get_document(self, document_id: UUID) -> LeadDocument:
        document = await self._document_repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError(
                f"Document {document_id} not found",
                operation="get",
                table="lead_documents"
            )
        return document

    async def get_download_url(self, document_id: UUID) -> Dict[str, str]:
        """Signed, time-limited URL for the stored file."""
        document = await self.get_document(document_id)
        if not document.storage_path:
            raise ValidationError("Document has no stored file")
        return {
            "url": await self._storage.create_signed_url(document.storage_path),
            "file_name": document.file_name,
        }

    async def delete_document(self, document_id: UUID) -> None:
        """Delete the document row; the stored object goes once the delete commits."""
        document = await self.get_document(document_id)

        await self._requirements.unlink_for_document(document)
        await self._document_repo.delete(document_id)
        if document.storage_path:
            run_after_commit(self._session, partial(self._storage.remove, document.storage_path))

        logger.info(f"Document {document_id} deleted")

    async def approve_document(
        self,
        document_id: UUID,
        reviewed_by: UUID,
        notes: Optional[str] = None,
    ) -> SyncResult:
        return await self._requirements.approve_document_and_requirement(
            document_id, reviewed_by, notes
        )

    async def reject_document(
        self,
        document_id: UUID,
        reason: str,
        reviewed_by: Optional[UUID] = None,
    ) -> SyncResult:
        return await self._requirements.reject_document_and_requirement(
            document_id, reason, reviewed_by
        )
