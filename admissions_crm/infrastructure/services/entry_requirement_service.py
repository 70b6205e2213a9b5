"""
Entry Requirement Service

Keeps a lead's entry requirements in sync with the admin status of the
documents that satisfy them.

Every cascade (document + requirement) is written through the caller's
session. Nothing is committed here: a failure raises RequirementSyncError
and the session owner rolls back both writes.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.infrastructure.db.models import (
    COMPLETED_STATUSES,
    DocumentStatus,
    EntryRequirement,
    EntryRequirementCreate,
    Lead,
    LeadDocument,
    LeadEntryRequirement,
    RequirementStatus,
    utcnow,
)
from admissions_crm.infrastructure.db.repositories import (
    DocumentRepository,
    EntryRequirementRepository,
    LeadEntryRequirementRepository,
    LeadRepository,
)
from admissions_crm.infrastructure.exceptions import (
    NotFoundError,
    RequirementSyncError,
    ValidationError,
)


logger = logging.getLogger(__name__)


@dataclass
class SyncResult:
    """Document and requirement written by one cascade."""
    document: LeadDocument
    requirement: Optional[LeadEntryRequirement] = None


class EntryRequirementService:
    """Program entry requirements and their per-lead instances."""

    def __init__(self, session: AsyncSession, tenant_id: UUID):
        self._session = session
        self._tenant_id = tenant_id
        self._requirement_repo = EntryRequirementRepository(session, tenant_id)
        self._lead_requirement_repo = LeadEntryRequirementRepository(session, tenant_id)
        self._document_repo = DocumentRepository(session, tenant_id)
        self._lead_repo = LeadRepository(session, tenant_id)

    # =========================================================================
    # Program requirement definitions
    # =========================================================================

    async def create_requirement(self, data: EntryRequirementCreate) -> EntryRequirement:
        requirement = await self._requirement_repo.create(data)
        logger.info(f"Created entry requirement '{requirement.title}' for {requirement.program_name}")
        return requirement

    async def list_program_requirements(self, program_name: str) -> List[EntryRequirement]:
        return await self._requirement_repo.list_for_program(program_name)

    # =========================================================================
    # Per-lead requirements
    # =========================================================================

    async def get_lead(self, lead_id: UUID) -> Lead:
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found", operation="get", table="leads")
        return lead

    async def instantiate_for_lead(
        self,
        lead_id: UUID,
        program_name: Optional[str] = None
    ) -> List[LeadEntryRequirement]:
        """
        Create the lead's missing requirement rows for a program.

        Existing rows are left alone, so calling this twice is a no-op.
        A document whose type matches a requirement's linked_document_type
        and is not linked elsewhere is linked automatically.

        Args:
            lead_id: Lead to instantiate for
            program_name: Program whose requirements apply. Defaults to the
                lead's first program of interest.

        Returns:
            All of the lead's requirement rows
        """
        lead = await self.get_lead(lead_id)
        program_name = program_name or lead.primary_program
        if not program_name:
            raise ValidationError(
                "Lead has no program of interest",
                details={"lead_id": str(lead_id)}
            )

        definitions = await self._requirement_repo.list_for_program(program_name)
        documents = await self._document_repo.list_for_lead(lead_id)

        created = 0
        for definition in definitions:
            existing = await self._lead_requirement_repo.get_for_lead(lead_id, definition.id)
            if existing:
                continue

            document = self._match_document(definition, documents)
            requirement = LeadEntryRequirement(
                tenant_id=self._tenant_id,
                lead_id=lead_id,
                entry_requirement_id=definition.id,
                status=RequirementStatus.PENDING,
                linked_document_id=document.id if document else None,
            )
            if document:
                document.entry_requirement_id = definition.id
                await self._document_repo.save(document)
            await self._lead_requirement_repo.save(requirement)
            created += 1

        logger.info(f"Instantiated {created} requirement(s) of '{program_name}' for lead {lead_id}")
        return await self._lead_requirement_repo.list_for_lead(lead_id)

    @staticmethod
    def _match_document(
        definition: EntryRequirement,
        documents: List[LeadDocument]
    ) -> Optional[LeadDocument]:
        if not definition.linked_document_type:
            return None
        for document in documents:
            if (
                document.document_type == definition.linked_document_type
                and document.entry_requirement_id in (None, definition.id)
            ):
                return document
        return None

    async def list_for_lead(self, lead_id: UUID) -> List[Dict[str, Any]]:
        """Lead requirements joined with their definition and linked document."""
        requirements = await self._lead_requirement_repo.list_for_lead(lead_id)
        definitions = await self._definitions_for(requirements)
        documents = {
            doc.id: doc for doc in await self._document_repo.get_many(
                [r.linked_document_id for r in requirements if r.linked_document_id]
            )
        }

        views = []
        for requirement in requirements:
            definition = definitions.get(requirement.entry_requirement_id)
            document = documents.get(requirement.linked_document_id)
            views.append({
                **requirement.model_dump(),
                "title": definition.title if definition else None,
                "requirement_type": definition.requirement_type if definition else None,
                "is_mandatory": definition.is_mandatory if definition else True,
                "threshold_data": definition.threshold_data if definition else {},
                "linked_document": {
                    "id": document.id,
                    "file_name": document.file_name,
                    "admin_status": document.admin_status,
                } if document else None,
            })
        return views

    async def get_progress(self, lead_id: UUID) -> Dict[str, Any]:
        """Completion summary of a lead's requirements."""
        requirements = await self._lead_requirement_repo.list_for_lead(lead_id)
        definitions = await self._definitions_for(requirements)

        def is_mandatory(req: LeadEntryRequirement) -> bool:
            definition = definitions.get(req.entry_requirement_id)
            return definition.is_mandatory if definition else True

        total = len(requirements)
        completed = [r for r in requirements if r.status in COMPLETED_STATUSES]
        mandatory = [r for r in requirements if is_mandatory(r)]

        return {
            "total": total,
            "completed": len(completed),
            "mandatory": len(mandatory),
            "mandatory_completed": len([r for r in completed if is_mandatory(r)]),
            "rejected": len([r for r in requirements if r.status == RequirementStatus.REJECTED]),
            "percent": round(len(completed) / total * 100) if total else 0,
        }

    async def _definitions_for(
        self,
        requirements: List[LeadEntryRequirement]
    ) -> Dict[UUID, EntryRequirement]:
        ids = list({r.entry_requirement_id for r in requirements})
        return {d.id: d for d in await self._requirement_repo.get_many(ids)}

    # =========================================================================
    # Requirement-side transitions
    # =========================================================================

    async def approve_requirement(
        self,
        requirement_id: UUID,
        approved_by: UUID,
        cascade: bool = False,
        notes: Optional[str] = None,
    ) -> LeadEntryRequirement:
        """
        Approve a lead requirement.

        A linked document that is not yet approved blocks approval unless
        ``cascade`` is set, in which case the document is approved too.

        Raises:
            NotFoundError: Unknown requirement
            ValidationError: Linked document not approved and no cascade
            RequirementSyncError: Either write failed
        """
        requirement = await self._get_lead_requirement(requirement_id)
        document = await self._linked_document(requirement)

        needs_document_approval = (
            document is not None and document.admin_status != DocumentStatus.APPROVED
        )
        if needs_document_approval and not cascade:
            raise ValidationError(
                "The linked document must be approved first",
                details={
                    "requirement_id": str(requirement_id),
                    "document_id": str(document.id),
                }
            )

        try:
            if needs_document_approval:
                self._review_document(document, DocumentStatus.APPROVED, approved_by)
                await self._document_repo.save(document)

            requirement.status = RequirementStatus.APPROVED
            requirement.approved_by = approved_by
            requirement.approved_at = utcnow()
            if notes:
                requirement.notes = notes
            requirement = await self._lead_requirement_repo.save(requirement)
        except Exception as e:
            logger.exception(f"Approving requirement {requirement_id} failed")
            raise RequirementSyncError(
                "Failed to approve requirement",
                requirement_id=requirement_id,
                document_id=document.id if document else None,
                original_error=e
            )

        logger.info(f"Requirement {requirement_id} approved by {approved_by} (cascade={cascade})")
        return requirement

    async def reject_requirement(
        self,
        requirement_id: UUID,
        reason: str,
        rejected_by: Optional[UUID] = None,
        cascade: bool = False,
    ) -> LeadEntryRequirement:
        """
        Reject a lead requirement with a mandatory reason.

        With ``cascade`` the linked document is rejected with the same reason.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")

        requirement = await self._get_lead_requirement(requirement_id)
        document = await self._linked_document(requirement) if cascade else None

        try:
            requirement.status = RequirementStatus.REJECTED
            requirement.notes = reason
            requirement.approved_by = None
            requirement.approved_at = None
            requirement = await self._lead_requirement_repo.save(requirement)

            if document is not None:
                self._review_document(document, DocumentStatus.REJECTED, rejected_by, reason)
                await self._document_repo.save(document)
        except Exception as e:
            logger.exception(f"Rejecting requirement {requirement_id} failed")
            raise RequirementSyncError(
                "Failed to reject requirement",
                requirement_id=requirement_id,
                document_id=document.id if document else None,
                original_error=e
            )

        logger.info(f"Requirement {requirement_id} rejected (cascade={cascade}): {reason}")
        return requirement

    async def waive_requirement(
        self,
        requirement_id: UUID,
        reason: str,
        waived_by: UUID,
    ) -> LeadEntryRequirement:
        """Waive an optional requirement. Mandatory requirements cannot be waived."""
        requirement = await self._get_lead_requirement(requirement_id)
        definition = await self._requirement_repo.get_by_id(requirement.entry_requirement_id)

        if definition is None or definition.is_mandatory:
            raise ValidationError(
                "Only non-mandatory requirements can be waived",
                details={"requirement_id": str(requirement_id)}
            )

        requirement.status = RequirementStatus.WAIVED
        requirement.notes = reason
        requirement.approved_by = waived_by
        requirement.approved_at = utcnow()
        requirement = await self._lead_requirement_repo.save(requirement)

        logger.info(f"Requirement {requirement_id} waived by {waived_by}")
        return requirement

    # =========================================================================
    # Document-side transitions
    # =========================================================================

    async def approve_document_and_requirement(
        self,
        document_id: UUID,
        reviewed_by: UUID,
        notes: Optional[str] = None,
    ) -> SyncResult:
        """
        Approve a document and auto-approve the requirement it satisfies.

        Raises:
            NotFoundError: Unknown document
            RequirementSyncError: Either write failed
        """
        document = await self._get_document(document_id)
        requirement: Optional[LeadEntryRequirement] = None

        try:
            self._review_document(document, DocumentStatus.APPROVED, reviewed_by)
            if notes:
                document.notes = notes
            document = await self._document_repo.save(document)

            requirement = await self._requirement_for_document(document)
            if requirement is not None:
                requirement.status = RequirementStatus.AUTO_APPROVED
                requirement.approved_by = reviewed_by
                requirement.approved_at = utcnow()
                requirement.linked_document_id = document.id
                requirement = await self._lead_requirement_repo.save(requirement)
        except Exception as e:
            logger.exception(f"Approving document {document_id} failed")
            raise RequirementSyncError(
                "Failed to approve document and its requirement",
                requirement_id=requirement.id if requirement else None,
                document_id=document_id,
                original_error=e
            )

        logger.info(
            f"Document {document_id} approved; requirement "
            f"{requirement.id if requirement else 'none'} auto-approved"
        )
        return SyncResult(document=document, requirement=requirement)

    async def reject_document_and_requirement(
        self,
        document_id: UUID,
        reason: str,
        reviewed_by: Optional[UUID] = None,
    ) -> SyncResult:
        """Reject a document and the requirement it was linked to."""
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A rejection reason is required")

        document = await self._get_document(document_id)
        requirement: Optional[LeadEntryRequirement] = None

        try:
            self._review_document(document, DocumentStatus.REJECTED, reviewed_by, reason)
            document = await self._document_repo.save(document)

            requirement = await self._requirement_for_document(document)
            if requirement is not None:
                requirement.status = RequirementStatus.REJECTED
                requirement.notes = reason
                requirement.approved_by = None
                requirement.approved_at = None
                requirement = await self._lead_requirement_repo.save(requirement)
        except Exception as e:
            logger.exception(f"Rejecting document {document_id} failed")
            raise RequirementSyncError(
                "Failed to reject document and its requirement",
                requirement_id=requirement.id if requirement else None,
                document_id=document_id,
                original_error=e
            )

        logger.info(f"Document {document_id} rejected: {reason}")
        return SyncResult(document=document, requirement=requirement)

    # =========================================================================
    # Linking
    # =========================================================================

    async def link_document(
        self,
        requirement_id: UUID,
        document_id: UUID
    ) -> LeadEntryRequirement:
        """Link a document to a lead requirement, updating both sides."""
        requirement = await self._get_lead_requirement(requirement_id)
        document = await self._get_document(document_id)

        if document.lead_id != requirement.lead_id:
            raise ValidationError(
                "Document belongs to a different lead",
                details={"requirement_id": str(requirement_id), "document_id": str(document_id)}
            )
        if document.entry_requirement_id not in (None, requirement.entry_requirement_id):
            raise ValidationError(
                "Document is already linked to another requirement",
                details={"document_id": str(document_id)}
            )

        try:
            previous = await self._linked_document(requirement)
            if previous is not None and previous.id != document.id:
                previous.entry_requirement_id = None
                await self._document_repo.save(previous)

            document.entry_requirement_id = requirement.entry_requirement_id
            await self._document_repo.save(document)

            requirement.linked_document_id = document.id
            requirement = await self._lead_requirement_repo.save(requirement)
        except Exception as e:
            logger.exception(f"Linking document {document_id} to {requirement_id} failed")
            raise RequirementSyncError(
                "Failed to link document",
                requirement_id=requirement_id,
                document_id=document_id,
                original_error=e
            )

        logger.info(f"Linked document {document_id} to requirement {requirement_id}")
        return requirement

    async def unlink_document(self, requirement_id: UUID) -> LeadEntryRequirement:
        """Remove the document link from both sides."""
        requirement = await self._get_lead_requirement(requirement_id)
        document = await self._linked_document(requirement)

        try:
            if document is not None:
                document.entry_requirement_id = None
                await self._document_repo.save(document)

            requirement.linked_document_id = None
            requirement = await self._lead_requirement_repo.save(requirement)
        except Exception as e:
            logger.exception(f"Unlinking requirement {requirement_id} failed")
            raise RequirementSyncError(
                "Failed to unlink document",
                requirement_id=requirement_id,
                document_id=document.id if document else None,
                original_error=e
            )

        logger.info(f"Unlinked document from requirement {requirement_id}")
        return requirement

    async def unlink_for_document(self, document: LeadDocument) -> None:
        """Clear the requirement link pointing at a document about to be deleted."""
        requirement = await self._lead_requirement_repo.get_by_linked_document(document.id)
        if requirement is not None:
            requirement.linked_document_id = None
            await self._lead_requirement_repo.save(requirement)

    # =========================================================================
    # Helpers
    # =========================================================================

    async def _get_lead_requirement(self, requirement_id: UUID) -> LeadEntryRequirement:
        requirement = await self._lead_requirement_repo.get_by_id(requirement_id)
        if requirement is None:
            raise NotFoundError(
                f"Requirement {requirement_id} not found",
                operation="get",
                table="lead_entry_requirements"
            )
        return requirement

    async def _get_document(self, document_id: UUID) -> LeadDocument:
        document = await self._document_repo.get_by_id(document_id)
        if document is None:
            raise NotFoundError(
                f"Document {document_id} not found",
                operation="get",
                table="lead_documents"
            )
        return document

    async def _linked_document(self, requirement: LeadEntryRequirement) -> Optional[LeadDocument]:
        if not requirement.linked_document_id:
            return None
        return await self._document_repo.get_by_id(requirement.linked_document_id)

    async def _requirement_for_document(
        self,
        document: LeadDocument
    ) -> Optional[LeadEntryRequirement]:
        """Requirement linked by id, else the lead's instance of the document's requirement."""
        requirement = await self._lead_requirement_repo.get_by_linked_document(document.id)
        if requirement is None and document.entry_requirement_id:
            requirement = await self._lead_requirement_repo.get_for_lead(
                document.lead_id, document.entry_requirement_id
            )
        return requirement

    @staticmethod
    def _review_document(
        document: LeadDocument,
        status: DocumentStatus,
        reviewer: Optional[UUID],
        reason: Optional[str] = None,
    ) -> None:
        document.admin_status = status
        document.reviewed_by = reviewer
        document.reviewed_at = utcnow()
        document.rejection_reason = reason if status == DocumentStatus.REJECTED else None
