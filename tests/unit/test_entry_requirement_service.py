"""
Unit tests for EntryRequirementService.

Repositories are replaced with AsyncMocks; saves echo the saved row back.
"""

import pytest
from unittest.mock import AsyncMock
from uuid import uuid4

from admissions_crm.infrastructure.db.models import (
    DocumentStatus,
    EntryRequirement,
    RequirementStatus,
    RequirementType,
)
from admissions_crm.infrastructure.exceptions import (
    NotFoundError,
    RequirementSyncError,
    ValidationError,
)
from admissions_crm.infrastructure.services.entry_requirement_service import (
    EntryRequirementService,
)


def echo(row):
    return row


@pytest.fixture
def service(mock_session, tenant_id):
    service = EntryRequirementService(mock_session, tenant_id)
    service._requirement_repo = AsyncMock()
    service._lead_requirement_repo = AsyncMock()
    service._document_repo = AsyncMock()
    service._lead_repo = AsyncMock()
    service._document_repo.save.side_effect = echo
    service._lead_requirement_repo.save.side_effect = echo
    return service


@pytest.fixture
def lead(make_lead):
    return make_lead()


@pytest.fixture
def document(make_document, lead):
    return make_document(lead.id)


@pytest.fixture
def linked_requirement(make_lead_requirement, lead, document):
    requirement = make_lead_requirement(lead.id, linked_document_id=document.id)
    document.entry_requirement_id = requirement.entry_requirement_id
    return requirement


def definition(tenant_id, **overrides):
    values = {
        "tenant_id": tenant_id,
        "program_name": "Nursing BSN",
        "title": "Official transcript",
        "requirement_type": RequirementType.ACADEMIC,
        "is_mandatory": True,
        "linked_document_type": "transcript",
    }
    values.update(overrides)
    return EntryRequirement(**values)


# =============================================================================
# Document-side cascades
# =============================================================================

class TestApproveDocumentAndRequirement:

    async def test_requirement_is_auto_approved(self, service, document, linked_requirement):
        reviewer = uuid4()
        service._document_repo.get_by_id.return_value = document
        service._lead_requirement_repo.get_by_linked_document.return_value = linked_requirement

        result = await service.approve_document_and_requirement(document.id, reviewer)

        assert result.document.admin_status == DocumentStatus.APPROVED
        assert result.document.reviewed_by == reviewer
        assert result.requirement.status == RequirementStatus.AUTO_APPROVED
        assert result.requirement.approved_by == reviewer
        assert result.requirement.linked_document_id == document.id

    async def test_falls_back_to_requirement_of_document(
        self, service, document, make_lead_requirement, lead
    ):
        requirement = make_lead_requirement(lead.id)
        document.entry_requirement_id = requirement.entry_requirement_id
        service._document_repo.get_by_id.return_value = document
        service._lead_requirement_repo.get_by_linked_document.return_value = None
        service._lead_requirement_repo.get_for_lead.return_value = requirement

        result = await service.approve_document_and_requirement(document.id, uuid4())

        service._lead_requirement_repo.get_for_lead.assert_awaited_once_with(
            lead.id, requirement.entry_requirement_id
        )
        assert result.requirement.status == RequirementStatus.AUTO_APPROVED
        assert result.requirement.linked_document_id == document.id

    async def test_unlinked_document_only(self, service, document):
        service._document_repo.get_by_id.return_value = document
        service._lead_requirement_repo.get_by_linked_document.return_value = None

        result = await service.approve_document_and_requirement(document.id, uuid4())

        assert result.document.admin_status == DocumentStatus.APPROVED
        assert result.requirement is None

    async def test_unknown_document(self, service):
        service._document_repo.get_by_id.return_value = None
        with pytest.raises(NotFoundError):
            await service.approve_document_and_requirement(uuid4(), uuid4())

    async def test_failed_write_raises_sync_error(self, service, document, linked_requirement):
        service._document_repo.get_by_id.return_value = document
        service._lead_requirement_repo.get_by_linked_document.return_value = linked_requirement
        service._lead_requirement_repo.save.side_effect = RuntimeError("connection lost")

        with pytest.raises(RequirementSyncError) as exc_info:
            await service.approve_document_and_requirement(document.id, uuid4())

        assert exc_info.value.details["document_id"] == str(document.id)


class TestRejectDocumentAndRequirement:

    async def test_reason_propagates_to_both(self, service, document, linked_requirement):
        service._document_repo.get_by_id.return_value = document
        service._lead_requirement_repo.get_by_linked_document.return_value = linked_requirement

        result = await service.reject_document_and_requirement(document.id, "Illegible scan")

        assert result.document.admin_status == DocumentStatus.REJECTED
        assert result.document.rejection_reason == "Illegible scan"
        assert result.requirement.status == RequirementStatus.REJECTED
        assert result.requirement.notes == "Illegible scan"
        assert result.requirement.approved_by is None

    async def test_reason_required(self, service):
        with pytest.raises(ValidationError):
            await service.reject_document_and_requirement(uuid4(), "   ")
        service._document_repo.get_by_id.assert_not_awaited()


# =============================================================================
# Requirement-side transitions
# =============================================================================

class TestApproveRequirement:

    async def test_blocked_by_unapproved_document(self, service, document, linked_requirement):
        service._lead_requirement_repo.get_by_id.return_value = linked_requirement
        service._document_repo.get_by_id.return_value = document

        with pytest.raises(ValidationError):
            await service.approve_requirement(linked_requirement.id, uuid4())

        service._lead_requirement_repo.save.assert_not_awaited()

    async def test_cascade_approves_document(self, service, document, linked_requirement):
        approver = uuid4()
        service._lead_requirement_repo.get_by_id.return_value = linked_requirement
        service._document_repo.get_by_id.return_value = document

        requirement = await service.approve_requirement(
            linked_requirement.id, approver, cascade=True, notes="Verified with registrar"
        )

        assert requirement.status == RequirementStatus.APPROVED
        assert requirement.notes == "Verified with registrar"
        assert document.admin_status == DocumentStatus.APPROVED
        assert document.reviewed_by == approver
        service._document_repo.save.assert_awaited_once_with(document)

    async def test_already_approved_document(self, service, document, linked_requirement):
        document.admin_status = DocumentStatus.APPROVED
        service._lead_requirement_repo.get_by_id.return_value = linked_requirement
        service._document_repo.get_by_id.return_value = document

        requirement = await service.approve_requirement(linked_requirement.id, uuid4())

        assert requirement.status == RequirementStatus.APPROVED
        service._document_repo.save.assert_not_awaited()

    async def test_unknown_requirement(self, service):
        service._lead_requirement_repo.get_by_id.return_value = None
        with pytest.raises(NotFoundError):
            await service.approve_requirement(uuid4(), uuid4())


class TestRejectRequirement:

    async def test_cascade_rejects_document(self, service, document, linked_requirement):
        service._lead_requirement_repo.get_by_id.return_value = linked_requirement
        service._document_repo.get_by_id.return_value = document

        requirement = await service.reject_requirement(
            linked_requirement.id, "Expired certificate", cascade=True
        )

        assert requirement.status == RequirementStatus.REJECTED
        assert document.admin_status == DocumentStatus.REJECTED
        assert document.rejection_reason == "Expired certificate"

    async def test_without_cascade_leaves_document(self, service, document, linked_requirement):
        service._lead_requirement_repo.get_by_id.return_value = linked_requirement

        await service.reject_requirement(linked_requirement.id, "Expired certificate")

        assert document.admin_status == DocumentStatus.UPLOADED
        service._document_repo.save.assert_not_awaited()


class TestWaiveRequirement:

    async def test_mandatory_cannot_be_waived(self, service, linked_requirement, tenant_id):
        service._lead_requirement_repo.get_by_id.return_value = linked_requirement
        service._requirement_repo.get_by_id.return_value = definition(tenant_id, is_mandatory=True)

        with pytest.raises(ValidationError):
            await service.waive_requirement(linked_requirement.id, "Transfer credit", uuid4())

    async def test_optional_is_waived(self, service, linked_requirement, tenant_id):
        service._lead_requirement_repo.get_by_id.return_value = linked_requirement
        service._requirement_repo.get_by_id.return_value = definition(tenant_id, is_mandatory=False)

        requirement = await service.waive_requirement(
            linked_requirement.id, "Transfer credit", uuid4()
        )

        assert requirement.status == RequirementStatus.WAIVED
        assert requirement.notes == "Transfer credit"


# =============================================================================
# Instantiation, progress and linking
# =============================================================================

class TestInstantiateForLead:

    async def test_creates_missing_and_links_matching_document(
        self, service, lead, document, tenant_id
    ):
        transcript = definition(tenant_id)
        essay = definition(tenant_id, title="Personal essay", linked_document_type="essay")
        service._lead_repo.get_by_id.return_value = lead
        service._requirement_repo.list_for_program.return_value = [transcript, essay]
        service._document_repo.list_for_lead.return_value = [document]
        service._lead_requirement_repo.get_for_lead.return_value = None
        service._lead_requirement_repo.list_for_lead.return_value = []

        await service.instantiate_for_lead(lead.id)

        service._requirement_repo.list_for_program.assert_awaited_once_with("Nursing BSN")
        saved = [call.args[0] for call in service._lead_requirement_repo.save.await_args_list]
        assert len(saved) == 2
        assert saved[0].linked_document_id == document.id
        assert saved[1].linked_document_id is None
        assert document.entry_requirement_id == transcript.id

    async def test_existing_rows_are_skipped(self, service, lead, tenant_id, make_lead_requirement):
        service._lead_repo.get_by_id.return_value = lead
        service._requirement_repo.list_for_program.return_value = [definition(tenant_id)]
        service._document_repo.list_for_lead.return_value = []
        service._lead_requirement_repo.get_for_lead.return_value = make_lead_requirement(lead.id)
        service._lead_requirement_repo.list_for_lead.return_value = []

        await service.instantiate_for_lead(lead.id)

        service._lead_requirement_repo.save.assert_not_awaited()

    async def test_lead_without_program(self, service, make_lead):
        lead = make_lead(program_interest=[])
        service._lead_repo.get_by_id.return_value = lead

        with pytest.raises(ValidationError):
            await service.instantiate_for_lead(lead.id)


class TestProgress:

    async def test_counts(self, service, lead, tenant_id, make_lead_requirement):
        mandatory = definition(tenant_id)
        optional = definition(tenant_id, title="Portfolio", is_mandatory=False)
        requirements = [
            make_lead_requirement(lead.id, entry_requirement_id=mandatory.id,
                                  status=RequirementStatus.AUTO_APPROVED),
            make_lead_requirement(lead.id, entry_requirement_id=optional.id,
                                  status=RequirementStatus.WAIVED),
            make_lead_requirement(lead.id, entry_requirement_id=mandatory.id,
                                  status=RequirementStatus.REJECTED),
            make_lead_requirement(lead.id, entry_requirement_id=mandatory.id),
        ]
        service._lead_requirement_repo.list_for_lead.return_value = requirements
        service._requirement_repo.get_many.return_value = [mandatory, optional]

        progress = await service.get_progress(lead.id)

        assert progress == {
            "total": 4,
            "completed": 2,
            "mandatory": 3,
            "mandatory_completed": 1,
            "rejected": 1,
            "percent": 50,
        }

    async def test_empty(self, service, lead):
        service._lead_requirement_repo.list_for_lead.return_value = []
        service._requirement_repo.get_many.return_value = []

        progress = await service.get_progress(lead.id)

        assert progress["total"] == 0
        assert progress["percent"] == 0


class TestLinkDocument:

    async def test_rejects_document_of_other_lead(
        self, service, make_lead_requirement, make_document, lead
    ):
        requirement = make_lead_requirement(lead.id)
        foreign = make_document(uuid4())
        service._lead_requirement_repo.get_by_id.return_value = requirement
        service._document_repo.get_by_id.return_value = foreign

        with pytest.raises(ValidationError):
            await service.link_document(requirement.id, foreign.id)

    async def test_links_both_sides(self, service, make_lead_requirement, document, lead):
        requirement = make_lead_requirement(lead.id)
        service._lead_requirement_repo.get_by_id.return_value = requirement
        service._document_repo.get_by_id.return_value = document

        result = await service.link_document(requirement.id, document.id)

        assert result.linked_document_id == document.id
        assert document.entry_requirement_id == requirement.entry_requirement_id

    async def test_unlink_clears_both_sides(self, service, document, linked_requirement):
        service._lead_requirement_repo.get_by_id.return_value = linked_requirement
        service._document_repo.get_by_id.return_value = document

        result = await service.unlink_document(linked_requirement.id)

        assert result.linked_document_id is None
        assert document.entry_requirement_id is None
