"""
Repository and transaction tests against an in-memory SQLite database.
"""

from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from sqlalchemy.exc import SQLAlchemyError

from admissions_crm.infrastructure.db.models import (
    DocumentStatus,
    EngagementMetricsUpdate,
    EntryRequirement,
    LeadDocument,
    LeadEntryRequirement,
    LeadStatus,
    RequirementStatus,
    Tenant,
)
from admissions_crm.infrastructure.db.repositories import (
    DocumentRepository,
    EngagementMetricsRepository,
    LeadFilters,
    LeadRepository,
    ProgramFitAssessmentRepository,
)
from admissions_crm.infrastructure.exceptions import RequirementSyncError
from admissions_crm.infrastructure.services.entry_requirement_service import (
    EntryRequirementService,
)


@pytest.fixture
async def tenant(db_session, tenant_id):
    tenant = Tenant(id=tenant_id, name="Acme College", slug=f"acme-{tenant_id.hex[:8]}")
    db_session.add(tenant)
    await db_session.commit()
    return tenant


@pytest.fixture
async def add_lead(db_session, make_lead, tenant):
    async def add(**overrides):
        lead = make_lead(**overrides)
        db_session.add(lead)
        await db_session.flush()
        return lead

    return add


class TestLeadRepository:

    async def test_search_by_tag(self, db_session, tenant_id, add_lead):
        tagged = await add_lead(email="a@example.com", tags=["fair", "webinar"])
        await add_lead(email="b@example.com", tags=["fairground"])
        await add_lead(email="c@example.com", tags=[])
        repo = LeadRepository(db_session, tenant_id)

        items, total = await repo.search(LeadFilters(tag="fair"))

        assert total == 1
        assert [lead.id for lead in items] == [tagged.id]

    async def test_search_combines_filters(self, db_session, tenant_id, add_lead):
        await add_lead(email="a@example.com", status=LeadStatus.QUALIFIED, tags=["vip"])
        await add_lead(email="b@example.com", status=LeadStatus.NEW, tags=["vip"])
        repo = LeadRepository(db_session, tenant_id)

        items, total = await repo.search(LeadFilters(status=LeadStatus.QUALIFIED, tag="vip"))

        assert total == 1
        assert items[0].email == "a@example.com"

    async def test_search_is_tenant_scoped(self, db_session, tenant_id, add_lead):
        await add_lead(email="a@example.com")
        await add_lead(email="b@example.com", tenant_id=uuid4())

        items, total = await LeadRepository(db_session, tenant_id).search(LeadFilters())

        assert total == 1
        assert items[0].email == "a@example.com"

    async def test_email_lookup_treats_underscore_literally(self, db_session, tenant_id, add_lead):
        await add_lead(email="johnxdoe@x.com")
        exact = await add_lead(email="john_doe@x.com")
        repo = LeadRepository(db_session, tenant_id)

        found = await repo.get_by_email(" John_Doe@X.com ")

        assert found is not None
        assert found.id == exact.id
        assert await repo.get_by_email("john%@x.com") is None


class TestDocumentRepository:

    async def test_status_counts(self, db_session, tenant_id, add_lead, make_document):
        lead = await add_lead()
        other = await add_lead(email="other@example.com")
        db_session.add_all([
            make_document(lead.id, admin_status=DocumentStatus.UPLOADED),
            make_document(lead.id, admin_status=DocumentStatus.UPLOADED),
            make_document(lead.id, admin_status=DocumentStatus.APPROVED),
            make_document(other.id, admin_status=DocumentStatus.REJECTED),
        ])
        await db_session.flush()

        counts = await DocumentRepository(db_session, tenant_id).status_counts(lead.id)

        assert counts == {"pending": 0, "uploaded": 2, "approved": 1, "rejected": 0}

    async def test_reassign_and_paths(self, db_session, tenant_id, add_lead, make_document):
        source = await add_lead()
        target = await add_lead(email="target@example.com")
        document = make_document(source.id, storage_path="t/source/a.pdf")
        db_session.add(document)
        await db_session.flush()
        repo = DocumentRepository(db_session, tenant_id)

        moved = await repo.reassign_lead(source.id, target.id)

        assert moved == 1
        assert await repo.storage_paths_for_leads([source.id]) == []
        assert await repo.storage_paths_for_leads([target.id]) == ["t/source/a.pdf"]


class TestProgramFitRepositories:

    async def test_assessment_upsert(self, db_session, tenant_id, add_lead):
        lead = await add_lead()
        repo = ProgramFitAssessmentRepository(db_session, tenant_id)

        first = await repo.upsert(lead.id, {"program_fit_score": 60, "yield_propensity_score": 40})
        second = await repo.upsert(lead.id, {"program_fit_score": 75, "yield_propensity_score": 55})

        assert second.id == first.id
        stored = await repo.get_by_lead(lead.id)
        assert stored.program_fit_score == 75
        assert stored.yield_propensity_score == 55
        assert stored.tenant_id == tenant_id

    async def test_engagement_upsert(self, db_session, tenant_id, add_lead):
        lead = await add_lead()
        repo = EngagementMetricsRepository(db_session, tenant_id)

        created = await repo.upsert(lead.id, EngagementMetricsUpdate(portal_login_count=3))
        updated = await repo.upsert(
            lead.id, EngagementMetricsUpdate(portal_login_count=9, email_open_rate=80)
        )

        assert updated.id == created.id
        stored = await repo.get_by_lead(lead.id)
        assert stored.portal_login_count == 9
        assert stored.email_open_rate == 80
        assert stored.event_attendance_count == 0


class TestApprovalCascade:

    @pytest.fixture
    async def linked(self, db_session, tenant_id, add_lead, make_document):
        lead = await add_lead()
        definition = EntryRequirement(
            tenant_id=tenant_id, program_name="Nursing BSN", title="Official transcript"
        )
        db_session.add(definition)
        await db_session.flush()
        document = make_document(lead.id, entry_requirement_id=definition.id)
        requirement = LeadEntryRequirement(
            tenant_id=tenant_id, lead_id=lead.id, entry_requirement_id=definition.id
        )
        db_session.add_all([document, requirement])
        await db_session.commit()
        return document, requirement

    async def test_failed_second_write_rolls_back_first(
        self, db_session, db_session_factory, tenant_id, linked
    ):
        document, requirement = linked
        service = EntryRequirementService(db_session, tenant_id)
        service._lead_requirement_repo.save = AsyncMock(side_effect=SQLAlchemyError("write failed"))

        with pytest.raises(RequirementSyncError):
            await service.approve_document_and_requirement(document.id, uuid4())
        await db_session.rollback()

        async with db_session_factory() as fresh:
            stored_document = await fresh.get(LeadDocument, document.id)
            stored_requirement = await fresh.get(LeadEntryRequirement, requirement.id)
        assert stored_document.admin_status == DocumentStatus.UPLOADED
        assert stored_document.reviewed_at is None
        assert stored_requirement.status == RequirementStatus.PENDING

    async def test_successful_cascade_commits_both(
        self, db_session, db_session_factory, tenant_id, linked
    ):
        document, requirement = linked
        service = EntryRequirementService(db_session, tenant_id)

        await service.approve_document_and_requirement(document.id, uuid4(), "Verified")
        await db_session.commit()

        async with db_session_factory() as fresh:
            stored_document = await fresh.get(LeadDocument, document.id)
            stored_requirement = await fresh.get(LeadEntryRequirement, requirement.id)
        assert stored_document.admin_status == DocumentStatus.APPROVED
        assert stored_requirement.status == RequirementStatus.AUTO_APPROVED
        assert stored_requirement.linked_document_id == document.id
