"""
Integration tests for the API endpoints.

Tests the full request/response cycle with the tenant context and the
services replaced through dependency overrides.
"""

from types import SimpleNamespace
from unittest.mock import AsyncMock
from uuid import uuid4

import pytest
from fastapi.testclient import TestClient

from admissions_crm.api.dependencies import (
    AuthenticatedUser,
    get_current_user,
    get_document_service,
    get_lead_service,
    get_portal_admin_service,
    get_practicum_service,
    get_program_fit_service,
    get_requirement_service,
    get_capacity_service,
)
from admissions_crm.infrastructure.db.dependencies import get_tenant_repository
from admissions_crm.infrastructure.db.models import (
    DocumentStatus,
    LeadStatus,
    RequirementStatus,
    TenantRole,
)
from admissions_crm.infrastructure.exceptions import (
    DuplicateError,
    NotFoundError,
    RequirementSyncError,
    ValidationError,
)
from admissions_crm.infrastructure.services.entry_requirement_service import SyncResult


class TestHealthEndpoints:
    """Tests for health check endpoints."""

    def test_root_endpoint(self, client: TestClient):
        """Root endpoint should return welcome message."""
        response = client.get("/")
        assert response.status_code == 200
        assert "message" in response.json()

    def test_health_endpoint(self, client: TestClient):
        """Health endpoint should return healthy status."""
        response = client.get("/health")
        assert response.status_code == 200
        assert response.json() == {"status": "healthy", "service": "admissions-crm"}

    def test_docs_served_outside_production(self, client: TestClient):
        """Interactive docs are only disabled in production."""
        assert client.get("/docs").status_code == 200


class TestTenantResolution:

    @pytest.fixture
    def tenant_repo(self, app, user_id):
        repo = AsyncMock()
        app.dependency_overrides[get_tenant_repository] = lambda: repo
        app.dependency_overrides[get_current_user] = lambda: AuthenticatedUser(id=user_id)
        return repo

    def test_requires_token(self, app, client: TestClient):
        app.dependency_overrides[get_tenant_repository] = lambda: AsyncMock()
        response = client.get("/api/leads")
        assert response.status_code == 401

    def test_missing_tenant_header(self, client, tenant_repo):
        response = client.get("/api/leads", headers={"Authorization": "Bearer test-token"})
        assert response.status_code == 400

    def test_non_member(self, client, tenant_repo, tenant_headers):
        tenant_repo.get_membership.return_value = None
        response = client.get("/api/leads", headers=tenant_headers)
        assert response.status_code == 403
        assert response.json()["error"] == "TenantAccessError"


class TestLeadEndpoints:

    def test_list_leads(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_lead_service)
        service.list_leads.return_value = {"items": [], "total": 0, "page": 1, "page_size": 100}

        response = client.get("/api/leads?status=new&page_size=500", headers=tenant_headers)

        assert response.status_code == 200
        filters = service.list_leads.call_args.args[0]
        assert filters.status == LeadStatus.NEW
        assert service.list_leads.call_args.kwargs["page_size"] == 500

    def test_students_cannot_list_leads(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.STUDENT)
        override_service(get_lead_service)

        response = client.get("/api/leads", headers=tenant_headers)

        assert response.status_code == 403
        assert response.json()["error"] == "TenantAccessError"

    def test_create_lead(self, client, as_role, override_service, tenant_headers, make_lead):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_lead_service)
        lead = make_lead()
        service.create_lead.return_value = lead

        response = client.post("/api/leads", headers=tenant_headers, json={
            "first_name": "Maria",
            "last_name": "Silva",
            "email": "maria.silva@example.com",
            "program_interest": ["Nursing BSN"],
        })

        assert response.status_code == 201
        assert response.json()["id"] == str(lead.id)

    def test_create_duplicate_is_conflict(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_lead_service)
        service.create_lead.side_effect = DuplicateError("A lead with the same email already exists")

        response = client.post("/api/leads", headers=tenant_headers, json={
            "first_name": "Maria", "last_name": "Silva", "email": "maria.silva@example.com",
        })

        assert response.status_code == 409
        assert response.json()["error"] == "DuplicateError"

    def test_create_requires_email(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        override_service(get_lead_service)

        response = client.post("/api/leads", headers=tenant_headers, json={"first_name": "Maria"})

        assert response.status_code == 422

    def test_missing_lead(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_lead_service)
        service.get_lead.side_effect = NotFoundError("Lead not found")

        response = client.get(f"/api/leads/{uuid4()}", headers=tenant_headers)

        assert response.status_code == 404

    def test_delete_is_admin_only(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_lead_service)

        response = client.delete(f"/api/leads/{uuid4()}", headers=tenant_headers)

        assert response.status_code == 403
        service.delete_lead.assert_not_awaited()

    def test_duplicates_route_not_shadowed(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_lead_service)
        service.find_duplicates.return_value = [{"match_type": "email", "confidence": 100}]

        response = client.get("/api/leads/duplicates", headers=tenant_headers)

        assert response.status_code == 200
        assert response.json()["total"] == 1

    def test_bulk_status(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_lead_service)
        service.bulk_update_status.return_value = {"success": 2, "failed": 0, "errors": []}
        ids = [str(uuid4()), str(uuid4())]

        response = client.post("/api/leads/bulk-status", headers=tenant_headers,
                               json={"lead_ids": ids, "status": "qualified"})

        assert response.status_code == 200
        assert response.json()["success"] == 2

    def test_export_csv(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_lead_service)
        service.export_leads_csv.return_value = "First Name,Email\r\nMaria,maria.silva@example.com\r\n"

        response = client.get("/api/leads/export.csv?tag=fair", headers=tenant_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert "leads.csv" in response.headers["content-disposition"]
        assert service.export_leads_csv.call_args.args[0].tag == "fair"
        service.get_lead.assert_not_awaited()

    def test_claim_uses_caller(self, client, as_role, override_service, tenant_headers, user_id):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_lead_service)
        service.claim_leads.return_value = {"success": 1, "failed": 0, "errors": []}
        lead_id = uuid4()

        response = client.post("/api/leads/claim", headers=tenant_headers,
                               json={"lead_ids": [str(lead_id)]})

        assert response.status_code == 200
        service.claim_leads.assert_awaited_once_with([lead_id], user_id)

    def test_merge(self, client, as_role, override_service, tenant_headers, make_lead):
        as_role(TenantRole.ADMIN)
        service = override_service(get_lead_service)
        primary = make_lead()
        service.merge_leads.return_value = primary
        duplicate = uuid4()

        response = client.post("/api/leads/merge", headers=tenant_headers, json={
            "primary_id": str(primary.id),
            "secondary_ids": [str(duplicate)],
            "resolution": {"concatenate_notes": True, "merge_documents": False},
        })

        assert response.status_code == 200
        args = service.merge_leads.call_args.args
        assert args[0] == primary.id
        assert args[1] == [duplicate]
        assert args[2].concatenate_notes is True
        assert args[2].merge_documents is False
        assert args[2].merge_tags is True

    def test_merge_is_admin_only(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_lead_service)

        response = client.post("/api/leads/merge", headers=tenant_headers, json={
            "primary_id": str(uuid4()), "secondary_ids": [str(uuid4())],
        })

        assert response.status_code == 403
        service.merge_leads.assert_not_awaited()

    def test_bulk_merge(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_lead_service)
        service.bulk_merge_groups.return_value = {"success": 1, "failed": 0, "errors": []}
        group = [uuid4(), uuid4()]

        response = client.post("/api/leads/merge/bulk", headers=tenant_headers,
                               json={"groups": [[str(i) for i in group]]})

        assert response.status_code == 200
        assert service.bulk_merge_groups.call_args.args[0] == [group]

    def test_delete_duplicates(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_lead_service)
        service.delete_duplicates.return_value = {"success": 1, "failed": 0, "errors": []}
        lead_id = uuid4()

        response = client.post("/api/leads/duplicates/delete", headers=tenant_headers,
                               json={"lead_ids": [str(lead_id)]})

        assert response.status_code == 200
        service.delete_duplicates.assert_awaited_once_with([lead_id])


class TestDocumentEndpoints:

    def test_upload(self, client, as_role, override_service, tenant_headers, make_lead, make_document):
        as_role(TenantRole.STUDENT, email="Maria.Silva@example.com")
        service = override_service(get_document_service)
        lead_id = uuid4()
        service.get_lead.return_value = make_lead()
        service.upload_document.return_value = make_document(lead_id)

        response = client.post(
            f"/api/leads/{lead_id}/documents",
            headers=tenant_headers,
            files={"file": ("transcript.pdf", b"%PDF-1.7", "application/pdf")},
            data={"document_type": "transcript"},
        )

        assert response.status_code == 201
        kwargs = service.upload_document.call_args.kwargs
        assert kwargs["file_name"] == "transcript.pdf"
        assert kwargs["content"] == b"%PDF-1.7"

    def test_student_cannot_upload_for_another_lead(
        self, client, as_role, override_service, tenant_headers, make_lead
    ):
        as_role(TenantRole.STUDENT, email="someone.else@example.com")
        service = override_service(get_document_service)
        service.get_lead.return_value = make_lead()

        response = client.post(
            f"/api/leads/{uuid4()}/documents",
            headers=tenant_headers,
            files={"file": ("transcript.pdf", b"%PDF-1.7", "application/pdf")},
            data={"document_type": "transcript"},
        )

        assert response.status_code == 403
        service.upload_document.assert_not_awaited()

    def test_preceptor_cannot_list_documents(
        self, client, as_role, override_service, tenant_headers, make_lead
    ):
        as_role(TenantRole.PRECEPTOR, email="maria.silva@example.com")
        service = override_service(get_document_service)
        service.get_lead.return_value = make_lead()

        response = client.get(f"/api/leads/{uuid4()}/documents", headers=tenant_headers)

        assert response.status_code == 403
        service.list_documents.assert_not_awaited()

    def test_student_cannot_download_another_leads_document(
        self, client, as_role, override_service, tenant_headers, make_lead, make_document
    ):
        as_role(TenantRole.STUDENT, email="someone.else@example.com")
        service = override_service(get_document_service)
        lead = make_lead()
        service.get_document.return_value = make_document(lead.id)
        service.get_lead.return_value = lead

        response = client.get(f"/api/documents/{uuid4()}/download-url", headers=tenant_headers)

        assert response.status_code == 403
        service.get_download_url.assert_not_awaited()

    def test_staff_download_skips_ownership_lookup(
        self, client, as_role, override_service, tenant_headers, make_document
    ):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_document_service)
        service.get_document.return_value = make_document(uuid4())
        service.get_download_url.return_value = {"url": "https://cdn.example.com/t", "file_name": "t.pdf"}

        response = client.get(f"/api/documents/{uuid4()}/download-url", headers=tenant_headers)

        assert response.status_code == 200
        service.get_lead.assert_not_awaited()

    def test_approve_returns_both_sides(
        self, client, as_role, override_service, tenant_headers,
        make_document, make_lead_requirement,
    ):
        context = as_role(TenantRole.ADMIN)
        service = override_service(get_document_service)
        document = make_document(uuid4(), admin_status=DocumentStatus.APPROVED)
        requirement = make_lead_requirement(document.lead_id, status=RequirementStatus.AUTO_APPROVED)
        service.approve_document.return_value = SyncResult(document=document, requirement=requirement)

        response = client.post(f"/api/documents/{document.id}/approve", headers=tenant_headers, json={})

        assert response.status_code == 200
        body = response.json()
        assert body["document"]["admin_status"] == "approved"
        assert body["requirement"]["status"] == "auto_approved"
        assert service.approve_document.call_args.args[1] == context.user_id

    def test_reject_requires_reason(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        override_service(get_document_service)

        response = client.post(f"/api/documents/{uuid4()}/reject", headers=tenant_headers, json={})

        assert response.status_code == 422

    def test_failed_cascade_is_server_error(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_document_service)
        service.approve_document.side_effect = RequirementSyncError("Failed to approve document")

        response = client.post(f"/api/documents/{uuid4()}/approve", headers=tenant_headers, json={})

        assert response.status_code == 500
        assert response.json()["error"] == "RequirementSyncError"


class TestRequirementEndpoints:

    def test_approve_without_cascade_blocked(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_requirement_service)
        service.approve_requirement.side_effect = ValidationError("The linked document must be approved first")

        response = client.post(f"/api/requirements/{uuid4()}/approve", headers=tenant_headers, json={})

        assert response.status_code == 400

    def test_progress(self, client, as_role, override_service, tenant_headers, make_lead):
        as_role(TenantRole.STUDENT, email="maria.silva@example.com")
        service = override_service(get_requirement_service)
        service.get_lead.return_value = make_lead()
        service.get_progress.return_value = {"total": 4, "completed": 2, "percent": 50}

        response = client.get(f"/api/leads/{uuid4()}/requirements/progress", headers=tenant_headers)

        assert response.status_code == 200
        assert response.json()["percent"] == 50

    def test_progress_of_another_lead_forbidden(
        self, client, as_role, override_service, tenant_headers, make_lead
    ):
        as_role(TenantRole.STUDENT, email="someone.else@example.com")
        service = override_service(get_requirement_service)
        service.get_lead.return_value = make_lead()

        response = client.get(f"/api/leads/{uuid4()}/requirements/progress", headers=tenant_headers)

        assert response.status_code == 403
        service.get_progress.assert_not_awaited()


class TestProgramFitEndpoints:

    def test_bulk_totals(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_program_fit_service)
        failed_id = str(uuid4())
        service.bulk_assess_applicants.return_value = {
            "assessed": [{"program_fit_score": 80}],
            "failed": [{"lead_id": failed_id, "error": "not found"}],
        }

        response = client.post("/api/program-fit/bulk", headers=tenant_headers,
                               json={"lead_ids": [str(uuid4()), failed_id]})

        assert response.status_code == 200
        body = response.json()
        assert body["total_assessed"] == 1
        assert body["total_failed"] == 1

    def test_assess_with_signals(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_program_fit_service)
        service.assess_applicant.return_value = {"program_fit_score": 72}

        response = client.post(f"/api/leads/{uuid4()}/program-fit", headers=tenant_headers,
                               json={"gpa_minimum_met": True, "coursework_match": 90})

        assert response.status_code == 200
        signals = service.assess_applicant.call_args.kwargs["signals"]
        assert signals.coursework_match == 90

    def test_signal_out_of_range(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        override_service(get_program_fit_service)

        response = client.post(f"/api/leads/{uuid4()}/program-fit", headers=tenant_headers,
                               json={"visa_risk": 140})

        assert response.status_code == 422


class TestCapacityEndpoints:

    def test_availability(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_capacity_service)
        service.availability.return_value = {"program_name": "Nursing BSN", "available_seats": 15}

        response = client.get("/api/program-capacity/Nursing BSN/availability", headers=tenant_headers)

        assert response.status_code == 200
        service.availability.assert_awaited_once_with("Nursing BSN")


class TestPracticumEndpoints:

    def test_preceptor_review_by_sales_rep_forbidden(
        self, client, as_role, override_service, tenant_headers
    ):
        as_role(TenantRole.SALES_REP)
        service = override_service(get_practicum_service)

        response = client.post(f"/api/practicum/records/{uuid4()}/review", headers=tenant_headers,
                               json={"reviewer_role": "preceptor", "decision": "approved"})

        assert response.status_code == 403
        service.review_record.assert_not_awaited()

    def test_preceptor_review(self, client, as_role, override_service, tenant_headers, make_lead):
        as_role(TenantRole.PRECEPTOR, email="preceptor@clinic.org")
        service = override_service(get_practicum_service)
        service.get_record.return_value = SimpleNamespace(assignment_id=uuid4())
        service.get_assignment_with_lead.return_value = (
            SimpleNamespace(id=uuid4(), preceptor_email="Preceptor@Clinic.org"), make_lead()
        )
        service.review_record.return_value = {"preceptor_status": "approved"}

        response = client.post(f"/api/practicum/records/{uuid4()}/review", headers=tenant_headers,
                               json={"reviewer_role": "preceptor", "decision": "approved",
                                     "feedback": "Punctual"})

        assert response.status_code == 200

    def test_other_sites_preceptor_cannot_review(
        self, client, as_role, override_service, tenant_headers, make_lead
    ):
        as_role(TenantRole.PRECEPTOR, email="someone@other-clinic.org")
        service = override_service(get_practicum_service)
        service.get_record.return_value = SimpleNamespace(assignment_id=uuid4())
        service.get_assignment_with_lead.return_value = (
            SimpleNamespace(id=uuid4(), preceptor_email="preceptor@clinic.org"), make_lead()
        )

        response = client.post(f"/api/practicum/records/{uuid4()}/review", headers=tenant_headers,
                               json={"reviewer_role": "preceptor", "decision": "approved"})

        assert response.status_code == 403
        service.review_record.assert_not_awaited()

    def test_attendance_submission(self, client, as_role, override_service, tenant_headers, make_lead):
        as_role(TenantRole.STUDENT, email="maria.silva@example.com")
        service = override_service(get_practicum_service)
        service.get_assignment_with_lead.return_value = (
            SimpleNamespace(id=uuid4(), preceptor_email=None), make_lead()
        )
        service.submit_attendance.return_value = {"record_type": "attendance"}
        assignment_id = uuid4()

        response = client.post(
            f"/api/practicum/assignments/{assignment_id}/records/attendance",
            headers=tenant_headers,
            json={"hours": 8, "record_date": "2026-03-02"},
        )

        assert response.status_code == 201
        args = service.submit_attendance.call_args
        assert args.args == (assignment_id, 8)

    def test_student_cannot_submit_to_another_placement(
        self, client, as_role, override_service, tenant_headers, make_lead
    ):
        as_role(TenantRole.STUDENT, email="someone.else@example.com")
        service = override_service(get_practicum_service)
        service.get_assignment_with_lead.return_value = (
            SimpleNamespace(id=uuid4(), preceptor_email=None), make_lead()
        )

        response = client.post(
            f"/api/practicum/assignments/{uuid4()}/records/journal",
            headers=tenant_headers,
            json={"content": {"entry": "Shadowed triage"}},
        )

        assert response.status_code == 403
        service.submit_journal.assert_not_awaited()

    def test_student_lists_placements_only_for_a_lead(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.STUDENT, email="maria.silva@example.com")
        service = override_service(get_practicum_service)

        response = client.get(f"/api/practicum/assignments?program_id={uuid4()}", headers=tenant_headers)

        assert response.status_code == 403
        service.list_assignments.assert_not_awaited()

    def test_report_csv(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_practicum_service)
        service.export_program_report_csv.return_value = "Student Name\r\nMaria Silva\r\n"
        program_id = uuid4()

        response = client.get(f"/api/practicum/programs/{program_id}/report.csv", headers=tenant_headers)

        assert response.status_code == 200
        assert response.headers["content-type"].startswith("text/csv")
        assert f"practicum_{program_id}_report.csv" in response.headers["content-disposition"]

    def test_report_without_students(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_practicum_service)
        service.generate_program_report.side_effect = NotFoundError("No students assigned")

        response = client.get(f"/api/practicum/programs/{uuid4()}/report", headers=tenant_headers)

        assert response.status_code == 404


class TestPortalEndpoints:

    def test_reorder(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.ADMIN)
        service = override_service(get_portal_admin_service)
        service.reorder_navigation.return_value = []
        first, second = uuid4(), uuid4()

        response = client.post("/api/portal/navigation/reorder", headers=tenant_headers, json={
            "items": [{"id": str(first), "position": 1}, {"id": str(second), "position": 0}]
        })

        assert response.status_code == 200
        service.reorder_navigation.assert_awaited_once_with([(first, 1), (second, 0)])

    def test_branding_is_admin_only(self, client, as_role, override_service, tenant_headers):
        as_role(TenantRole.STUDENT)
        override_service(get_portal_admin_service)

        response = client.put("/api/portal/branding", headers=tenant_headers,
                              json={"portal_name": "Students"})

        assert response.status_code == 403
