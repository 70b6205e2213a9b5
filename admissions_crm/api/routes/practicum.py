"""
Practicum API Routes

Programs, placements, record submission and review, progress and reports.
"""

from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Response, status
from pydantic import BaseModel

from admissions_crm.api.dependencies import (
    AdminContextDep,
    PracticumServiceDep,
    StaffContextDep,
    TenantContext,
    TenantContextDep,
    ensure_assignment_access,
    ensure_lead_access,
)
from admissions_crm.infrastructure.db.models import (
    AssignmentStatus,
    PracticumAssignmentCreate,
    PracticumProgramCreate,
    RecordReview,
    RecordSubmission,
    RecordType,
    TenantRole,
)
from admissions_crm.infrastructure.exceptions import TenantAccessError
from admissions_crm.infrastructure.services.practicum_service import PracticumService

router = APIRouter(prefix="/api/practicum", tags=["practicum"])

# Roles allowed to act as each reviewer
REVIEWER_PERMISSIONS = {
    "preceptor": (TenantRole.PRECEPTOR, TenantRole.ADMIN),
    "instructor": (TenantRole.ADMIN, TenantRole.SALES_REP),
}


class AssignmentStatusRequest(BaseModel):
    status: AssignmentStatus


def _check_reviewer(context: TenantContext, reviewer_role: str) -> None:
    allowed = REVIEWER_PERMISSIONS.get(reviewer_role)
    if allowed is not None and context.role not in allowed:
        raise TenantAccessError(
            f"Role '{context.role.value}' cannot review as {reviewer_role}",
            tenant_id=context.tenant_id,
            required_roles=[r.value for r in allowed],
        )


async def _check_assignment(
    context: TenantContext,
    service: PracticumService,
    assignment_id: UUID,
) -> None:
    if not context.is_staff:
        assignment, lead = await service.get_assignment_with_lead(assignment_id)
        ensure_assignment_access(context, assignment, lead)


# =============================================================================
# Programs & assignments
# =============================================================================

@router.get("/programs")
async def list_programs(context: TenantContextDep, service: PracticumServiceDep):
    return await service.list_programs()


@router.post("/programs", status_code=status.HTTP_201_CREATED)
async def create_program(
    data: PracticumProgramCreate,
    context: AdminContextDep,
    service: PracticumServiceDep,
):
    return await service.create_program(data)


@router.get("/assignments")
async def list_assignments(
    context: TenantContextDep,
    service: PracticumServiceDep,
    program_id: Optional[UUID] = None,
    lead_id: Optional[UUID] = None,
):
    if not context.is_staff:
        if lead_id is None:
            raise TenantAccessError(
                "Only staff can list placements by program",
                tenant_id=context.tenant_id,
                required_roles=[TenantRole.ADMIN.value, TenantRole.SALES_REP.value],
            )
        ensure_lead_access(context, await service.get_lead(lead_id))
    return await service.list_assignments(program_id=program_id, lead_id=lead_id)


@router.post("/assignments", status_code=status.HTTP_201_CREATED)
async def create_assignment(
    data: PracticumAssignmentCreate,
    context: StaffContextDep,
    service: PracticumServiceDep,
):
    return await service.create_assignment(data)


@router.patch("/assignments/{assignment_id}/status")
async def update_assignment_status(
    assignment_id: UUID,
    request: AssignmentStatusRequest,
    context: StaffContextDep,
    service: PracticumServiceDep,
):
    return await service.update_assignment_status(assignment_id, request.status)


# =============================================================================
# Records
# =============================================================================

@router.get("/assignments/{assignment_id}/records")
async def list_records(assignment_id: UUID, context: TenantContextDep, service: PracticumServiceDep):
    await _check_assignment(context, service, assignment_id)
    return await service.list_records(assignment_id)


@router.post("/assignments/{assignment_id}/records/{record_type}", status_code=status.HTTP_201_CREATED)
async def submit_record(
    assignment_id: UUID,
    record_type: RecordType,
    data: RecordSubmission,
    context: TenantContextDep,
    service: PracticumServiceDep,
):
    await _check_assignment(context, service, assignment_id)
    if record_type == RecordType.ATTENDANCE:
        return await service.submit_attendance(
            assignment_id, data.hours, record_date=data.record_date, content=data.content
        )
    if record_type == RecordType.COMPETENCY:
        return await service.submit_competency(
            assignment_id, data.competency_name, content=data.content, record_date=data.record_date
        )
    if record_type == RecordType.JOURNAL:
        return await service.submit_journal(assignment_id, data.content, record_date=data.record_date)
    return await service.submit_self_evaluation(
        assignment_id, data.content, record_date=data.record_date
    )


@router.post("/records/{record_id}/review")
async def review_record(
    record_id: UUID,
    data: RecordReview,
    context: TenantContextDep,
    service: PracticumServiceDep,
):
    _check_reviewer(context, data.reviewer_role)
    if not context.is_staff:
        record = await service.get_record(record_id)
        await _check_assignment(context, service, record.assignment_id)
    return await service.review_record(record_id, data.reviewer_role, data.decision, data.feedback)


# =============================================================================
# Progress & reports
# =============================================================================

@router.get("/assignments/{assignment_id}/progress")
async def get_progress(assignment_id: UUID, context: TenantContextDep, service: PracticumServiceDep):
    await _check_assignment(context, service, assignment_id)
    return await service.get_assignment_progress(assignment_id)


@router.get("/programs/{program_id}/report/validate")
async def validate_report(program_id: UUID, context: StaffContextDep, service: PracticumServiceDep):
    return await service.validate_program_for_reporting(program_id)


@router.get("/programs/{program_id}/report")
async def get_report(program_id: UUID, context: StaffContextDep, service: PracticumServiceDep):
    rows = await service.generate_program_report(program_id)
    return {"program_id": program_id, "students": rows, "student_count": len(rows)}


@router.get("/programs/{program_id}/report.csv")
async def get_report_csv(program_id: UUID, context: StaffContextDep, service: PracticumServiceDep):
    content = await service.export_program_report_csv(program_id)
    return Response(
        content=content,
        media_type="text/csv",
        headers={
            "Content-Disposition": f'attachment; filename="practicum_{program_id}_report.csv"'
        },
    )
