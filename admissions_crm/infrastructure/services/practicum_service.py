"""
Practicum Service

Practicum programs, student-to-site assignments, the records students
submit against an assignment, and per-program progress reports.
"""

import csv
import io
import logging
from datetime import date
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.config.settings import get_settings
from admissions_crm.infrastructure.db.models import (
    AssignmentStatus,
    Lead,
    PracticumAssignment,
    PracticumAssignmentCreate,
    PracticumProgram,
    PracticumProgramCreate,
    PracticumRecord,
    RecordType,
    ReviewStatus,
)
from admissions_crm.infrastructure.db.repositories import (
    LeadRepository,
    PracticumAssignmentRepository,
    PracticumProgramRepository,
    PracticumRecordRepository,
)
from admissions_crm.infrastructure.exceptions import NotFoundError, ValidationError


logger = logging.getLogger(__name__)

MAX_ATTENDANCE_HOURS = 24
REVIEWER_ROLES = ("preceptor", "instructor")

REPORT_COLUMNS = [
    ("student_name", "Student Name"),
    ("student_email", "Student Email"),
    ("student_id", "Student ID"),
    ("practicum_site", "Practicum Site"),
    ("site_location", "Site Location"),
    ("preceptor_name", "Preceptor Name"),
    ("preceptor_email", "Preceptor Email"),
    ("hours_submitted", "Hours Submitted"),
    ("hours_approved", "Hours Approved"),
    ("hours_required", "Hours Required"),
    ("attendance_rate", "Attendance Rate (%)"),
    ("competencies_completed", "Competencies Completed"),
    ("competencies_required", "Competencies Required"),
    ("completion_rate", "Completion Rate (%)"),
    ("start_date", "Start Date"),
    ("end_date", "End Date"),
    ("status", "Status"),
    ("last_activity", "Last Activity"),
]


def summarize_records(
    records: List[PracticumRecord],
    hours_required: int,
    competencies_required: int,
) -> Dict[str, Any]:
    """
    Aggregate one assignment's records.

    Hours and competencies only count once the instructor approved them.
    Completion is approved hours over required hours, capped at 100.
    """
    attendance = [r for r in records if r.record_type == RecordType.ATTENDANCE]
    approved_attendance = [r for r in attendance if r.instructor_status == ReviewStatus.APPROVED]

    hours_submitted = sum(r.hours_submitted or 0 for r in attendance)
    hours_approved = sum(r.hours_submitted or 0 for r in approved_attendance)
    competencies_completed = len([
        r for r in records
        if r.record_type == RecordType.COMPETENCY and r.instructor_status == ReviewStatus.APPROVED
    ])
    forms_pending = len([
        r for r in records
        if ReviewStatus.PENDING in (r.preceptor_status, r.instructor_status)
    ])

    attendance_rate = len(approved_attendance) / len(attendance) * 100 if attendance else 0
    completion_rate = min(100, hours_approved / hours_required * 100) if hours_required else 0
    last_activity: Optional[date] = (
        max(r.created_at for r in records).date() if records else None
    )

    return {
        "hours_submitted": round(hours_submitted),
        "hours_approved": round(hours_approved),
        "hours_required": hours_required,
        "attendance_rate": round(attendance_rate),
        "competencies_completed": competencies_completed,
        "competencies_required": competencies_required,
        "completion_rate": round(completion_rate),
        "forms_pending": forms_pending,
        "last_activity": last_activity,
    }


def render_report_csv(rows: List[Dict[str, Any]]) -> str:
    """Render report rows as CSV with human-readable headers."""
    buffer = io.StringIO()
    writer = csv.writer(buffer)
    writer.writerow([label for _, label in REPORT_COLUMNS])
    for row in rows:
        writer.writerow([
            "" if row.get(key) is None else row.get(key)
            for key, _ in REPORT_COLUMNS
        ])
    return buffer.getvalue()


class PracticumService:
    """Practicum placements for one tenant."""

    def __init__(self, session: AsyncSession, tenant_id: UUID):
        self._program_repo = PracticumProgramRepository(session, tenant_id)
        self._assignment_repo = PracticumAssignmentRepository(session, tenant_id)
        self._record_repo = PracticumRecordRepository(session, tenant_id)
        self._lead_repo = LeadRepository(session, tenant_id)

    # =========================================================================
    # Programs & assignments
    # =========================================================================

    async def create_program(self, data: PracticumProgramCreate) -> PracticumProgram:
        program = await self._program_repo.create(data)
        logger.info(f"Practicum program '{program.name}' created")
        return program

    async def list_programs(self) -> List[PracticumProgram]:
        return await self._program_repo.list_ordered()

    async def get_program(self, program_id: UUID) -> PracticumProgram:
        program = await self._program_repo.get_by_id(program_id)
        if program is None:
            raise NotFoundError(
                f"Practicum program {program_id} not found",
                operation="get",
                table="practicum_programs"
            )
        return program

    async def create_assignment(self, data: PracticumAssignmentCreate) -> PracticumAssignment:
        await self.get_program(data.program_id)
        if not await self._lead_repo.exists(data.lead_id):
            raise NotFoundError(f"Lead {data.lead_id} not found", operation="get", table="leads")
        if data.start_date and data.end_date and data.end_date < data.start_date:
            raise ValidationError("end_date must not be before start_date")

        assignment = await self._assignment_repo.create(data)
        logger.info(f"Lead {data.lead_id} assigned to '{data.site_name}' ({assignment.id})")
        return assignment

    async def list_assignments(
        self,
        program_id: Optional[UUID] = None,
        lead_id: Optional[UUID] = None,
    ) -> List[PracticumAssignment]:
        if program_id:
            return await self._assignment_repo.list_for_program(program_id)
        if lead_id:
            return await self._assignment_repo.list_for_lead(lead_id)
        raise ValidationError("Either program_id or lead_id is required")

    async def get_assignment(self, assignment_id: UUID) -> PracticumAssignment:
        assignment = await self._assignment_repo.get_by_id(assignment_id)
        if assignment is None:
            raise NotFoundError(
                f"Assignment {assignment_id} not found",
                operation="get",
                table="practicum_assignments"
            )
        return assignment

    async def get_lead(self, lead_id: UUID) -> Lead:
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found", operation="get", table="leads")
        return lead

    async def get_assignment_with_lead(
        self,
        assignment_id: UUID
    ) -> Tuple[PracticumAssignment, Lead]:
        """The assignment and the placed student's lead."""
        assignment = await self.get_assignment(assignment_id)
        return assignment, await self.get_lead(assignment.lead_id)

    async def update_assignment_status(
        self,
        assignment_id: UUID,
        status: AssignmentStatus
    ) -> PracticumAssignment:
        assignment = await self.get_assignment(assignment_id)
        assignment.status = status
        assignment = await self._assignment_repo.save(assignment)
        logger.info(f"Assignment {assignment_id} -> {status.value}")
        return assignment

    # =========================================================================
    # Records
    # =========================================================================

    async def submit_attendance(
        self,
        assignment_id: UUID,
        hours: float,
        record_date: Optional[date] = None,
        content: Optional[Dict[str, Any]] = None,
    ) -> PracticumRecord:
        if hours is None or not 0 < hours <= MAX_ATTENDANCE_HOURS:
            raise ValidationError(
                f"Attendance hours must be greater than 0 and at most {MAX_ATTENDANCE_HOURS}",
                details={"hours": hours}
            )
        return await self._submit(
            assignment_id,
            RecordType.ATTENDANCE,
            record_date=record_date,
            hours_submitted=hours,
            content=content or {},
        )

    async def submit_journal(
        self,
        assignment_id: UUID,
        content: Dict[str, Any],
        record_date: Optional[date] = None,
    ) -> PracticumRecord:
        if not content:
            raise ValidationError("Journal entry is empty")
        return await self._submit(
            assignment_id, RecordType.JOURNAL, record_date=record_date, content=content
        )

    async def submit_self_evaluation(
        self,
        assignment_id: UUID,
        content: Dict[str, Any],
        record_date: Optional[date] = None,
    ) -> PracticumRecord:
        if not content:
            raise ValidationError("Self-evaluation is empty")
        return await self._submit(
            assignment_id, RecordType.SELF_EVALUATION, record_date=record_date, content=content
        )

    async def submit_competency(
        self,
        assignment_id: UUID,
        competency_name: str,
        content: Optional[Dict[str, Any]] = None,
        record_date: Optional[date] = None,
    ) -> PracticumRecord:
        if not competency_name or not competency_name.strip():
            raise ValidationError("Competency name is required")
        return await self._submit(
            assignment_id,
            RecordType.COMPETENCY,
            record_date=record_date,
            competency_name=competency_name.strip(),
            content=content or {},
        )

    async def _submit(
        self,
        assignment_id: UUID,
        record_type: RecordType,
        **values: Any
    ) -> PracticumRecord:
        assignment = await self.get_assignment(assignment_id)
        if assignment.status in (AssignmentStatus.COMPLETED, AssignmentStatus.WITHDRAWN):
            raise ValidationError(
                f"Cannot submit records to a {getattr(assignment.status, 'value', assignment.status)} assignment",
                details={"assignment_id": str(assignment_id)}
            )

        record = PracticumRecord(
            tenant_id=assignment.tenant_id,
            assignment_id=assignment_id,
            record_type=record_type,
            record_date=values.pop("record_date", None) or date.today(),
            **values,
        )
        record = await self._record_repo.save(record)
        logger.info(f"{record_type.value} record {record.id} submitted for assignment {assignment_id}")
        return record

    async def list_records(self, assignment_id: UUID) -> List[PracticumRecord]:
        return await self._record_repo.list_for_assignments([assignment_id])

    async def get_record(self, record_id: UUID) -> PracticumRecord:
        record = await self._record_repo.get_by_id(record_id)
        if record is None:
            raise NotFoundError(
                f"Record {record_id} not found",
                operation="get",
                table="practicum_records"
            )
        return record

    async def review_record(
        self,
        record_id: UUID,
        reviewer_role: str,
        decision: ReviewStatus,
        feedback: Optional[str] = None,
    ) -> PracticumRecord:
        """Record a preceptor or instructor decision on a submission."""
        if reviewer_role not in REVIEWER_ROLES:
            raise ValidationError(
                f"reviewer_role must be one of {', '.join(REVIEWER_ROLES)}",
                details={"reviewer_role": reviewer_role}
            )
        if decision == ReviewStatus.PENDING:
            raise ValidationError("A review decision must be approved or rejected")

        record = await self.get_record(record_id)
        setattr(record, f"{reviewer_role}_status", decision)
        setattr(record, f"{reviewer_role}_feedback", feedback)
        record = await self._record_repo.save(record)
        logger.info(f"Record {record_id} {decision.value} by {reviewer_role}")
        return record

    # =========================================================================
    # Progress & reporting
    # =========================================================================

    def _requirements(self, program: Optional[PracticumProgram]) -> Dict[str, int]:
        settings = get_settings()
        hours = program.hours_required if program else None
        competencies = program.competencies_required if program else None
        return {
            "hours_required": settings.practicum_default_hours_required if hours is None else hours,
            "competencies_required": (
                settings.practicum_default_competencies_required
                if competencies is None else competencies
            ),
        }

    async def get_assignment_progress(self, assignment_id: UUID) -> Dict[str, Any]:
        assignment = await self.get_assignment(assignment_id)
        program = await self._program_repo.get_by_id(assignment.program_id)
        records = await self._record_repo.list_for_assignments([assignment_id])

        progress = summarize_records(records, **self._requirements(program))
        progress["assignment_id"] = assignment_id
        return progress

    async def validate_program_for_reporting(self, program_id: UUID) -> Dict[str, Any]:
        assignments = await self._assignment_repo.list_for_program(program_id)
        return {"is_valid": len(assignments) > 0, "student_count": len(assignments)}

    async def generate_program_report(self, program_id: UUID) -> List[Dict[str, Any]]:
        """
        One row per assigned student with hours, competencies and completion.

        Raises:
            NotFoundError: Program unknown or without assignments
        """
        program = await self.get_program(program_id)
        assignments = await self._assignment_repo.list_for_program(program_id)
        if not assignments:
            raise NotFoundError(
                f"No students assigned to practicum program {program_id}",
                operation="report",
                table="practicum_assignments"
            )

        leads = {lead.id: lead for lead in await self._lead_repo.get_many(
            [a.lead_id for a in assignments]
        )}
        records = await self._record_repo.list_for_assignments([a.id for a in assignments])
        requirements = self._requirements(program)

        rows = []
        for assignment in assignments:
            lead = leads.get(assignment.lead_id)
            own_records = [r for r in records if r.assignment_id == assignment.id]
            location = ", ".join(p for p in (assignment.site_city, assignment.site_state) if p)

            row = {
                "student_name": lead.full_name if lead else "",
                "student_email": lead.email if lead else "",
                "student_id": str(assignment.lead_id),
                "practicum_site": assignment.site_name,
                "site_location": location,
                "preceptor_name": assignment.preceptor_name or "",
                "preceptor_email": assignment.preceptor_email or "",
                "start_date": assignment.start_date,
                "end_date": assignment.end_date,
                "status": getattr(assignment.status, "value", assignment.status),
            }
            row.update(summarize_records(own_records, **requirements))
            row.pop("forms_pending")
            rows.append(row)

        logger.info(f"Generated practicum report for program {program_id}: {len(rows)} student(s)")
        return rows

    async def export_program_report_csv(self, program_id: UUID) -> str:
        return render_report_csv(await self.generate_program_report(program_id))
