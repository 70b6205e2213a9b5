"""
Program Fit API Routes

Assessments, bulk scoring and the engagement metrics that feed them.
"""

from typing import List, Optional
from uuid import UUID

from fastapi import APIRouter, Body
from pydantic import BaseModel, Field

from admissions_crm.api.dependencies import ProgramFitServiceDep, StaffContextDep
from admissions_crm.infrastructure.db.models import ApplicantSignals, EngagementMetricsUpdate

router = APIRouter(prefix="/api", tags=["program-fit"])


class BulkAssessRequest(BaseModel):
    lead_ids: List[UUID] = Field(..., min_length=1)


@router.get("/leads/{lead_id}/program-fit")
async def get_assessment(lead_id: UUID, context: StaffContextDep, service: ProgramFitServiceDep):
    return await service.get_assessment(lead_id)


@router.post("/leads/{lead_id}/program-fit")
async def assess_applicant(
    lead_id: UUID,
    context: StaffContextDep,
    service: ProgramFitServiceDep,
    signals: Optional[ApplicantSignals] = Body(None),
):
    """Score the lead now and store the result."""
    return await service.assess_applicant(lead_id, assessed_by=context.user_id, signals=signals)


@router.post("/program-fit/bulk")
async def bulk_assess(
    request: BulkAssessRequest,
    context: StaffContextDep,
    service: ProgramFitServiceDep,
):
    result = await service.bulk_assess_applicants(request.lead_ids, assessed_by=context.user_id)
    return {
        "assessed": result["assessed"],
        "failed": result["failed"],
        "total_assessed": len(result["assessed"]),
        "total_failed": len(result["failed"]),
    }


@router.get("/leads/{lead_id}/engagement")
async def get_engagement(lead_id: UUID, context: StaffContextDep, service: ProgramFitServiceDep):
    return await service.get_engagement_metrics(lead_id)


@router.put("/leads/{lead_id}/engagement")
async def record_engagement(
    lead_id: UUID,
    data: EngagementMetricsUpdate,
    context: StaffContextDep,
    service: ProgramFitServiceDep,
):
    return await service.record_engagement_metrics(lead_id, data)
