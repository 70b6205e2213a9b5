"""
Program Fit Service

Loads an applicant's lead, document counts and engagement metrics, runs
the ProgramFitScorer and persists the latest assessment per lead.
"""

import logging
from dataclasses import fields
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from admissions_crm.config.settings import get_settings
from admissions_crm.domain.scoring import (
    ApplicantSnapshot,
    EngagementSnapshot,
    FitResult,
    ProgramFitScorer,
)
from admissions_crm.infrastructure.db.models import (
    ApplicantEngagementMetrics,
    ApplicantSignals,
    DocumentStatus,
    EngagementMetricsUpdate,
    Lead,
    ProgramFitAssessment,
    utcnow,
)
from admissions_crm.infrastructure.db.repositories import (
    DocumentRepository,
    EngagementMetricsRepository,
    LeadRepository,
    ProgramFitAssessmentRepository,
)
from admissions_crm.infrastructure.exceptions import (
    AdmissionsCRMError,
    NotFoundError,
    ValidationError,
)


logger = logging.getLogger(__name__)

SUBMITTED_STATUSES = (
    DocumentStatus.UPLOADED,
    DocumentStatus.APPROVED,
    DocumentStatus.REJECTED,
)
ENGAGEMENT_FIELDS = tuple(f.name for f in fields(EngagementSnapshot))


def to_engagement_snapshot(
    metrics: Optional[ApplicantEngagementMetrics]
) -> Optional[EngagementSnapshot]:
    if metrics is None:
        return None
    return EngagementSnapshot(**{name: getattr(metrics, name) for name in ENGAGEMENT_FIELDS})


class ProgramFitService:
    """Program-fit and yield-propensity assessments for one tenant."""

    def __init__(
        self,
        session: AsyncSession,
        tenant_id: UUID,
        scorer: Optional[ProgramFitScorer] = None,
    ):
        self._session = session
        self._tenant_id = tenant_id
        self._scorer = scorer or ProgramFitScorer()
        self._lead_repo = LeadRepository(session, tenant_id)
        self._document_repo = DocumentRepository(session, tenant_id)
        self._metrics_repo = EngagementMetricsRepository(session, tenant_id)
        self._assessment_repo = ProgramFitAssessmentRepository(session, tenant_id)

    async def calculate_program_fit(
        self,
        lead_id: UUID,
        signals: Optional[ApplicantSignals] = None,
    ) -> Tuple[Lead, FitResult]:
        """
        Score a lead without persisting anything.

        Raises:
            NotFoundError: Unknown lead
        """
        lead = await self._lead_repo.get_by_id(lead_id)
        if lead is None:
            raise NotFoundError(f"Lead {lead_id} not found", operation="get", table="leads")

        counts = await self._document_repo.status_counts(lead_id)
        applicant = ApplicantSnapshot(
            lead_id=lead.id,
            program_name=lead.primary_program,
            documents_submitted=sum(counts[s.value] for s in SUBMITTED_STATUSES),
            documents_approved=counts[DocumentStatus.APPROVED.value],
            payment_status=lead.payment_status,
            **(signals.model_dump(exclude_none=True) if signals else {}),
        )
        metrics = await self._metrics_repo.get_by_lead(lead_id)

        result = self._scorer.score(applicant, to_engagement_snapshot(metrics))
        logger.debug(
            f"Lead {lead_id}: fit={result.program_fit_score} "
            f"yield={result.yield_propensity_score} confidence={result.confidence}"
        )
        return lead, result

    async def assess_applicant(
        self,
        lead_id: UUID,
        assessed_by: Optional[UUID] = None,
        signals: Optional[ApplicantSignals] = None,
    ) -> ProgramFitAssessment:
        """Score a lead and upsert its assessment row."""
        lead, result = await self.calculate_program_fit(lead_id, signals)

        assessment = await self._assessment_repo.upsert(lead_id, {
            "program_name": lead.primary_program,
            "program_fit_score": result.program_fit_score,
            "yield_propensity_score": result.yield_propensity_score,
            "hard_eligibility_passed": result.hard_eligibility_passed,
            "academic_alignment_score": result.academic_alignment_score,
            "engagement_intent_score": result.engagement_intent_score,
            "behavioral_signals_score": result.behavioral_signals_score,
            "financial_readiness_score": result.financial_readiness_score,
            "risk_flags_count": result.risk_flags_count,
            "confidence_score": result.confidence,
            "assessment_data": result.to_dict(),
            "assessed_by": assessed_by,
            "assessed_at": utcnow(),
        })

        logger.info(
            f"Assessed lead {lead_id}: fit={assessment.program_fit_score}, "
            f"yield={assessment.yield_propensity_score}"
        )
        return assessment

    async def get_assessment(self, lead_id: UUID) -> ProgramFitAssessment:
        assessment = await self._assessment_repo.get_by_lead(lead_id)
        if assessment is None:
            raise NotFoundError(
                f"No assessment for lead {lead_id}",
                operation="get",
                table="program_fit_assessments"
            )
        return assessment

    async def get_engagement_metrics(self, lead_id: UUID) -> Optional[ApplicantEngagementMetrics]:
        return await self._metrics_repo.get_by_lead(lead_id)

    async def record_engagement_metrics(
        self,
        lead_id: UUID,
        data: EngagementMetricsUpdate
    ) -> ApplicantEngagementMetrics:
        if not await self._lead_repo.exists(lead_id):
            raise NotFoundError(f"Lead {lead_id} not found", operation="get", table="leads")
        metrics = await self._metrics_repo.upsert(lead_id, data)
        logger.info(f"Recorded engagement metrics for lead {lead_id}")
        return metrics

    async def bulk_assess_applicants(
        self,
        lead_ids: List[UUID],
        assessed_by: Optional[UUID] = None,
    ) -> Dict[str, Any]:
        """
        Assess many leads. Each lead runs in its own savepoint, so one
        failure is reported without discarding the others.

        Returns:
            {"assessed": [ProgramFitAssessment], "failed": [{"lead_id", "error"}]}
        """
        max_batch = get_settings().bulk_assessment_max_batch
        if len(lead_ids) > max_batch:
            raise ValidationError(
                f"At most {max_batch} leads can be assessed at once",
                details={"requested": len(lead_ids)}
            )

        assessed: List[ProgramFitAssessment] = []
        failed: List[Dict[str, str]] = []

        for lead_id in lead_ids:
            try:
                async with self._session.begin_nested():
                    assessed.append(await self.assess_applicant(lead_id, assessed_by))
            except (AdmissionsCRMError, SQLAlchemyError) as e:
                logger.error(f"Assessment failed for lead {lead_id}: {e}")
                failed.append({"lead_id": str(lead_id), "error": str(e)})

        logger.info(f"Bulk assessment: {len(assessed)} assessed, {len(failed)} failed")
        return {"assessed": assessed, "failed": failed}

    async def list_lead_ids(self) -> List[UUID]:
        """Every lead id of the tenant, oldest first."""
        return [lead.id for lead in await self._lead_repo.list_all()]
