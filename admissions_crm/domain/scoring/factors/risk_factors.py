"""
Risk Factors Component

Penalties (higher = riskier). Subtracted from the program-fit score.
"""

from typing import Dict, Optional

from admissions_crm.domain.scoring.interfaces import (
    ApplicantSnapshot,
    BaseFitComponent,
    EngagementSnapshot,
)


class RiskFactorsComponent(BaseFitComponent):
    """
    Penalty weight: 5% of the averaged risk.

    A risk sub-score above FLAG_THRESHOLD counts as a risk flag.
    """

    SIGNAL_WEIGHTS = {
        "document_inconsistencies": 0.25,
        "policy_conflicts": 0.25,
        "visa_timeline": 0.25,
        "financial_readiness": 0.25,
    }

    FLAG_THRESHOLD = 50.0
    DEFAULT_VISA_RISK = 15.0
    FINANCIAL_RISK = {"completed": 0.0, "partial": 30.0}
    UNPAID_FINANCIAL_RISK = 60.0

    @property
    def name(self) -> str:
        return "risk_factors"

    @property
    def weight(self) -> float:
        return 0.05

    def signals(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot],
    ) -> Dict[str, tuple]:
        return {
            "document_inconsistencies": (self._document_risk(applicant), True),
            # No policy rules are configured yet
            "policy_conflicts": (0.0, False),
            "visa_timeline": self._visa(applicant),
            "financial_readiness": self._financial(applicant),
        }

    def _document_risk(self, applicant: ApplicantSnapshot) -> float:
        submitted = applicant.documents_submitted
        if submitted == 0:
            return 100.0
        return max(0.0, (1 - applicant.documents_approved / submitted) * 100)

    def _visa(self, applicant: ApplicantSnapshot) -> tuple:
        if applicant.visa_risk is None:
            return self.DEFAULT_VISA_RISK, False
        return float(applicant.visa_risk), True

    def _financial(self, applicant: ApplicantSnapshot) -> tuple:
        status = applicant.payment_status
        if status is None:
            return self.UNPAID_FINANCIAL_RISK, False
        return self.FINANCIAL_RISK.get(status, self.UNPAID_FINANCIAL_RISK), True
