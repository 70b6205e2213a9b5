"""
Hard Eligibility Component

Pass/fail admission gates. If any gate fails the applicant cannot fit the
program, and the program-fit score is zero.
"""

from typing import Optional

from admissions_crm.domain.scoring.interfaces import (
    ApplicantSnapshot,
    ComponentScore,
    EngagementSnapshot,
)


class HardEligibilityComponent:
    """
    Weight: 30%

    Gates:
    - prerequisites_met: at least MIN_APPROVED_DOCUMENTS approved documents
    - gpa_minimum: applicant meets the program GPA floor
    - documents_complete: no more approved documents than submitted ones
    - test_scores: applicant meets test score requirements
    """

    MIN_APPROVED_DOCUMENTS = 2

    @property
    def name(self) -> str:
        return "hard_eligibility"

    @property
    def weight(self) -> float:
        return 0.30

    def evaluate(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot],
    ) -> ComponentScore:
        checks = {
            "prerequisites_met": applicant.documents_approved >= self.MIN_APPROVED_DOCUMENTS,
            "gpa_minimum": bool(applicant.gpa_minimum_met),
            "documents_complete": applicant.documents_submitted >= applicant.documents_approved,
            "test_scores": bool(applicant.test_scores_met),
        }
        passed = all(checks.values())
        return ComponentScore(
            name=self.name,
            signals={},
            score=100.0 if passed else 0.0,
            observed=len(checks),
            checks=checks,
        )
