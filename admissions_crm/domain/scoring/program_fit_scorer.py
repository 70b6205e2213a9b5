"""
Program Fit Scorer

Central scoring engine combining the fit components into a program-fit
score and a yield-propensity score.
"""

from typing import Dict, List, Optional

from admissions_crm.domain.scoring.interfaces import (
    ApplicantSnapshot,
    ComponentScore,
    EngagementSnapshot,
    FitComponent,
    FitResult,
    clamp,
)
from admissions_crm.domain.scoring.factors import (
    AcademicAlignmentComponent,
    BehavioralSignalsComponent,
    EngagementIntentComponent,
    HardEligibilityComponent,
    RiskFactorsComponent,
)


class ProgramFitScorer:
    """
    Program-fit and yield-propensity scoring engine.

    Program fit (0-100):
        0 if any hard-eligibility gate fails, otherwise
        100*0.30 + academic*0.35 + engagement*0.20 + behavioral*0.10
        - risk_penalty*0.05
    With no risk the maximum attainable is 95.

    Yield propensity (0-100), likelihood to enroll once admitted:
        engagement*0.4 + behavioral*0.3 + financial*0.2 + timeliness*0.1
    """

    YIELD_WEIGHTS = {
        "engagement": 0.4,
        "behavioral": 0.3,
        "financial": 0.2,
        "timeliness": 0.1,
    }
    DEFAULT_TIMELINESS = 70.0

    def __init__(self, components: List[FitComponent] | None = None):
        """
        Args:
            components: Scoring components. If None, uses the defaults.
                Components are looked up by name, so replacements must keep
                the default names.
        """
        self._components = components or self._default_components()

    def _default_components(self) -> List[FitComponent]:
        return [
            HardEligibilityComponent(),
            AcademicAlignmentComponent(),
            EngagementIntentComponent(),
            BehavioralSignalsComponent(),
            RiskFactorsComponent(),
        ]

    def score(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot] = None,
    ) -> FitResult:
        """Score one applicant."""
        evaluated: Dict[str, ComponentScore] = {
            component.name: component.evaluate(applicant, engagement)
            for component in self._components
        }
        weights = {component.name: component.weight for component in self._components}

        eligibility = evaluated["hard_eligibility"]
        risk = evaluated["risk_factors"]

        program_fit = self._program_fit(evaluated, weights)
        yield_propensity = self._yield_propensity(evaluated, engagement)

        risk_flags = sum(
            1 for value in risk.signals.values()
            if value > RiskFactorsComponent.FLAG_THRESHOLD
        )

        return FitResult(
            program_fit_score=round(program_fit),
            yield_propensity_score=round(yield_propensity),
            hard_eligibility_passed=eligibility.passed,
            components=evaluated,
            risk_flags_count=risk_flags,
            confidence=self._confidence(evaluated),
        )

    def _program_fit(
        self,
        evaluated: Dict[str, ComponentScore],
        weights: Dict[str, float],
    ) -> float:
        if not evaluated["hard_eligibility"].passed:
            return 0.0

        score = (
            evaluated["hard_eligibility"].score * weights["hard_eligibility"]
            + evaluated["academic_alignment"].score * weights["academic_alignment"]
            + evaluated["engagement_intent"].score * weights["engagement_intent"]
            + evaluated["behavioral_signals"].score * weights["behavioral_signals"]
            - evaluated["risk_factors"].score * abs(weights["risk_factors"])
        )
        return clamp(score)

    def _yield_propensity(
        self,
        evaluated: Dict[str, ComponentScore],
        engagement: Optional[EngagementSnapshot],
    ) -> float:
        intent = evaluated["engagement_intent"].signals
        behavior = evaluated["behavioral_signals"].signals
        risk = evaluated["risk_factors"].signals

        engagement_score = (
            intent["portal_activity"] * 0.3
            + intent["email_engagement"] * 0.3
            + intent["event_participation"] * 0.2
            + intent["response_time"] * 0.2
        )
        behavioral_score = (
            behavior["application_velocity"] * 0.4
            + behavior["scheduling_speed"] * 0.3
            + behavior["consistency"] * 0.3
        )
        financial_score = clamp(100 - risk["financial_readiness"])

        velocity_days = engagement.application_velocity_days if engagement else None
        timeliness_score = (
            max(0.0, 100 - velocity_days * 2) if velocity_days else self.DEFAULT_TIMELINESS
        )

        w = self.YIELD_WEIGHTS
        return clamp(
            engagement_score * w["engagement"]
            + behavioral_score * w["behavioral"]
            + financial_score * w["financial"]
            + timeliness_score * w["timeliness"]
        )

    def _confidence(self, evaluated: Dict[str, ComponentScore]) -> int:
        """Share of weighted-component signals that came from real data."""
        graded = [c for name, c in evaluated.items() if name != "hard_eligibility"]
        total = sum(c.total for c in graded)
        if total == 0:
            return 0
        return round(100 * sum(c.observed for c in graded) / total)
