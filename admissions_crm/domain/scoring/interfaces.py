"""
Scoring Interfaces for Program Fit

Defines the inputs, outputs and component protocol of the program-fit /
yield-propensity scorer. The scorer is a pure function of these inputs:
no I/O and no randomness.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Protocol, runtime_checkable
from uuid import UUID


def clamp(value: float, low: float = 0.0, high: float = 100.0) -> float:
    """Clamp ``value`` into [low, high]."""
    return max(low, min(high, value))


@dataclass
class ApplicantSnapshot:
    """
    Applicant facts needed for scoring.

    Built from the lead row and its document counts. The optional academic
    and risk signals come from transcript review; when absent, each
    component substitutes a fixed neutral default.
    """
    lead_id: Optional[UUID] = None
    program_name: Optional[str] = None

    # Documents
    documents_submitted: int = 0
    documents_approved: int = 0

    # Payment: pending, partial, completed
    payment_status: Optional[str] = None

    # Eligibility gates not derivable from documents
    gpa_minimum_met: bool = True
    test_scores_met: bool = True

    # Academic alignment signals (0-100)
    coursework_match: Optional[float] = None
    grade_alignment: Optional[float] = None
    prerequisite_recency: Optional[float] = None
    academic_progression: Optional[float] = None

    # Behavioral / risk signals (0-100)
    consistency: Optional[float] = None
    visa_risk: Optional[float] = None


@dataclass
class EngagementSnapshot:
    """Engagement metrics for an applicant (any field may be unknown)."""
    first_response_time_hours: Optional[float] = None
    email_open_rate: Optional[float] = None  # 0-100
    portal_login_count: int = 0
    portal_time_spent_minutes: float = 0.0
    event_attendance_count: int = 0
    application_velocity_days: Optional[float] = None
    nudge_responsiveness_score: Optional[float] = None  # 0-100
    self_scheduling_speed_hours: Optional[float] = None


@dataclass
class ComponentScore:
    """
    Output of one scoring component.

    ``signals`` holds each named sub-score (0-100), ``score`` the
    component's weighted aggregate. ``observed`` counts signals taken from
    real data rather than defaults.
    """
    name: str
    signals: Dict[str, float]
    score: float
    observed: int = 0
    checks: Dict[str, bool] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return len(self.checks) if self.checks else len(self.signals)

    @property
    def mean(self) -> float:
        """Unweighted average of the sub-scores."""
        if not self.signals:
            return self.score
        return sum(self.signals.values()) / len(self.signals)

    @property
    def passed(self) -> bool:
        """For gate components: True when every check passed."""
        return all(self.checks.values())

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "score": round(self.score, 1),
            "signals": {k: round(v, 1) for k, v in self.signals.items()},
        }
        if self.checks:
            data["checks"] = dict(self.checks)
        return data


@dataclass
class FitResult:
    """
    Final scorer output.

    Both scores are integers in [0, 100].
    """
    program_fit_score: int
    yield_propensity_score: int
    hard_eligibility_passed: bool
    components: Dict[str, ComponentScore]
    risk_flags_count: int
    confidence: int

    def component(self, name: str) -> ComponentScore:
        return self.components[name]

    @property
    def academic_alignment_score(self) -> int:
        return round(self.components["academic_alignment"].mean)

    @property
    def engagement_intent_score(self) -> int:
        return round(self.components["engagement_intent"].mean)

    @property
    def behavioral_signals_score(self) -> int:
        return round(self.components["behavioral_signals"].mean)

    @property
    def financial_readiness_score(self) -> int:
        risk = self.components["risk_factors"].signals["financial_readiness"]
        return round(clamp(100 - risk))

    def to_dict(self) -> Dict[str, Any]:
        """Convert to API / persistence format."""
        return {
            "program_fit_score": self.program_fit_score,
            "yield_propensity_score": self.yield_propensity_score,
            "hard_eligibility_passed": self.hard_eligibility_passed,
            "risk_flags_count": self.risk_flags_count,
            "confidence": self.confidence,
            "components": {
                name: comp.to_dict() for name, comp in self.components.items()
            },
        }


@runtime_checkable
class FitComponent(Protocol):
    """
    Protocol for program-fit components.

    Each component turns the applicant and engagement snapshots into named
    0-100 sub-scores and one aggregate.
    """

    @property
    def name(self) -> str:
        ...

    @property
    def weight(self) -> float:
        """Weight of the aggregate in the program-fit score."""
        ...

    def evaluate(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot],
    ) -> ComponentScore:
        ...


class BaseFitComponent(ABC):
    """
    Base class for weighted-average components.

    Subclasses declare ``SIGNAL_WEIGHTS`` and implement ``signals()``,
    returning each sub-score together with whether it was observed.
    """

    SIGNAL_WEIGHTS: Dict[str, float] = {}

    @property
    @abstractmethod
    def name(self) -> str:
        pass

    @property
    @abstractmethod
    def weight(self) -> float:
        pass

    @abstractmethod
    def signals(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot],
    ) -> Dict[str, tuple]:
        """Map of signal name -> (score 0-100, observed flag)."""
        pass

    def evaluate(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot],
    ) -> ComponentScore:
        raw = self.signals(applicant, engagement)
        values = {key: clamp(score) for key, (score, _) in raw.items()}
        observed = sum(1 for _, seen in raw.values() if seen)
        aggregate = sum(values[key] * w for key, w in self.SIGNAL_WEIGHTS.items())
        return ComponentScore(
            name=self.name,
            signals=values,
            score=clamp(aggregate),
            observed=observed,
        )
