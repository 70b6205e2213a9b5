# Program-fit scoring module
from admissions_crm.domain.scoring.interfaces import (
    ApplicantSnapshot,
    BaseFitComponent,
    ComponentScore,
    EngagementSnapshot,
    FitComponent,
    FitResult,
    clamp,
)
from admissions_crm.domain.scoring.program_fit_scorer import ProgramFitScorer

__all__ = [
    "ApplicantSnapshot",
    "BaseFitComponent",
    "ComponentScore",
    "EngagementSnapshot",
    "FitComponent",
    "FitResult",
    "clamp",
    "ProgramFitScorer",
]
