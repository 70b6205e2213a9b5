"""
Academic Alignment Component

How well the applicant's academic record matches the program. Signals come
from transcript review; until one is recorded, a fixed neutral default is
used so the score stays reproducible.
"""

from typing import Dict, Optional

from admissions_crm.domain.scoring.interfaces import (
    ApplicantSnapshot,
    BaseFitComponent,
    EngagementSnapshot,
)


class AcademicAlignmentComponent(BaseFitComponent):
    """Weight: 35%"""

    SIGNAL_WEIGHTS = {
        "coursework_match": 0.4,
        "grade_alignment": 0.3,
        "prerequisite_recency": 0.2,
        "academic_progression": 0.1,
    }

    # Midpoints of the typical ranges seen in reviewed applications
    DEFAULTS = {
        "coursework_match": 80.0,
        "grade_alignment": 85.0,
        "prerequisite_recency": 80.0,
        "academic_progression": 87.5,
    }

    @property
    def name(self) -> str:
        return "academic_alignment"

    @property
    def weight(self) -> float:
        return 0.35

    def signals(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot],
    ) -> Dict[str, tuple]:
        result = {}
        for key, default in self.DEFAULTS.items():
            value = getattr(applicant, key)
            result[key] = (default, False) if value is None else (float(value), True)
        return result
