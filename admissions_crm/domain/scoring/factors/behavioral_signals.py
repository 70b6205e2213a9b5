"""
Behavioral Signals Component

How quickly and consistently the applicant moves through the process.
"""

from typing import Dict, Optional

from admissions_crm.domain.scoring.interfaces import (
    ApplicantSnapshot,
    BaseFitComponent,
    EngagementSnapshot,
)


class BehavioralSignalsComponent(BaseFitComponent):
    """Weight: 10%"""

    SIGNAL_WEIGHTS = {
        "application_velocity": 0.3,
        "nudge_response": 0.3,
        "scheduling_speed": 0.2,
        "consistency": 0.2,
    }

    NEUTRAL = 50.0
    DEFAULT_CONSISTENCY = 85.0

    @property
    def name(self) -> str:
        return "behavioral_signals"

    @property
    def weight(self) -> float:
        return 0.10

    def signals(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot],
    ) -> Dict[str, tuple]:
        return {
            "application_velocity": self._velocity(engagement),
            "nudge_response": self._nudge(engagement),
            "scheduling_speed": self._scheduling(engagement),
            "consistency": self._consistency(applicant),
        }

    def _velocity(self, engagement: Optional[EngagementSnapshot]) -> tuple:
        days = engagement.application_velocity_days if engagement else None
        if not days:
            return self.NEUTRAL, False
        if days <= 7:
            return 100.0, True
        if days <= 14:
            return 80.0, True
        if days <= 30:
            return 60.0, True
        return 30.0, True

    def _nudge(self, engagement: Optional[EngagementSnapshot]) -> tuple:
        if engagement is None or engagement.nudge_responsiveness_score is None:
            return self.NEUTRAL, False
        return float(engagement.nudge_responsiveness_score), True

    def _scheduling(self, engagement: Optional[EngagementSnapshot]) -> tuple:
        hours = engagement.self_scheduling_speed_hours if engagement else None
        if not hours:
            return self.NEUTRAL, False
        if hours <= 24:
            return 100.0, True
        if hours <= 72:
            return 70.0, True
        return 40.0, True

    def _consistency(self, applicant: ApplicantSnapshot) -> tuple:
        if applicant.consistency is None:
            return self.DEFAULT_CONSISTENCY, False
        return float(applicant.consistency), True
