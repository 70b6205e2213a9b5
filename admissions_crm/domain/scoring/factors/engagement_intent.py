"""
Engagement Intent Component

Interest signals from communication and portal behavior.
"""

from typing import Dict, Optional

from admissions_crm.domain.scoring.interfaces import (
    ApplicantSnapshot,
    BaseFitComponent,
    EngagementSnapshot,
)


class EngagementIntentComponent(BaseFitComponent):
    """
    Weight: 20%

    - response_time: faster first response scores higher
    - email_engagement: email open rate (0-100)
    - portal_activity: logins and time spent in the portal
    - event_participation: 20 points per attended event, capped at 100
    """

    SIGNAL_WEIGHTS = {
        "response_time": 0.3,
        "email_engagement": 0.25,
        "portal_activity": 0.25,
        "event_participation": 0.2,
    }

    NEUTRAL_RESPONSE = 50.0
    NO_PORTAL_DATA = 30.0
    POINTS_PER_EVENT = 20

    @property
    def name(self) -> str:
        return "engagement_intent"

    @property
    def weight(self) -> float:
        return 0.20

    def signals(
        self,
        applicant: ApplicantSnapshot,
        engagement: Optional[EngagementSnapshot],
    ) -> Dict[str, tuple]:
        return {
            "response_time": self._response_time(engagement),
            "email_engagement": self._email(engagement),
            "portal_activity": self._portal(engagement),
            "event_participation": self._events(engagement),
        }

    def _response_time(self, engagement: Optional[EngagementSnapshot]) -> tuple:
        hours = engagement.first_response_time_hours if engagement else None
        if not hours:
            return self.NEUTRAL_RESPONSE, False
        if hours <= 2:
            return 100.0, True
        if hours <= 24:
            return 80.0, True
        if hours <= 72:
            return 60.0, True
        return 30.0, True

    def _email(self, engagement: Optional[EngagementSnapshot]) -> tuple:
        if engagement is None or engagement.email_open_rate is None:
            return 0.0, False
        return float(engagement.email_open_rate), True

    def _portal(self, engagement: Optional[EngagementSnapshot]) -> tuple:
        if engagement is None:
            return self.NO_PORTAL_DATA, False
        login_score = min(engagement.portal_login_count * 10, 50)
        time_score = min(engagement.portal_time_spent_minutes / 5, 50)
        return float(login_score + time_score), True

    def _events(self, engagement: Optional[EngagementSnapshot]) -> tuple:
        if engagement is None:
            return 0.0, False
        return float(min(engagement.event_attendance_count * self.POINTS_PER_EVENT, 100)), True
