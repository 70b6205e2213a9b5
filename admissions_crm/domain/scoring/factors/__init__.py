# Program-fit components
from admissions_crm.domain.scoring.factors.hard_eligibility import HardEligibilityComponent
from admissions_crm.domain.scoring.factors.academic_alignment import AcademicAlignmentComponent
from admissions_crm.domain.scoring.factors.engagement_intent import EngagementIntentComponent
from admissions_crm.domain.scoring.factors.behavioral_signals import BehavioralSignalsComponent
from admissions_crm.domain.scoring.factors.risk_factors import RiskFactorsComponent

__all__ = [
    "HardEligibilityComponent",
    "AcademicAlignmentComponent",
    "EngagementIntentComponent",
    "BehavioralSignalsComponent",
    "RiskFactorsComponent",
]
