from .base import ResponseBase
from .campaigns import CampaignRead, StatusUpdate, SpendRecord, BudgetUpdate, SessionRead
from .wizard import (
    FieldUpdateRequest,
    TargetingTextRequest,
    WizardStateRead,
    GenerationOutcome,
    AdvanceResult,
    RecommendationsRead,
)
from .insights import CustomInsightRequest, CustomInsightRead

__all__ = [
    # Base
    "ResponseBase",

    # Campaigns
    "CampaignRead",
    "StatusUpdate",
    "SpendRecord",
    "BudgetUpdate",
    "SessionRead",

    # Wizard
    "FieldUpdateRequest",
    "TargetingTextRequest",
    "WizardStateRead",
    "GenerationOutcome",
    "AdvanceResult",
    "RecommendationsRead",

    # Insights
    "CustomInsightRequest",
    "CustomInsightRead",
]
