"""
Pydantic schemas for the campaign dashboard.
"""
from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, Field, ConfigDict

from adpilot.models.campaign import Campaign
from adpilot.models.enums import CampaignStatus
from adpilot.services import budget_policy


class CampaignRead(Campaign):
    """Stored campaign plus the derived figures the dashboard shows."""
    display_status: CampaignStatus
    days_remaining: int
    spend_percentage: float
    conversion_rate: float

    @classmethod
    def from_campaign(cls, campaign: Campaign, now: Optional[datetime] = None) -> "CampaignRead":
        return cls(
            **dict(campaign),
            display_status=budget_policy.display_status(campaign, now),
            days_remaining=budget_policy.days_remaining(campaign, now),
            spend_percentage=budget_policy.spend_percentage(campaign),
            conversion_rate=budget_policy.conversion_rate(campaign.metrics),
        )


class StatusUpdate(BaseModel):
    status: CampaignStatus

    model_config = ConfigDict(json_schema_extra={"example": {"status": "PAUSED"}})


class SpendRecord(BaseModel):
    day: str = Field(min_length=1, max_length=32, description="Label of the reporting day, e.g. 'Mon'")
    amount: float = Field(ge=0)

    model_config = ConfigDict(json_schema_extra={"example": {"day": "Mon", "amount": 120.0}})


class BudgetUpdate(BaseModel):
    """Loose budget edit; values are clamped into range rather than rejected."""
    daily_limit: Optional[Any] = None
    hard_cap: Optional[Any] = None
    currency: Optional[Any] = None
    duration: Optional[Any] = None

    def changes(self) -> Dict[str, Any]:
        return self.model_dump(exclude_none=True)


class SessionRead(BaseModel):
    selected_id: Optional[str] = None
    view: str
    active_campaign_id: Optional[str] = None
