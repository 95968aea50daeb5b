"""
Pydantic schemas for the campaign builder wizard.
"""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, ConfigDict

from adpilot.models.campaign import Campaign
from adpilot.models.enums import Channel, Platform
from adpilot.services.cascade import CampaignField
from .campaigns import CampaignRead


class FieldUpdateRequest(BaseModel):
    field: CampaignField
    value: Any = None

    model_config = ConfigDict(json_schema_extra={
        "example": {"field": "business_name", "value": "Joe's Pizza"}
    })


class TargetingTextRequest(BaseModel):
    text: str = Field(min_length=1, max_length=2000)

    model_config = ConfigDict(json_schema_extra={
        "example": {"text": "Young professionals in NYC who love tech and coffee"}
    })


class WizardStateRead(BaseModel):
    step_index: int
    total_steps: int
    step: str
    title: str
    version: int
    draft: Campaign
    projection: Dict[str, Any]
    editable_fields: List[str]
    pending_generation: bool
    last_error: Optional[str] = None


class GenerationOutcome(BaseModel):
    applied: bool
    stale: bool = False
    error: Optional[str] = None
    wizard: WizardStateRead


class AdvanceResult(BaseModel):
    wizard: WizardStateRead
    campaign: Optional[CampaignRead] = None


class RecommendationsRead(BaseModel):
    funnel_stage: str
    recommended_channels: List[Channel]
    platforms_by_channel: Dict[str, List[Platform]]
