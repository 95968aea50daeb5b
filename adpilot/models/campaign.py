"""
Campaign aggregate and its value objects.

All models are immutable; every change produces a new object via
``model_copy`` so that callers holding an older reference never observe a
mutation.
"""
from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field, model_validator

from adpilot.config import BUDGET_LIMITS, CREATIVE_DEFAULTS, CREATIVE_LIMITS, TARGETING_DEFAULTS, WIZARD_SETTINGS
from adpilot.utils.time import utc_now
from .enums import (
    CampaignStatus,
    Channel,
    Device,
    FunnelStage,
    Gender,
    Industry,
    LayoutTemplate,
    Platform,
    PLATFORMS_BY_CHANNEL,
)


class ValueObject(BaseModel):
    model_config = ConfigDict(frozen=True, use_enum_values=False)


class CompanyOverview(ValueObject):
    """AI-synthesised description of the advertiser. Blank until populated."""
    summary: str = ""
    business_type: str = ""
    services: List[str] = Field(default_factory=list)
    location: str = ""


class TargetingCriteria(ValueObject):
    locations: List[str] = Field(default_factory=list)
    interests: List[str] = Field(default_factory=list)
    age_range: str = Field(default=str(TARGETING_DEFAULTS["age_range"]))
    gender: Gender = Gender.ALL
    devices: List[Device] = Field(default_factory=lambda: [Device(d) for d in TARGETING_DEFAULTS["devices"]])
    keywords: List[str] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        """True when no audience has been described yet."""
        return not self.interests and not self.locations


class CreativeAsset(ValueObject):
    headline: str = Field(default="", max_length=CREATIVE_LIMITS["headline_max_chars"])
    # Second headline is only rendered for Search ads.
    headline_part2: str = Field(default="", max_length=CREATIVE_LIMITS["headline_part2_max_chars"])
    description: str = Field(default="", max_length=CREATIVE_LIMITS["description_max_chars"])
    primary_color: str = Field(default=CREATIVE_DEFAULTS["primary_color"], pattern=r"^#[0-9a-fA-F]{3,8}$")
    cta_text: str = Field(default=CREATIVE_DEFAULTS["cta_text"], min_length=1, max_length=30)
    layout_template: LayoutTemplate = LayoutTemplate(CREATIVE_DEFAULTS["layout_template"])
    background_image_url: str = ""


class BudgetConfig(ValueObject):
    daily_limit: float = Field(default=float(BUDGET_LIMITS["default_daily_limit"]), ge=BUDGET_LIMITS["min_daily_limit"])
    # The safety lock: spend at or above this value stops delivery.
    hard_cap: float = Field(default=float(BUDGET_LIMITS["default_hard_cap"]), ge=BUDGET_LIMITS["min_hard_cap"])
    currency: str = Field(default=str(BUDGET_LIMITS["default_currency"]), min_length=3, max_length=3)
    duration: int = Field(
        default=int(BUDGET_LIMITS["default_duration_days"]),
        ge=BUDGET_LIMITS["min_duration_days"],
        le=BUDGET_LIMITS["max_duration_days"],
    )

    @property
    def projected_spend(self) -> float:
        return self.daily_limit * self.duration


class CampaignMetrics(ValueObject):
    impressions: int = Field(default=0, ge=0)
    clicks: int = Field(default=0, ge=0)
    conversions: int = Field(default=0, ge=0)
    spend: float = Field(default=0.0, ge=0)
    cpc: float = Field(default=0.0, ge=0)
    ctr: float = Field(default=0.0, ge=0, description="Click-through rate in percent")
    dates: List[str] = Field(default_factory=list)
    daily_spend: List[float] = Field(default_factory=list)

    @model_validator(mode="after")
    def _series_aligned(self) -> "CampaignMetrics":
        if len(self.dates) != len(self.daily_spend):
            raise ValueError("dates and daily_spend must have the same length")
        if any(v < 0 for v in self.daily_spend):
            raise ValueError("daily_spend values must be non-negative")
        return self


class Campaign(ValueObject):
    id: str = Field(default=str(WIZARD_SETTINGS["draft_placeholder_id"]), min_length=1)
    name: str = Field(default=str(WIZARD_SETTINGS["default_campaign_name"]), max_length=300)
    start_date: datetime = Field(default_factory=utc_now)
    business_name: str = ""
    website_url: str = ""
    industry: Industry = Industry.RETAIL
    company_overview: CompanyOverview = Field(default_factory=CompanyOverview)
    funnel_stage: FunnelStage = FunnelStage.AWARENESS
    channel: Channel = Channel.SOCIAL
    platform: Platform = Platform.META_ADS
    status: CampaignStatus = CampaignStatus.DRAFT
    # Status the hard cap lock replaced; restored (DRAFT) or PAUSED on re-arm
    locked_from: Optional[CampaignStatus] = None
    targeting: TargetingCriteria = Field(default_factory=TargetingCriteria)
    creative: CreativeAsset = Field(default_factory=CreativeAsset)
    budget: BudgetConfig = Field(default_factory=BudgetConfig)
    metrics: CampaignMetrics = Field(default_factory=CampaignMetrics)

    @model_validator(mode="after")
    def _platform_matches_channel(self) -> "Campaign":
        if self.platform not in PLATFORMS_BY_CHANNEL[self.channel]:
            raise ValueError(f"Platform '{self.platform.value}' is not available for channel '{self.channel.value}'")
        return self

    @property
    def is_draft(self) -> bool:
        return self.id == WIZARD_SETTINGS["draft_placeholder_id"]


def default_draft() -> Campaign:
    """Fresh wizard draft built from the initial template."""
    return Campaign()


# Template values the cascade engine resets dependent fields to.
DEFAULT_DRAFT_FIELDS = {
    "company_overview": CompanyOverview(),
    "funnel_stage": FunnelStage.AWARENESS,
    "channel": Channel.SOCIAL,
    "platform": Platform.META_ADS,
    "targeting": TargetingCriteria(),
    "creative": CreativeAsset(),
    "budget": BudgetConfig(),
}

__all__ = [
    "CompanyOverview",
    "TargetingCriteria",
    "CreativeAsset",
    "BudgetConfig",
    "CampaignMetrics",
    "Campaign",
    "default_draft",
    "DEFAULT_DRAFT_FIELDS",
]
