"""Central Enum definitions for core campaign states and choices.

These replace scattered string literals to ensure consistency across the
entity model, schemas, and business logic. Values are the labels shown to
users, so they round-trip through the API unchanged.
"""
from __future__ import annotations
import enum


class CampaignStatus(str, enum.Enum):
    DRAFT = "DRAFT"
    ACTIVE = "ACTIVE"
    PAUSED = "PAUSED"
    COMPLETED = "COMPLETED"      # derived at display time, never stored
    CAP_REACHED = "CAP_REACHED"  # hard cap safety lock engaged


class Industry(str, enum.Enum):
    RETAIL = "Retail"
    SERVICES = "Services"
    FOOD_BEVERAGE = "Food & Beverage"
    TECH = "Technology"
    OTHER = "Other"


class FunnelStage(str, enum.Enum):
    AWARENESS = "Awareness"
    INTEREST = "Interest"
    DESIRE = "Desire"
    ACTION = "Action"


class Channel(str, enum.Enum):
    SEARCH = "Paid Search (SEM)"
    SOCIAL = "Social Advertising"
    DISPLAY = "Display Advertising"
    VIDEO = "Video Advertising"


class Platform(str, enum.Enum):
    GOOGLE_ADS = "Google Ads"
    META_ADS = "Meta Ads"
    LINKEDIN_ADS = "LinkedIn Ads"
    GOOGLE_DISPLAY = "Google Display Network"
    YOUTUBE = "YouTube Ads"


class Gender(str, enum.Enum):
    ALL = "All"
    MALE = "Male"
    FEMALE = "Female"


class Device(str, enum.Enum):
    MOBILE = "Mobile"
    DESKTOP = "Desktop"
    TABLET = "Tablet"


class LayoutTemplate(str, enum.Enum):
    CLASSIC = "classic"
    BOLD = "bold"
    MINIMAL = "minimal"


# ------------------------- Insights / Anomaly Enums ------------------------- #

class InsightType(str, enum.Enum):
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"
    INFO = "info"


class AnomalySeverity(str, enum.Enum):
    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


# First entry is the default platform picked when the channel changes.
PLATFORMS_BY_CHANNEL: dict[Channel, tuple[Platform, ...]] = {
    Channel.SEARCH: (Platform.GOOGLE_ADS,),
    Channel.SOCIAL: (Platform.META_ADS, Platform.LINKEDIN_ADS),
    Channel.DISPLAY: (Platform.GOOGLE_DISPLAY,),
    Channel.VIDEO: (Platform.YOUTUBE,),
}

RECOMMENDED_CHANNELS: dict[FunnelStage, tuple[Channel, ...]] = {
    FunnelStage.AWARENESS: (Channel.VIDEO, Channel.DISPLAY, Channel.SOCIAL),
    FunnelStage.INTEREST: (Channel.SOCIAL, Channel.SEARCH),
    FunnelStage.DESIRE: (Channel.SOCIAL, Channel.SEARCH),
    FunnelStage.ACTION: (Channel.SEARCH, Channel.SOCIAL),
}

__all__ = [
    "CampaignStatus",
    "Industry",
    "FunnelStage",
    "Channel",
    "Platform",
    "Gender",
    "Device",
    "LayoutTemplate",
    "InsightType",
    "AnomalySeverity",
    "PLATFORMS_BY_CHANNEL",
    "RECOMMENDED_CHANNELS",
]
