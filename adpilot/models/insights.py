"""
Dashboard commentary returned by the generation collaborator.
"""
from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from .enums import AnomalySeverity, InsightType


class Insight(BaseModel):
    """One plain-English observation about a campaign's metrics."""
    id: str
    type: InsightType = InsightType.INFO
    message: str
    metric: Optional[str] = None
    change: Optional[float] = None

    model_config = ConfigDict(frozen=True)


class Anomaly(BaseModel):
    detected: bool = False
    description: str = ""
    severity: AnomalySeverity = AnomalySeverity.LOW

    model_config = ConfigDict(frozen=True)


class InsightReport(BaseModel):
    insights: List[Insight] = Field(default_factory=list)
    anomaly: Anomaly = Field(default_factory=Anomaly)

    model_config = ConfigDict(frozen=True)


class CopySuggestion(BaseModel):
    """Ad copy proposed for a creative; merged over the current creative."""
    headline: str = ""
    headline_part2: str = ""
    description: str = ""
    cta_text: str = "Shop Now"

    model_config = ConfigDict(frozen=True)


__all__ = ["Insight", "Anomaly", "InsightReport", "CopySuggestion"]
