"""Generation collaborator: prompts, response schemas & defensive normalisation.

Every public coroutine returns fully-populated domain objects or raises
CollaboratorError. Missing or mistyped fields in a model answer are replaced
with documented fallbacks; an answer that is not even the right shape (or a
transport failure) is a CollaboratorError, never a partial object.
"""
from __future__ import annotations

import json
import uuid
from typing import Any, Awaitable, Callable, TypeVar

from adpilot.config import CREATIVE_DEFAULTS, CREATIVE_LIMITS, TARGETING_DEFAULTS
from adpilot.exceptions import CollaboratorError
from adpilot.integrations.base import GenerationBackend
from adpilot.models.campaign import CampaignMetrics, CompanyOverview, TargetingCriteria
from adpilot.models.enums import AnomalySeverity, Device, FunnelStage, Gender, Industry, InsightType, Platform
from adpilot.models.insights import Anomaly, CopySuggestion, Insight, InsightReport
from adpilot.utils import get_logger

logger = get_logger(__name__)

T = TypeVar("T")

FALLBACK_SERVICES = ["Service 1", "Service 2"]
NO_ANSWER = "Could not generate an answer."

# ------------------------------ Response schemas ----------------------------- #
OVERVIEW_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "summary": {"type": "STRING"},
        "businessType": {"type": "STRING"},
        "services": {"type": "ARRAY", "items": {"type": "STRING"}},
        "location": {"type": "STRING"},
    },
}

TARGETING_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "locations": {"type": "ARRAY", "items": {"type": "STRING"}},
        "interests": {"type": "ARRAY", "items": {"type": "STRING"}},
        "ageRange": {"type": "STRING"},
        "gender": {"type": "STRING", "enum": [g.value for g in Gender]},
        "devices": {"type": "ARRAY", "items": {"type": "STRING", "enum": [d.value for d in Device]}},
        "keywords": {"type": "ARRAY", "items": {"type": "STRING"}},
    },
}

COPY_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "headline": {"type": "STRING"},
        "headlinePart2": {"type": "STRING"},
        "description": {"type": "STRING"},
        "ctaText": {"type": "STRING"},
    },
}

INSIGHTS_SCHEMA = {
    "type": "OBJECT",
    "properties": {
        "insights": {
            "type": "ARRAY",
            "items": {
                "type": "OBJECT",
                "properties": {
                    "id": {"type": "STRING"},
                    "type": {"type": "STRING", "enum": [t.value for t in InsightType]},
                    "message": {"type": "STRING"},
                },
            },
        },
        "anomaly": {
            "type": "OBJECT",
            "properties": {
                "detected": {"type": "BOOLEAN"},
                "description": {"type": "STRING"},
                "severity": {"type": "STRING", "enum": [s.value for s in AnomalySeverity]},
            },
        },
    },
}


# ------------------------------- Normalisation -------------------------------- #

def _str(value: Any, fallback: str = "") -> str:
    if isinstance(value, str) and value.strip():
        return value.strip()
    return fallback


def _str_list(value: Any, fallback: list[str] | None = None) -> list[str]:
    if not isinstance(value, list):
        return list(fallback or [])
    return [item.strip() for item in value if isinstance(item, str) and item.strip()]


def _require_object(raw: Any, operation: str) -> dict[str, Any]:
    if not isinstance(raw, dict):
        raise CollaboratorError(f"Expected a JSON object, got {type(raw).__name__}", operation=operation)
    return raw


def _enum_or(enum_cls, value: Any, fallback):
    try:
        return enum_cls(value)
    except ValueError:
        return fallback


def normalize_company_overview(raw: Any, business_name: str, industry: Industry | str) -> CompanyOverview:
    data = _require_object(raw, "company_overview")
    industry_label = industry.value if isinstance(industry, Industry) else str(industry)
    return CompanyOverview(
        summary=_str(data.get("summary"), f"A {industry_label} business operating as {business_name}."),
        business_type=_str(data.get("businessType"), industry_label),
        services=_str_list(data.get("services"), FALLBACK_SERVICES),
        location=_str(data.get("location"), str(TARGETING_DEFAULTS["location"])),
    )


def normalize_targeting(raw: Any) -> TargetingCriteria:
    data = _require_object(raw, "targeting")
    devices_raw = data.get("devices")
    if isinstance(devices_raw, list):
        devices = []
        for item in devices_raw:
            device = _enum_or(Device, item, None)
            if device is not None and device not in devices:
                devices.append(device)
    else:
        devices = [Device(d) for d in TARGETING_DEFAULTS["devices"]]
    return TargetingCriteria(
        locations=_str_list(data.get("locations")),
        interests=_str_list(data.get("interests")),
        age_range=_str(data.get("ageRange"), str(TARGETING_DEFAULTS["age_range"])),
        gender=_enum_or(Gender, data.get("gender"), Gender.ALL),
        devices=devices,
        keywords=_str_list(data.get("keywords")),
    )


def normalize_copy(raw: Any) -> CopySuggestion:
    data = _require_object(raw, "creative_copy")
    return CopySuggestion(
        headline=_str(data.get("headline"))[: CREATIVE_LIMITS["headline_max_chars"]],
        headline_part2=_str(data.get("headlinePart2"))[: CREATIVE_LIMITS["headline_part2_max_chars"]],
        description=_str(data.get("description"))[: CREATIVE_LIMITS["description_max_chars"]],
        cta_text=_str(data.get("ctaText"), CREATIVE_DEFAULTS["cta_text"])[:30],
    )


def normalize_insights(raw: Any) -> InsightReport:
    data = _require_object(raw, "insights")
    insights: list[Insight] = []
    items = data.get("insights")
    for item in items if isinstance(items, list) else []:
        if not isinstance(item, dict):
            continue
        message = _str(item.get("message"))
        if not message:
            continue
        insights.append(Insight(
            id=_str(item.get("id"), uuid.uuid4().hex[:8]),
            type=_enum_or(InsightType, item.get("type"), InsightType.INFO),
            message=message,
        ))
    anomaly_raw = data.get("anomaly")
    anomaly = Anomaly()
    if isinstance(anomaly_raw, dict):
        anomaly = Anomaly(
            detected=anomaly_raw.get("detected") is True,
            description=_str(anomaly_raw.get("description")),
            severity=_enum_or(AnomalySeverity, anomaly_raw.get("severity"), AnomalySeverity.LOW),
        )
    return InsightReport(insights=insights, anomaly=anomaly)


# --------------------------------- Service ----------------------------------- #

class GenerationService:
    """Typed facade over a GenerationBackend."""

    def __init__(self, backend: GenerationBackend):
        self.backend = backend

    async def _call(self, operation: str, fn: Callable[[], Awaitable[T]]) -> T:
        try:
            return await fn()
        except CollaboratorError as e:
            if e.operation is None:
                e.operation = operation
            logger.warning("Generation call failed", operation=operation, error=str(e))
            raise
        except Exception as e:  # backend bugs surface as the same typed failure
            logger.error("Generation call crashed", operation=operation, error=str(e), exc_info=True)
            raise CollaboratorError(f"{operation} failed: {e}", operation=operation) from e

    async def company_overview(self, business_name: str, website_url: str, industry: Industry) -> CompanyOverview:
        prompt = (
            f'Analyze the business name "{business_name}", industry "{industry.value}", '
            f'and website URL "{website_url}".\n'
            "1. Write a brief, professional summary of what the business likely does (max 2 sentences).\n"
            "2. Determine the specific business type (e.g. 'Italian Restaurant', 'SaaS Platform').\n"
            "3. List 3-5 key services or products they likely offer.\n"
            "4. Infer the likely location or service area (use 'United States' or 'Global' if unknown).\n"
            "Return ONLY JSON."
        )
        raw = await self._call("company_overview", lambda: self.backend.generate_json(prompt, OVERVIEW_SCHEMA))
        return normalize_company_overview(raw, business_name, industry)

    async def targeting_from_business_info(
        self, business_name: str, industry: Industry, website_url: str, platform: Platform
    ) -> TargetingCriteria:
        prompt = (
            f"Act as an expert ad targeting specialist for {platform.value}.\n"
            f'Context: business "{business_name}" in industry "{industry.value}" with website URL "{website_url}".\n'
            f"Infer targeting criteria (demographics, interests, devices) suited to {platform.value}. "
            "On LinkedIn focus on job titles or industries; on Meta focus on interests.\n"
            'If the location is not obvious from the name, default to "United States".\n'
            "Return ONLY JSON."
        )
        raw = await self._call("targeting_from_business_info", lambda: self.backend.generate_json(prompt, TARGETING_SCHEMA))
        return normalize_targeting(raw)

    async def targeting_from_text(
        self, business_name: str, industry: Industry, free_text: str, platform: Platform
    ) -> TargetingCriteria:
        prompt = (
            f"Act as an expert natural-language targeting engine for {platform.value}.\n"
            f'Context: business "{business_name}" in industry "{industry.value}".\n'
            f'User request: "{free_text}"\n'
            f"Extract specific targeting criteria relevant to {platform.value}.\n"
            "Return ONLY JSON."
        )
        raw = await self._call("targeting_from_text", lambda: self.backend.generate_json(prompt, TARGETING_SCHEMA))
        return normalize_targeting(raw)

    async def creative_copy(
        self, business_name: str, industry: Industry, targeting: TargetingCriteria, platform: Platform
    ) -> CopySuggestion:
        second_headline = ""
        if platform == Platform.GOOGLE_ADS:
            second_headline = (
                f"Also provide a second headline (max {CREATIVE_LIMITS['headline_part2_max_chars']} chars).\n"
            )
        prompt = (
            f'Write ad copy for "{business_name}" ({industry.value}) running on {platform.value}.\n'
            f"Target audience: {', '.join(targeting.interests)}; {', '.join(targeting.locations)}.\n"
            f"Generate a catchy headline (max {CREATIVE_LIMITS['headline_max_chars']} chars), a persuasive "
            f"description (max {CREATIVE_LIMITS['description_max_chars']} chars) and a call to action.\n"
            f"{second_headline}"
            "Match the tone to the platform (professional for LinkedIn, casual for Meta)."
        )
        raw = await self._call("creative_copy", lambda: self.backend.generate_json(prompt, COPY_SCHEMA))
        return normalize_copy(raw)

    async def ad_image(
        self,
        business_name: str,
        industry: Industry,
        platform: Platform,
        funnel_stage: FunnelStage,
        targeting: TargetingCriteria,
    ) -> str:
        prompt = (
            f'Generate a high-quality, professional advertising image for a business named "{business_name}" '
            f"in the {industry.value} industry.\n"
            f"The ad will run on {platform.value}; the campaign goal is {funnel_stage.value}.\n"
            f"Target audience interests: {', '.join(targeting.interests[:3])}.\n"
            "Style: photorealistic and engaging. Do not overlay any text on the image."
        )
        image = await self._call("ad_image", lambda: self.backend.generate_image(prompt))
        if not isinstance(image, str) or not image.startswith("data:image/"):
            raise CollaboratorError("Image response was not a data URI", operation="ad_image")
        return image

    async def insights(self, metrics: CampaignMetrics) -> InsightReport:
        prompt = (
            "Analyze these ad campaign metrics:\n"
            f"Impressions: {metrics.impressions}\n"
            f"Clicks: {metrics.clicks}\n"
            f"CTR: {metrics.ctr}%\n"
            f"Spend: ${metrics.spend}\n"
            f"Conversions: {metrics.conversions}\n\n"
            "1. Give 2-3 plain-English insights that translate the data into business value. Avoid jargon.\n"
            "2. Say whether there is a statistical anomaly (positive or negative) that needs attention now."
        )
        raw = await self._call("insights", lambda: self.backend.generate_json(prompt, INSIGHTS_SCHEMA))
        return normalize_insights(raw)

    async def custom_insight(self, metrics: CampaignMetrics, question: str) -> str:
        prompt = (
            "You are an expert advertising analyst.\n"
            f"Campaign metrics:\n{json.dumps(metrics.model_dump(mode='json'), indent=2)}\n\n"
            f'User question: "{question}"\n\n'
            "Answer clearly in at most 2-3 sentences, based strictly on the data, "
            "in plain English suitable for a small business owner."
        )
        answer = await self._call("custom_insight", lambda: self.backend.generate_text(prompt))
        return _str(answer, NO_ANSWER)


__all__ = [
    "GenerationService",
    "normalize_company_overview",
    "normalize_targeting",
    "normalize_copy",
    "normalize_insights",
    "NO_ANSWER",
]
