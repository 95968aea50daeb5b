"""Cascade engine for wizard drafts.

Single public function ``apply_field_update(draft, field, value)`` that:
1. Validates the field name and coerces the value to the field's type.
2. Returns the draft itself when the value is unchanged (no-op guard).
3. Sets the field and resets every field in the tiers below it to the
   initial-template defaults, so downstream steps know to regenerate.

Tier order (each tier resets all tiers after it):
* identity:  business_name, website_url, industry
* overview:  company_overview (no cascade of its own)
* strategy:  funnel_stage, channel, platform
* targeting: targeting
* creative:  creative
* budget:    budget

The function is pure: the input draft is never modified.
"""
from __future__ import annotations

import enum
from typing import Any

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from adpilot.exceptions import ValidationError
from adpilot.models.campaign import Campaign, DEFAULT_DRAFT_FIELDS
from adpilot.models.enums import Channel, FunnelStage, Platform, PLATFORMS_BY_CHANNEL, RECOMMENDED_CHANNELS


class CampaignField(str, enum.Enum):
    NAME = "name"
    BUSINESS_NAME = "business_name"
    WEBSITE_URL = "website_url"
    INDUSTRY = "industry"
    COMPANY_OVERVIEW = "company_overview"
    FUNNEL_STAGE = "funnel_stage"
    CHANNEL = "channel"
    PLATFORM = "platform"
    TARGETING = "targeting"
    CREATIVE = "creative"
    BUDGET = "budget"


IDENTITY_TIER = (CampaignField.BUSINESS_NAME, CampaignField.WEBSITE_URL, CampaignField.INDUSTRY)
STRATEGY_TIER = (CampaignField.FUNNEL_STAGE, CampaignField.CHANNEL, CampaignField.PLATFORM)

# Field -> dependent fields reset to template defaults when it changes.
CASCADE_RESETS: dict[CampaignField, tuple[str, ...]] = {
    **{f: ("company_overview", "funnel_stage", "channel", "platform", "targeting", "creative", "budget") for f in IDENTITY_TIER},
    **{f: ("targeting", "creative", "budget") for f in STRATEGY_TIER},
    CampaignField.TARGETING: ("creative", "budget"),
    CampaignField.CREATIVE: ("budget",),
}

_ADAPTERS: dict[CampaignField, TypeAdapter] = {}


def _field_name(field: CampaignField | str) -> CampaignField:
    try:
        return CampaignField(field)
    except ValueError:
        raise ValidationError(f"Field '{field}' cannot be edited in the campaign builder") from None


def coerce_field_value(field: CampaignField | str, value: Any) -> Any:
    """Validate ``value`` against the declared type of ``field``."""
    name = _field_name(field)
    adapter = _ADAPTERS.get(name)
    if adapter is None:
        adapter = TypeAdapter(Campaign.model_fields[name.value].annotation)
        _ADAPTERS[name] = adapter
    try:
        return adapter.validate_python(value)
    except PydanticValidationError as exc:
        raise ValidationError(f"Invalid value for '{name.value}': {exc.errors()[0].get('msg')}") from exc


def platforms_for_channel(channel: Channel) -> tuple[Platform, ...]:
    return PLATFORMS_BY_CHANNEL[channel]


def default_platform(channel: Channel) -> Platform:
    return PLATFORMS_BY_CHANNEL[channel][0]


def recommended_channels(stage: FunnelStage) -> tuple[Channel, ...]:
    return RECOMMENDED_CHANNELS.get(stage, ())


def apply_field_update(draft: Campaign, field: CampaignField | str, value: Any) -> Campaign:
    """Return the draft with ``field`` set to ``value`` and dependents reset.

    Raises:
        ValidationError: unknown/non-editable field, a value of the wrong
            shape, or a platform not offered on the draft's channel.
    """
    name = _field_name(field)
    coerced = coerce_field_value(name, value)

    if getattr(draft, name.value) == coerced:
        return draft

    if name == CampaignField.PLATFORM and coerced not in platforms_for_channel(draft.channel):
        raise ValidationError(
            f"Platform '{coerced.value}' is not available for channel '{draft.channel.value}'"
        )

    update: dict[str, Any] = {name.value: coerced}
    for dependent in CASCADE_RESETS.get(name, ()):
        update[dependent] = DEFAULT_DRAFT_FIELDS[dependent]

    if name == CampaignField.CHANNEL:
        update["platform"] = default_platform(coerced)

    return draft.model_copy(update=update)


__all__ = [
    "CampaignField",
    "CASCADE_RESETS",
    "IDENTITY_TIER",
    "apply_field_update",
    "coerce_field_value",
    "platforms_for_channel",
    "default_platform",
    "recommended_channels",
]
