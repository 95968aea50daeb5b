import pytest

from adpilot.exceptions import ValidationError
from adpilot.models.campaign import BudgetConfig, CompanyOverview, CreativeAsset, TargetingCriteria, default_draft
from adpilot.models.enums import Channel, Device, FunnelStage, Gender, Industry, Platform, PLATFORMS_BY_CHANNEL
from adpilot.services.cascade import (
    CampaignField,
    apply_field_update,
    coerce_field_value,
    default_platform,
    recommended_channels,
)


def _populated_draft():
    """Draft with every downstream tier filled in, as if the user reached step 5."""
    d = default_draft()
    return d.model_copy(update={
        "business_name": "Joe's Pizza",
        "industry": Industry.FOOD_BEVERAGE,
        "company_overview": CompanyOverview(summary="Pizza place", business_type="Pizzeria"),
        "funnel_stage": FunnelStage.ACTION,
        "channel": Channel.SOCIAL,
        "platform": Platform.LINKEDIN_ADS,
        "targeting": TargetingCriteria(locations=["NYC"], interests=["Pizza"], gender=Gender.FEMALE),
        "creative": CreativeAsset(headline="Best Pizza", description="Hot and fresh", cta_text="Order Now"),
        "budget": BudgetConfig(daily_limit=120, hard_cap=900, currency="USD", duration=14),
    })


def test_channel_change_from_social_to_search_resets_downstream():
    draft = _populated_draft()
    updated = apply_field_update(draft, CampaignField.CHANNEL, Channel.SEARCH)
    assert updated.platform == Platform.GOOGLE_ADS
    t = updated.targeting
    assert t.locations == [] and t.interests == [] and t.keywords == []
    assert t.age_range == "18-65+"
    assert t.gender == Gender.ALL
    assert t.devices == [Device.MOBILE, Device.DESKTOP]
    assert updated.creative == CreativeAsset()
    assert updated.budget == BudgetConfig()
    # tier containment: identity and overview untouched
    assert updated.business_name == "Joe's Pizza"
    assert updated.industry == Industry.FOOD_BEVERAGE
    assert updated.company_overview.summary == "Pizza place"
    assert updated.funnel_stage == FunnelStage.ACTION


def test_noop_guard_returns_same_object():
    draft = _populated_draft()
    assert apply_field_update(draft, "business_name", "Joe's Pizza") is draft
    assert apply_field_update(draft, CampaignField.TARGETING, draft.targeting.model_dump()) is draft


@pytest.mark.parametrize("field,value", [
    (CampaignField.BUSINESS_NAME, "Tony's Tacos"),
    (CampaignField.INDUSTRY, Industry.TECH),
    (CampaignField.FUNNEL_STAGE, FunnelStage.INTEREST),
    (CampaignField.CHANNEL, Channel.VIDEO),
    (CampaignField.PLATFORM, Platform.META_ADS),
    (CampaignField.TARGETING, {"locations": ["Boston"], "interests": ["Tacos"]}),
    (CampaignField.BUDGET, {"daily_limit": 75, "hard_cap": 1000, "currency": "USD", "duration": 10}),
])
def test_update_is_idempotent(field, value):
    draft = _populated_draft()
    once = apply_field_update(draft, field, value)
    twice = apply_field_update(once, field, value)
    assert twice == once
    assert twice is once


def test_identity_change_resets_everything_below():
    draft = _populated_draft()
    updated = apply_field_update(draft, CampaignField.WEBSITE_URL, "https://joes.example")
    assert updated.website_url == "https://joes.example"
    assert updated.company_overview == CompanyOverview()
    assert updated.funnel_stage == FunnelStage.AWARENESS
    assert updated.channel == Channel.SOCIAL
    assert updated.platform == Platform.META_ADS
    assert updated.targeting.is_empty
    assert updated.creative == CreativeAsset()
    assert updated.budget == BudgetConfig()
    assert updated.business_name == "Joe's Pizza"


def test_targeting_change_resets_creative_and_budget_only():
    draft = _populated_draft()
    updated = apply_field_update(draft, CampaignField.TARGETING, TargetingCriteria(interests=["Slices"]))
    assert updated.targeting.interests == ["Slices"]
    assert updated.platform == Platform.LINKEDIN_ADS
    assert updated.creative == CreativeAsset()
    assert updated.budget == BudgetConfig()


def test_creative_change_resets_budget_and_budget_has_no_cascade():
    draft = _populated_draft()
    updated = apply_field_update(draft, CampaignField.CREATIVE, draft.creative.model_copy(update={"headline": "New"}))
    assert updated.creative.headline == "New"
    assert updated.budget == BudgetConfig()
    assert updated.targeting == draft.targeting

    budget = BudgetConfig(daily_limit=80, hard_cap=600, currency="EUR", duration=7)
    final = apply_field_update(updated, CampaignField.BUDGET, budget)
    assert final.budget == budget
    assert final.creative == updated.creative


def test_input_draft_is_never_modified():
    draft = _populated_draft()
    snapshot = draft.model_dump()
    apply_field_update(draft, CampaignField.CHANNEL, Channel.DISPLAY)
    assert draft.model_dump() == snapshot


@pytest.mark.parametrize("channel", list(Channel))
def test_platform_always_valid_after_channel_change(channel):
    draft = _populated_draft()
    updated = apply_field_update(draft, CampaignField.CHANNEL, channel)
    assert updated.platform in PLATFORMS_BY_CHANNEL[updated.channel]
    assert default_platform(channel) == PLATFORMS_BY_CHANNEL[channel][0]


def test_platform_outside_channel_rejected():
    draft = default_draft()  # Social
    with pytest.raises(ValidationError):
        apply_field_update(draft, CampaignField.PLATFORM, Platform.YOUTUBE)
    linkedin = apply_field_update(draft, CampaignField.PLATFORM, Platform.LINKEDIN_ADS)
    assert linkedin.platform == Platform.LINKEDIN_ADS


def test_unknown_field_and_bad_value_raise_validation_error():
    draft = default_draft()
    with pytest.raises(ValidationError):
        apply_field_update(draft, "status", "ACTIVE")
    with pytest.raises(ValidationError):
        apply_field_update(draft, CampaignField.INDUSTRY, "Aerospace")
    with pytest.raises(ValidationError):
        coerce_field_value(CampaignField.BUDGET, {"daily_limit": "lots"})


def test_string_values_are_coerced_to_enums():
    draft = apply_field_update(default_draft(), "channel", "Paid Search (SEM)")
    assert draft.channel is Channel.SEARCH
    assert draft.platform is Platform.GOOGLE_ADS


def test_recommended_channels_by_stage():
    assert recommended_channels(FunnelStage.AWARENESS)[0] == Channel.VIDEO
    assert recommended_channels(FunnelStage.ACTION) == (Channel.SEARCH, Channel.SOCIAL)
