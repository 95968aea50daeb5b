import asyncio
from datetime import datetime, timezone
import pytest

from adpilot.exceptions import ValidationError
from adpilot.models.campaign import BudgetConfig, default_draft
from adpilot.models.enums import CampaignStatus, Channel, Industry, Platform
from adpilot.services.cascade import CampaignField
from adpilot.services.registry import CampaignRegistry
from adpilot.services.wizard import STEPS, WizardController, WizardStep


def _at_step(wizard: WizardController, index: int) -> WizardController:
    while wizard.step_index < index:
        wizard.advance()
    return wizard


def test_navigation_bounds():
    wizard = WizardController()
    wizard.retreat()
    assert wizard.step_index == 1
    for expected in range(2, 6):
        assert wizard.advance() is None
        assert wizard.step_index == expected
    wizard.retreat()
    assert wizard.step_index == 4


def test_advance_on_last_step_finalizes_and_resets():
    registry = CampaignRegistry()
    wizard = WizardController(on_finalize=registry.insert)
    wizard.update(CampaignField.NAME, "Summer Sale")
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")
    _at_step(wizard, 5)

    before = datetime.now(timezone.utc)
    campaign = wizard.advance()
    assert campaign is not None
    assert campaign.id != "temp-1" and campaign.id.startswith("camp-")
    assert campaign.status == CampaignStatus.ACTIVE
    assert abs((campaign.start_date - before).total_seconds()) < 5
    assert campaign.name == "Summer Sale"
    assert campaign.business_name == "Joe's Pizza"

    assert registry.get(campaign.id) == campaign
    assert wizard.step_index == 1
    assert wizard.draft == default_draft().model_copy(update={"start_date": wizard.draft.start_date})


def test_finalized_ids_are_unique():
    registry = CampaignRegistry()
    wizard = WizardController(on_finalize=registry.insert)
    ids = set()
    for _ in range(3):
        _at_step(wizard, 5)
        ids.add(wizard.advance().id)
    assert len(ids) == 3 and len(registry) == 3


def test_update_bumps_version_only_on_change():
    wizard = WizardController()
    v0 = wizard.version
    wizard.update("business_name", "Joe's Pizza")
    assert wizard.version == v0 + 1
    wizard.update("business_name", "Joe's Pizza")
    assert wizard.version == v0 + 1


def test_budget_form_input_is_sanitized():
    wizard = WizardController()
    wizard.update(CampaignField.BUDGET, {"daily_limit": "not a number", "hard_cap": 750, "duration": 999})
    assert wizard.draft.budget == BudgetConfig(daily_limit=50, hard_cap=750, currency="USD", duration=365)


def test_steps_accept_only_their_fields():
    assert STEPS[WizardStep.BUSINESS_INFO].accepts("business_name")
    assert not STEPS[WizardStep.BUSINESS_INFO].accepts(CampaignField.BUDGET)
    assert STEPS[WizardStep.CHANNEL_SELECTION].accepts(CampaignField.PLATFORM)
    assert not STEPS[WizardStep.CREATIVE].accepts("no_such_field")


def test_channel_step_projection_lists_recommendations():
    wizard = _at_step(WizardController(), 2)
    projection = wizard.snapshot()["projection"]
    assert projection["recommended_channels"][0] == Channel.VIDEO
    assert projection["available_platforms"] == [Platform.META_ADS, Platform.LINKEDIN_ADS]


def test_step_population_fills_missing_content(generator, fake_backend):
    wizard = WizardController()
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")
    wizard.update(CampaignField.INDUSTRY, Industry.FOOD_BEVERAGE)

    async def run():
        wizard.advance()
        result = await wizard.populate_current_step(generator)
        assert result.applied
        assert wizard.draft.company_overview.business_type == "Pizzeria"
        # already populated: nothing to do
        assert await wizard.populate_current_step(generator) is None

        wizard.advance()
        await wizard.populate_current_step(generator)
        assert wizard.draft.targeting.interests == ["Pizza", "Italian Food"]

        wizard.advance()
        await wizard.populate_current_step(generator)
        assert wizard.draft.creative.headline == "Best Pizza in Town"
        assert wizard.draft.creative.cta_text == "Order Now"

    asyncio.run(run())
    assert fake_backend.keys() == ["overview", "targeting", "copy"]


def test_population_skipped_without_business_name(generator, fake_backend):
    wizard = _at_step(WizardController(), 2)
    assert asyncio.run(wizard.populate_current_step(generator)) is None
    assert fake_backend.calls == []


def test_schedule_population_does_not_block_navigation(generator, fake_backend):
    wizard = WizardController()
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")

    async def run():
        fake_backend.gate = asyncio.Event()
        wizard.advance()
        task = wizard.schedule_population(generator)
        assert task is not None
        assert wizard.pending_tasks == 1
        wizard.advance()  # navigation proceeds while the call is in flight
        assert wizard.step_index == 3
        fake_backend.gate.set()
        await task
        assert wizard.pending_tasks == 0

    asyncio.run(run())
    assert wizard.draft.company_overview.summary


def test_stale_population_result_is_discarded(generator, fake_backend):
    wizard = WizardController()
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")

    async def run():
        fake_backend.gate = asyncio.Event()
        wizard.advance()
        task = wizard.schedule_population(generator)
        await asyncio.sleep(0)
        wizard.update(CampaignField.WEBSITE_URL, "https://joes.example")  # an input of the overview
        fake_backend.gate.set()
        return await task

    result = asyncio.run(run())
    assert result.stale and not result.applied
    assert wizard.draft.company_overview.summary == ""


def test_unrelated_edit_keeps_population_fresh(generator, fake_backend):
    wizard = WizardController()
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")

    async def run():
        fake_backend.gate = asyncio.Event()
        wizard.advance()
        task = wizard.schedule_population(generator)
        await asyncio.sleep(0)
        wizard.update(CampaignField.FUNNEL_STAGE, "Action")  # overview does not read the funnel stage
        fake_backend.gate.set()
        return await task

    result = asyncio.run(run())
    assert result.applied
    assert wizard.draft.company_overview.business_type == "Pizzeria"


def test_scheduled_fill_stays_bound_to_its_step(generator, fake_backend):
    wizard = WizardController()
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")

    async def run():
        wizard.advance()
        task = wizard.schedule_population(generator)
        wizard.advance()  # user clicks Next before the task gets to run
        return await task

    result = asyncio.run(run())
    assert result.step == WizardStep.CHANNEL_SELECTION and result.applied
    assert wizard.draft.company_overview.summary
    assert wizard.draft.targeting.is_empty
    assert fake_backend.keys() == ["overview"]


def test_overlapping_step_fills_both_apply(generator, fake_backend):
    wizard = WizardController()
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")

    async def run():
        fake_backend.gate = asyncio.Event()
        wizard.advance()
        overview_task = wizard.schedule_population(generator)
        await asyncio.sleep(0)
        wizard.advance()
        targeting_task = wizard.schedule_population(generator)
        await asyncio.sleep(0)
        assert wizard.pending_tasks == 2
        fake_backend.gate.set()
        return await asyncio.gather(overview_task, targeting_task)

    overview, targeting = asyncio.run(run())
    assert overview.applied and not overview.stale
    assert targeting.applied and not targeting.stale
    assert wizard.draft.company_overview.business_type == "Pizzeria"
    assert wizard.draft.targeting.interests == ["Pizza", "Italian Food"]
    assert wizard.last_error is None


def test_reset_cancels_pending_population(generator, fake_backend):
    wizard = WizardController()
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")

    async def run():
        fake_backend.gate = asyncio.Event()
        wizard.advance()
        task = wizard.schedule_population(generator)
        await asyncio.sleep(0)
        wizard.reset()
        with pytest.raises(asyncio.CancelledError):
            await task

    asyncio.run(run())
    assert wizard.step_index == 1
    assert wizard.draft.business_name == ""


def test_collaborator_failure_recorded_and_state_unchanged(generator, fake_backend):
    wizard = WizardController()
    wizard.update(CampaignField.BUSINESS_NAME, "Joe's Pizza")
    wizard.advance()
    fake_backend.fail = True
    draft_before = wizard.draft

    result = asyncio.run(wizard.populate_current_step(generator))
    assert result.error is not None and not result.applied
    assert wizard.draft is draft_before
    assert wizard.last_error

    # retry succeeds and clears the error
    fake_backend.fail = False
    assert asyncio.run(wizard.populate_current_step(generator)).applied
    assert wizard.last_error is None


def test_refine_targeting_from_text(generator, fake_backend):
    wizard = _at_step(WizardController(), 3)
    result = asyncio.run(wizard.refine_targeting("Pizza lovers in NYC", generator))
    assert result.applied
    assert wizard.draft.targeting.locations == ["New York, NY"]
    assert 'User request: "Pizza lovers in NYC"' in fake_backend.calls[-1][1]
    with pytest.raises(ValidationError):
        asyncio.run(wizard.refine_targeting("   ", generator))


def test_generate_image_sets_background(generator):
    wizard = _at_step(WizardController(), 4)
    result = asyncio.run(wizard.generate_image(generator))
    assert result.applied
    assert wizard.draft.creative.background_image_url.startswith("data:image/png;base64,")


def test_regenerate_copy_keeps_layout_fields(generator):
    wizard = _at_step(WizardController(), 4)
    wizard.update(CampaignField.CREATIVE, wizard.draft.creative.model_copy(update={"primary_color": "#ef4444"}))
    asyncio.run(wizard.regenerate_copy(generator))
    assert wizard.draft.creative.headline == "Best Pizza in Town"
    assert wizard.draft.creative.primary_color == "#ef4444"


def test_snapshot_shape():
    snap = WizardController().snapshot()
    assert snap["step_index"] == 1 and snap["total_steps"] == 5
    assert snap["step"] == "BUSINESS_INFO"
    assert snap["editable_fields"] == ["name", "business_name", "website_url", "industry"]
    assert snap["pending_generation"] is False
