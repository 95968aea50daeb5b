"""Wizard controller: five ordered steps over a single draft campaign.

The controller owns ``(draft, step_index, version)``. Field edits go through
the cascade engine; navigation is synchronous and never waits on the AI
collaborator. Steps 2-4 may fill in AI-derived defaults in the background:

* a population task is bound to the step it was scheduled for, not to
  whichever step is showing when it runs;
* it captures the draft fields its step reads and writes (``watches``);
* if any of those changed by the time it resolves, or the wizard was reset,
  the result is dropped. Unrelated edits, including another step's fill,
  leave it fresh.

``version`` increases on every effective draft change and is reported to
clients so they can tell whether the draft moved.

Finalization on the last step promotes the draft (fresh id, ACTIVE,
start date = now), hands it to ``on_finalize`` and starts over.
"""
from __future__ import annotations

import asyncio
import enum
import uuid
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, ClassVar, Mapping, Optional, Sequence

from adpilot.config import WIZARD_SETTINGS
from adpilot.exceptions import CollaboratorError, ValidationError
from adpilot.models.campaign import Campaign, default_draft
from adpilot.models.enums import CampaignStatus
from adpilot.services.budget_policy import sanitize_budget
from adpilot.services.cascade import (
    IDENTITY_TIER,
    CampaignField,
    apply_field_update,
    platforms_for_channel,
    recommended_channels,
)
from adpilot.services.generation import GenerationService
from adpilot.utils import get_logger, log_business_event
from adpilot.utils.time import utc_now

logger = get_logger(__name__)

TOTAL_STEPS = int(WIZARD_SETTINGS["total_steps"])

FieldUpdate = tuple[CampaignField, Any]


class WizardStep(int, enum.Enum):
    BUSINESS_INFO = 1
    CHANNEL_SELECTION = 2
    TARGETING = 3
    CREATIVE = 4
    BUDGET = 5


# ---------------------------------- Steps ----------------------------------- #

class StepDefinition:
    """Common interface: read a projection of the draft, emit field updates."""

    step: ClassVar[WizardStep]
    title: ClassVar[str]
    fields: ClassVar[tuple[CampaignField, ...]] = ()
    # Draft fields the AI fill reads or writes
    watches: ClassVar[tuple[CampaignField, ...]] = ()

    def accepts(self, field: CampaignField | str) -> bool:
        try:
            return CampaignField(field) in self.fields
        except ValueError:
            return False

    def project(self, draft: Campaign) -> dict[str, Any]:
        return {f.value: getattr(draft, f.value) for f in self.fields}

    def needs_population(self, draft: Campaign) -> bool:
        return False

    async def populate(self, draft: Campaign, generator: GenerationService) -> list[FieldUpdate]:
        return []


class BusinessInfoStep(StepDefinition):
    step = WizardStep.BUSINESS_INFO
    title = "Business Info"
    fields = (CampaignField.NAME, CampaignField.BUSINESS_NAME, CampaignField.WEBSITE_URL, CampaignField.INDUSTRY)


class ChannelSelectionStep(StepDefinition):
    step = WizardStep.CHANNEL_SELECTION
    title = "Channel & Platform"
    fields = (CampaignField.FUNNEL_STAGE, CampaignField.CHANNEL, CampaignField.PLATFORM)
    watches = (*IDENTITY_TIER, CampaignField.COMPANY_OVERVIEW)

    def project(self, draft: Campaign) -> dict[str, Any]:
        data = super().project(draft)
        data.update(
            company_overview=draft.company_overview,
            business_name=draft.business_name,
            recommended_channels=list(recommended_channels(draft.funnel_stage)),
            available_platforms=list(platforms_for_channel(draft.channel)),
        )
        return data

    def needs_population(self, draft: Campaign) -> bool:
        return bool(draft.business_name) and not draft.company_overview.summary

    async def populate(self, draft: Campaign, generator: GenerationService) -> list[FieldUpdate]:
        overview = await generator.company_overview(draft.business_name, draft.website_url, draft.industry)
        return [(CampaignField.COMPANY_OVERVIEW, overview)]


class TargetingStep(StepDefinition):
    step = WizardStep.TARGETING
    title = "Audience"
    fields = (CampaignField.TARGETING,)
    watches = (*IDENTITY_TIER, CampaignField.PLATFORM, CampaignField.TARGETING)

    def project(self, draft: Campaign) -> dict[str, Any]:
        data = super().project(draft)
        data.update(platform=draft.platform, business_name=draft.business_name)
        return data

    def needs_population(self, draft: Campaign) -> bool:
        return bool(draft.business_name) and draft.targeting.is_empty

    async def populate(self, draft: Campaign, generator: GenerationService) -> list[FieldUpdate]:
        targeting = await generator.targeting_from_business_info(
            draft.business_name, draft.industry, draft.website_url, draft.platform
        )
        return [(CampaignField.TARGETING, targeting)]


class CreativeStep(StepDefinition):
    step = WizardStep.CREATIVE
    title = "Creative"
    fields = (CampaignField.CREATIVE,)
    watches = (*IDENTITY_TIER, CampaignField.PLATFORM, CampaignField.TARGETING, CampaignField.CREATIVE)

    def project(self, draft: Campaign) -> dict[str, Any]:
        data = super().project(draft)
        data.update(platform=draft.platform, channel=draft.channel, targeting=draft.targeting)
        return data

    def needs_population(self, draft: Campaign) -> bool:
        return bool(draft.business_name) and not draft.creative.headline

    async def populate(self, draft: Campaign, generator: GenerationService) -> list[FieldUpdate]:
        copy = await generator.creative_copy(draft.business_name, draft.industry, draft.targeting, draft.platform)
        creative = draft.creative.model_copy(update=copy.model_dump())
        return [(CampaignField.CREATIVE, creative)]


class BudgetStep(StepDefinition):
    step = WizardStep.BUDGET
    title = "Budget & Safety Lock"
    fields = (CampaignField.BUDGET,)

    def project(self, draft: Campaign) -> dict[str, Any]:
        data = super().project(draft)
        data["projected_spend"] = draft.budget.projected_spend
        return data


STEPS: dict[WizardStep, StepDefinition] = {
    s.step: s for s in (BusinessInfoStep(), ChannelSelectionStep(), TargetingStep(), CreativeStep(), BudgetStep())
}


# -------------------------------- Controller -------------------------------- #

@dataclass
class PopulationResult:
    step: WizardStep
    applied: bool
    stale: bool = False
    error: Optional[str] = None


class WizardController:
    def __init__(self, on_finalize: Optional[Callable[[Campaign], Any]] = None) -> None:
        self.on_finalize = on_finalize
        self.draft: Campaign = default_draft()
        self.step_index: int = 1
        self.version: int = 0
        self.last_error: Optional[str] = None
        self._epoch: int = 0
        self._tasks: set[asyncio.Task] = set()

    # ------------------------------- navigation ------------------------------- #
    @property
    def current_step(self) -> StepDefinition:
        return STEPS[WizardStep(self.step_index)]

    @property
    def pending_tasks(self) -> int:
        return sum(1 for t in self._tasks if not t.done())

    def _set_draft(self, draft: Campaign) -> bool:
        if draft is self.draft:
            return False
        self.draft = draft
        self.version += 1
        return True

    def update(self, field: CampaignField | str, value: Any) -> Campaign:
        """Apply one field edit through the cascade engine."""
        if field == CampaignField.BUDGET and isinstance(value, Mapping):
            value = sanitize_budget(value, self.draft.budget)
        self._set_draft(apply_field_update(self.draft, field, value))
        return self.draft

    def apply_updates(self, updates: Sequence[FieldUpdate]) -> None:
        for field, value in updates:
            self.update(field, value)

    def advance(self) -> Optional[Campaign]:
        """Move forward; on the last step finalize and return the new campaign."""
        if self.step_index < TOTAL_STEPS:
            self.step_index += 1
            self.last_error = None
            return None
        return self._finalize()

    def retreat(self) -> None:
        if self.step_index > 1:
            self.step_index -= 1
            self.last_error = None

    def reset(self) -> None:
        for task in self._tasks:
            task.cancel()
        self._tasks.clear()
        self.draft = default_draft()
        self.step_index = 1
        self.version += 1
        self._epoch += 1
        self.last_error = None

    def _finalize(self) -> Campaign:
        campaign = self.draft.model_copy(update={
            "id": f"{WIZARD_SETTINGS['campaign_id_prefix']}{uuid.uuid4().hex[:12]}",
            "status": CampaignStatus.ACTIVE,
            "start_date": utc_now(),
        })
        if self.on_finalize is not None:
            stored = self.on_finalize(campaign)
            if isinstance(stored, Campaign):
                campaign = stored
        log_business_event(
            event_type="campaign_launched",
            details={
                "name": campaign.name,
                "channel": campaign.channel.value,
                "platform": campaign.platform.value,
                "daily_limit": campaign.budget.daily_limit,
                "hard_cap": campaign.budget.hard_cap,
            },
            campaign_id=campaign.id,
        )
        self.reset()
        return campaign

    # ---------------------------- AI population ---------------------------- #
    def _inputs(self, watches: Sequence[CampaignField]) -> tuple[Any, ...]:
        return (self._epoch, *(getattr(self.draft, f.value) for f in watches))

    async def _guarded(
        self,
        step: WizardStep,
        watches: Sequence[CampaignField],
        produce: Callable[[Campaign], Awaitable[Sequence[FieldUpdate]]],
    ) -> PopulationResult:
        """Run a collaborator call against the current draft.

        The result is applied only if none of the ``watches`` fields changed
        (and no reset happened) while the call was in flight.
        """
        started = self._inputs(watches)
        try:
            updates = await produce(self.draft)
        except CollaboratorError as e:
            if self._inputs(watches) == started:
                self.last_error = str(e)
            logger.warning("Wizard generation failed", step=step.name, error=str(e))
            return PopulationResult(step=step, applied=False, error=str(e))

        if self._inputs(watches) != started:
            logger.info(
                "Discarding stale generation result",
                step=step.name,
                watched=[f.value for f in watches],
                current_version=self.version,
            )
            return PopulationResult(step=step, applied=False, stale=True)

        self.last_error = None
        self.apply_updates(updates)
        return PopulationResult(step=step, applied=True)

    async def populate_step(self, step: StepDefinition, generator: GenerationService) -> PopulationResult | None:
        if not step.needs_population(self.draft):
            return None
        return await self._guarded(step.step, step.watches, lambda d: step.populate(d, generator))

    async def populate_current_step(self, generator: GenerationService) -> PopulationResult | None:
        return await self.populate_step(self.current_step, generator)

    def schedule_population(self, generator: GenerationService) -> asyncio.Task | None:
        """Start a background fill of the current step's AI defaults, if needed.

        The task stays bound to this step even if the user navigates on before
        it runs. Must be called from a running event loop. Returns immediately.
        """
        step = self.current_step
        if not step.needs_population(self.draft):
            return None
        task = asyncio.get_running_loop().create_task(self.populate_step(step, generator))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        logger.debug("Scheduled step population", step=step.step.name, version=self.version)
        return task

    async def refine_targeting(self, text: str, generator: GenerationService) -> PopulationResult:
        """Natural-language targeting: replace the audience from free text."""
        if not text.strip():
            raise ValidationError("Describe the audience to target")

        async def produce(d: Campaign) -> list[FieldUpdate]:
            targeting = await generator.targeting_from_text(d.business_name, d.industry, text, d.platform)
            return [(CampaignField.TARGETING, targeting)]

        return await self._guarded(WizardStep.TARGETING, TargetingStep.watches, produce)

    async def regenerate_copy(self, generator: GenerationService) -> PopulationResult:
        step = STEPS[WizardStep.CREATIVE]
        return await self._guarded(step.step, step.watches, lambda d: step.populate(d, generator))

    async def generate_image(self, generator: GenerationService) -> PopulationResult:
        async def produce(d: Campaign) -> list[FieldUpdate]:
            image = await generator.ad_image(d.business_name, d.industry, d.platform, d.funnel_stage, d.targeting)
            return [(CampaignField.CREATIVE, d.creative.model_copy(update={"background_image_url": image}))]

        watches = (*CreativeStep.watches, CampaignField.FUNNEL_STAGE)
        return await self._guarded(WizardStep.CREATIVE, watches, produce)

    # -------------------------------- views --------------------------------- #
    def snapshot(self) -> dict[str, Any]:
        step = self.current_step
        return {
            "step_index": self.step_index,
            "total_steps": TOTAL_STEPS,
            "step": step.step.name,
            "title": step.title,
            "version": self.version,
            "draft": self.draft,
            "projection": step.project(self.draft),
            "editable_fields": [f.value for f in step.fields],
            "pending_generation": self.pending_tasks > 0,
            "last_error": self.last_error,
        }


__all__ = [
    "WizardStep",
    "StepDefinition",
    "BusinessInfoStep",
    "ChannelSelectionStep",
    "TargetingStep",
    "CreativeStep",
    "BudgetStep",
    "STEPS",
    "PopulationResult",
    "WizardController",
    "TOTAL_STEPS",
]
