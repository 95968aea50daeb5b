"""
Campaign builder wizard endpoints.

Navigation never waits on the AI collaborator: entering steps 2-4 schedules
background population, and ``POST /populate`` is the explicit (awaited)
retry for the current step.
"""
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response, status
import time

from adpilot.api.deps import get_generator, get_wizard
from adpilot.models.enums import FunnelStage
from adpilot.models.schemas.campaigns import CampaignRead
from adpilot.models.schemas.wizard import (
    AdvanceResult,
    FieldUpdateRequest,
    GenerationOutcome,
    RecommendationsRead,
    TargetingTextRequest,
    WizardStateRead,
)
from adpilot.services.cascade import platforms_for_channel, recommended_channels
from adpilot.services.generation import GenerationService
from adpilot.services.wizard import PopulationResult, WizardController
from adpilot.utils import get_logger, log_performance

router = APIRouter()
logger = get_logger(__name__)

GENERATION_FAILED = "AI generation is unavailable right now. Please try again."


def _state(wizard: WizardController) -> WizardStateRead:
    return WizardStateRead(**wizard.snapshot())


def _outcome(wizard: WizardController, result: PopulationResult, request_id: str) -> GenerationOutcome:
    if result.error is not None:
        logger.warning(
            "Wizard generation failed",
            step=result.step.name,
            error=result.error,
            request_id=request_id
        )
        raise HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=GENERATION_FAILED)
    return GenerationOutcome(applied=result.applied, stale=result.stale, wizard=_state(wizard))


@router.get(
    "/",
    response_model=WizardStateRead,
    summary="Current wizard state"
)
async def get_wizard_state(wizard: WizardController = Depends(get_wizard)) -> WizardStateRead:
    return _state(wizard)


@router.patch(
    "/draft",
    response_model=WizardStateRead,
    summary="Edit one draft field",
    description="Apply a field edit through the cascade rules. The field must belong to the current step."
)
async def update_draft(
    payload: FieldUpdateRequest,
    request: Request,
    wizard: WizardController = Depends(get_wizard)
) -> WizardStateRead:
    request_id = request.headers.get("X-Request-ID", "unknown")
    step = wizard.current_step
    if not step.accepts(payload.field):
        logger.warning(
            "Draft edit rejected: field not editable in this step",
            field=payload.field.value,
            step=step.step.name,
            request_id=request_id
        )
        raise HTTPException(
            status_code=422,
            detail=f"Field '{payload.field.value}' cannot be edited in step '{step.title}'"
        )

    version_before = wizard.version
    wizard.update(payload.field, payload.value)
    logger.info(
        "Draft field updated",
        field=payload.field.value,
        step=step.step.name,
        changed=wizard.version != version_before,
        version=wizard.version,
        request_id=request_id
    )
    return _state(wizard)


@router.post(
    "/advance",
    response_model=AdvanceResult,
    summary="Go to the next step or launch the campaign",
    description="On the last step the draft is finalized into a new ACTIVE campaign (201) and the wizard starts over."
)
async def advance_wizard(
    request: Request,
    response: Response,
    wizard: WizardController = Depends(get_wizard),
    generator: GenerationService = Depends(get_generator)
) -> AdvanceResult:
    request_id = request.headers.get("X-Request-ID", "unknown")
    campaign = wizard.advance()
    if campaign is not None:
        response.status_code = status.HTTP_201_CREATED
        logger.info(
            "Campaign launched from wizard",
            campaign_id=campaign.id,
            campaign_name=campaign.name,
            request_id=request_id
        )
        return AdvanceResult(wizard=_state(wizard), campaign=CampaignRead.from_campaign(campaign))

    wizard.schedule_population(generator)
    logger.info("Wizard advanced", step_index=wizard.step_index, request_id=request_id)
    return AdvanceResult(wizard=_state(wizard))


@router.post("/retreat", response_model=WizardStateRead, summary="Go back one step")
async def retreat_wizard(
    wizard: WizardController = Depends(get_wizard),
    generator: GenerationService = Depends(get_generator)
) -> WizardStateRead:
    wizard.retreat()
    wizard.schedule_population(generator)
    return _state(wizard)


@router.post("/reset", response_model=WizardStateRead, summary="Discard the draft and start over")
async def reset_wizard(request: Request, wizard: WizardController = Depends(get_wizard)) -> WizardStateRead:
    wizard.reset()
    logger.info("Wizard reset", request_id=request.headers.get("X-Request-ID", "unknown"))
    return _state(wizard)


@router.post(
    "/populate",
    response_model=Optional[GenerationOutcome],
    summary="Fill the current step's AI defaults now",
    description="Awaits generation for the current step. Returns null when the step needs nothing."
)
async def populate_step(
    request: Request,
    wizard: WizardController = Depends(get_wizard),
    generator: GenerationService = Depends(get_generator)
) -> Optional[GenerationOutcome]:
    start_time = time.time()
    request_id = request.headers.get("X-Request-ID", "unknown")
    result = await wizard.populate_current_step(generator)
    if result is None:
        return None
    log_performance(
        operation="wizard_populate",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"step": result.step.name, "applied": result.applied, "stale": result.stale}
    )
    return _outcome(wizard, result, request_id)


@router.post(
    "/targeting/nlt",
    response_model=GenerationOutcome,
    summary="Describe the audience in plain English"
)
async def refine_targeting(
    payload: TargetingTextRequest,
    request: Request,
    wizard: WizardController = Depends(get_wizard),
    generator: GenerationService = Depends(get_generator)
) -> GenerationOutcome:
    request_id = request.headers.get("X-Request-ID", "unknown")
    result = await wizard.refine_targeting(payload.text, generator)
    return _outcome(wizard, result, request_id)


@router.post("/creative/copy", response_model=GenerationOutcome, summary="Regenerate ad copy")
async def regenerate_copy(
    request: Request,
    wizard: WizardController = Depends(get_wizard),
    generator: GenerationService = Depends(get_generator)
) -> GenerationOutcome:
    result = await wizard.regenerate_copy(generator)
    return _outcome(wizard, result, request.headers.get("X-Request-ID", "unknown"))


@router.post("/creative/image", response_model=GenerationOutcome, summary="Generate a background image")
async def generate_image(
    request: Request,
    wizard: WizardController = Depends(get_wizard),
    generator: GenerationService = Depends(get_generator)
) -> GenerationOutcome:
    result = await wizard.generate_image(generator)
    return _outcome(wizard, result, request.headers.get("X-Request-ID", "unknown"))


@router.get(
    "/recommendations",
    response_model=RecommendationsRead,
    summary="Recommended channels for a funnel stage"
)
async def get_recommendations(
    funnel_stage: Optional[FunnelStage] = Query(None, description="Defaults to the draft's funnel stage"),
    wizard: WizardController = Depends(get_wizard)
) -> RecommendationsRead:
    stage = funnel_stage or wizard.draft.funnel_stage
    channels = recommended_channels(stage)
    return RecommendationsRead(
        funnel_stage=stage.value,
        recommended_channels=list(channels),
        platforms_by_channel={c.value: list(platforms_for_channel(c)) for c in channels},
    )
