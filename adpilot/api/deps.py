"""
Dependencies giving endpoints access to the process-wide campaign state.

One ``AppState`` lives on ``app.state.adpilot``: the wizard controller, the
campaign registry it finalizes into, the dashboard session and the
generation service. Endpoints never build these themselves.
"""
from dataclasses import dataclass
from typing import Optional

from fastapi import Depends, HTTPException, Request, status

from adpilot.integrations import GeminiClient, GenerationBackend
from adpilot.models.campaign import Campaign
from adpilot.services.dashboard import DashboardSession
from adpilot.services.generation import GenerationService
from adpilot.services.registry import CampaignRegistry
from adpilot.services.wizard import WizardController
from adpilot.utils import get_logger

logger = get_logger(__name__)


@dataclass
class AppState:
    registry: CampaignRegistry
    session: DashboardSession
    wizard: WizardController
    generator: GenerationService


def build_app_state(backend: Optional[GenerationBackend] = None, load_demo: bool = False) -> AppState:
    """Wire a fresh registry, session, wizard and generation service together."""
    registry = CampaignRegistry()
    session = DashboardSession(registry)
    wizard = WizardController(on_finalize=registry.insert)
    generator = GenerationService(backend or GeminiClient())
    if load_demo:
        session.load_demo_data()
    logger.info("Application state initialised", campaigns=len(registry), demo_data=load_demo)
    return AppState(registry=registry, session=session, wizard=wizard, generator=generator)


def get_app_state(request: Request) -> AppState:
    state = getattr(request.app.state, "adpilot", None)
    if state is None:
        logger.error("Application state requested before startup")
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail="Service is starting up"
        )
    return state


def get_registry(state: AppState = Depends(get_app_state)) -> CampaignRegistry:
    return state.registry


def get_session(state: AppState = Depends(get_app_state)) -> DashboardSession:
    return state.session


def get_wizard(state: AppState = Depends(get_app_state)) -> WizardController:
    return state.wizard


def get_generator(state: AppState = Depends(get_app_state)) -> GenerationService:
    return state.generator


def validate_campaign_exists(campaign_id: str, registry: CampaignRegistry = Depends(get_registry)) -> Campaign:
    """
    Resolve a campaign id from the path.

    Raises:
        HTTPException: 404 if the campaign is not in the registry
    """
    campaign = registry.find_by_id(campaign_id)
    if campaign is None:
        logger.warning("Campaign validation failed: not found", campaign_id=campaign_id)
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail=f"Campaign with ID {campaign_id} not found"
        )
    return campaign
