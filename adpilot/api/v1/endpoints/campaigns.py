"""
Campaign dashboard endpoints with comprehensive logging.

Every write goes through the registry, which runs the hard cap policy;
policy and lookup errors surface through the application's exception
handlers (409 / 404).
"""
from typing import List

from fastapi import APIRouter, Depends, Request, status
import time

from adpilot.api.deps import get_registry, get_session, validate_campaign_exists
from adpilot.models.campaign import Campaign, CampaignMetrics
from adpilot.models.schemas.base import ResponseBase
from adpilot.models.schemas.campaigns import BudgetUpdate, CampaignRead, SessionRead, SpendRecord, StatusUpdate
from adpilot.services.budget_policy import sanitize_budget
from adpilot.services.dashboard import DashboardSession
from adpilot.services.registry import CampaignRegistry
from adpilot.utils import get_logger, log_performance
from adpilot.utils.time import utc_now

router = APIRouter()
logger = get_logger(__name__)


def _session_read(session: DashboardSession) -> SessionRead:
    active = session.active_campaign()
    return SessionRead(
        selected_id=session.selected_id,
        view=session.view.value,
        active_campaign_id=active.id if active is not None else None,
    )


@router.get(
    "/",
    response_model=List[CampaignRead],
    summary="List campaigns",
    description="All campaigns, newest first, with display status and days remaining"
)
async def list_campaigns(request: Request, registry: CampaignRegistry = Depends(get_registry)) -> List[CampaignRead]:
    start_time = time.time()
    now = utc_now()
    campaigns = [CampaignRead.from_campaign(c, now) for c in registry]
    log_performance(
        operation="list_campaigns",
        duration_ms=(time.time() - start_time) * 1000,
        additional_data={"result_count": len(campaigns)}
    )
    logger.debug(
        "Campaigns listed",
        result_count=len(campaigns),
        request_id=request.headers.get("X-Request-ID", "unknown")
    )
    return campaigns


@router.get("/session", response_model=SessionRead, summary="Dashboard selection and view")
async def get_dashboard_session(session: DashboardSession = Depends(get_session)) -> SessionRead:
    return _session_read(session)


@router.post(
    "/demo",
    response_model=List[CampaignRead],
    summary="Load demo campaigns",
    description="Replace all campaigns with the demo set. The hard cap lock is applied on load."
)
async def load_demo_campaigns(request: Request, session: DashboardSession = Depends(get_session)) -> List[CampaignRead]:
    campaigns = session.load_demo_data()
    logger.info(
        "Demo campaigns loaded",
        result_count=len(campaigns),
        request_id=request.headers.get("X-Request-ID", "unknown")
    )
    now = utc_now()
    return [CampaignRead.from_campaign(c, now) for c in campaigns]


@router.get("/{campaign_id}", response_model=CampaignRead, summary="Get campaign details")
async def get_campaign(campaign: Campaign = Depends(validate_campaign_exists)) -> CampaignRead:
    return CampaignRead.from_campaign(campaign)


@router.put(
    "/{campaign_id}/status",
    response_model=CampaignRead,
    summary="Change campaign status",
    description="Pause or resume a campaign. Rejected with 409 while spend is at or above the hard cap."
)
async def update_campaign_status(
    campaign_id: str,
    payload: StatusUpdate,
    request: Request,
    registry: CampaignRegistry = Depends(get_registry)
) -> CampaignRead:
    request_id = request.headers.get("X-Request-ID", "unknown")
    logger.info(
        "Campaign status update requested",
        campaign_id=campaign_id,
        target_status=payload.status.value,
        request_id=request_id
    )
    updated = registry.update_status(campaign_id, payload.status)
    return CampaignRead.from_campaign(updated)


@router.put(
    "/{campaign_id}/metrics",
    response_model=CampaignRead,
    summary="Replace campaign metrics",
    description="CPC and CTR are recomputed; reaching the hard cap locks the campaign."
)
async def update_campaign_metrics(
    campaign_id: str,
    metrics: CampaignMetrics,
    registry: CampaignRegistry = Depends(get_registry)
) -> CampaignRead:
    return CampaignRead.from_campaign(registry.update_metrics(campaign_id, metrics))


@router.post(
    "/{campaign_id}/spend",
    response_model=CampaignRead,
    status_code=status.HTTP_201_CREATED,
    summary="Record daily spend"
)
async def record_campaign_spend(
    campaign_id: str,
    payload: SpendRecord,
    request: Request,
    registry: CampaignRegistry = Depends(get_registry)
) -> CampaignRead:
    updated = registry.record_spend(campaign_id, payload.day, payload.amount)
    logger.info(
        "Daily spend recorded",
        campaign_id=campaign_id,
        day=payload.day,
        amount=payload.amount,
        total_spend=updated.metrics.spend,
        status=updated.status.value,
        request_id=request.headers.get("X-Request-ID", "unknown")
    )
    return CampaignRead.from_campaign(updated)


@router.put(
    "/{campaign_id}/budget",
    response_model=CampaignRead,
    summary="Adjust budget and hard cap",
    description="Out-of-range values are clamped; unusable values keep the current setting."
)
async def update_campaign_budget(
    campaign_id: str,
    payload: BudgetUpdate,
    registry: CampaignRegistry = Depends(get_registry)
) -> CampaignRead:
    current = registry.get(campaign_id)
    budget = sanitize_budget(payload.changes(), current.budget)
    return CampaignRead.from_campaign(registry.update_budget(campaign_id, budget))


@router.delete("/{campaign_id}", response_model=ResponseBase, summary="Delete campaign")
async def delete_campaign(
    campaign_id: str,
    request: Request,
    session: DashboardSession = Depends(get_session)
) -> ResponseBase:
    was_selected = session.selected_id == campaign_id
    removed = session.delete(campaign_id)
    logger.info(
        "Campaign deleted",
        campaign_id=removed.id,
        was_selected=was_selected,
        request_id=request.headers.get("X-Request-ID", "unknown")
    )
    return ResponseBase(
        message=f"Campaign {removed.id} deleted",
        data={"campaign_id": removed.id, "selection_cleared": was_selected, "view": session.view.value},
    )


@router.post("/{campaign_id}/select", response_model=SessionRead, summary="Open campaign details")
async def select_campaign(campaign_id: str, session: DashboardSession = Depends(get_session)) -> SessionRead:
    session.select(campaign_id)
    return _session_read(session)
