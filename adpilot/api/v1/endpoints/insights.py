"""
AI commentary on campaign metrics.

Collaborator failures propagate as CollaboratorError and are answered with
502 by the application's exception handler.
"""
from fastapi import APIRouter, Depends, Request
import time

from adpilot.api.deps import get_generator, validate_campaign_exists
from adpilot.models.campaign import Campaign
from adpilot.models.insights import InsightReport
from adpilot.models.schemas.insights import CustomInsightRequest, CustomInsightRead
from adpilot.services.generation import GenerationService
from adpilot.utils import get_logger, log_performance

router = APIRouter()
logger = get_logger(__name__)


@router.get(
    "/{campaign_id}/insights",
    response_model=InsightReport,
    summary="Plain-English insights and anomaly check"
)
async def get_campaign_insights(
    request: Request,
    campaign: Campaign = Depends(validate_campaign_exists),
    generator: GenerationService = Depends(get_generator)
) -> InsightReport:
    start_time = time.time()
    report = await generator.insights(campaign.metrics)
    duration_ms = (time.time() - start_time) * 1000
    log_performance(
        operation="campaign_insights",
        duration_ms=duration_ms,
        additional_data={"campaign_id": campaign.id, "insight_count": len(report.insights)}
    )
    if report.anomaly.detected:
        logger.warning(
            "Campaign anomaly reported",
            campaign_id=campaign.id,
            severity=report.anomaly.severity.value,
            description=report.anomaly.description,
            request_id=request.headers.get("X-Request-ID", "unknown")
        )
    return report


@router.post(
    "/{campaign_id}/insights/query",
    response_model=CustomInsightRead,
    summary="Ask a question about the campaign's data"
)
async def ask_campaign_question(
    payload: CustomInsightRequest,
    campaign: Campaign = Depends(validate_campaign_exists),
    generator: GenerationService = Depends(get_generator)
) -> CustomInsightRead:
    answer = await generator.custom_insight(campaign.metrics, payload.question)
    return CustomInsightRead(campaign_id=campaign.id, question=payload.question, answer=answer)
