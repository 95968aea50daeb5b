"""Demo campaigns used to seed an empty dashboard."""
from __future__ import annotations

from datetime import datetime, timezone

from adpilot.models.campaign import BudgetConfig, Campaign, CampaignMetrics, CompanyOverview, CreativeAsset
from adpilot.models.enums import CampaignStatus, Channel, FunnelStage, Industry, LayoutTemplate, Platform

_WEEK = ["Mon", "Tue", "Wed", "Thu", "Fri", "Sat", "Sun"]
_WEEK_SPEND = [120.0, 145.0, 130.0, 160.0, 150.0, 180.0, 135.0]


def _pizza_campaign() -> Campaign:
    return Campaign(
        id="demo-123",
        name="Summer Sale - Pizza Place",
        start_date=datetime(2023, 10, 1, tzinfo=timezone.utc),
        business_name="Joe's Pizza",
        industry=Industry.FOOD_BEVERAGE,
        company_overview=CompanyOverview(
            summary=(
                "Joe's Pizza is a beloved local pizzeria serving authentic New York-style slices and whole pies. "
                "Known for their secret family sauce and hand-tossed dough, they offer casual dining and fast delivery."
            ),
            business_type="Restaurant / Pizzeria",
            services=["Dine-in", "Takeout", "Delivery", "Catering"],
            location="New York, NY",
        ),
        funnel_stage=FunnelStage.ACTION,
        channel=Channel.SOCIAL,
        platform=Platform.META_ADS,
        status=CampaignStatus.ACTIVE,
        creative=CreativeAsset(
            headline="Best Pizza in Town",
            headline_part2="Order Online Today",
            description="Authentic NY Style Pizza. Order online now!",
            primary_color="#ef4444",
            cta_text="Order Now",
            layout_template=LayoutTemplate.BOLD,
            background_image_url="https://images.unsplash.com/photo-1574071318508-1cdbab80d002?auto=format&fit=crop&w=600&h=400",
        ),
        budget=BudgetConfig(daily_limit=100, hard_cap=2000, currency="USD", duration=30),
        metrics=CampaignMetrics(
            impressions=45000,
            clicks=1200,
            cpc=0.85,
            ctr=2.66,
            spend=1020,
            conversions=85,
            dates=list(_WEEK),
            daily_spend=list(_WEEK_SPEND),
        ),
    )


def demo_campaigns() -> list[Campaign]:
    """Three campaigns in dashboard order (newest first)."""
    base = _pizza_campaign()
    retargeting = base.model_copy(update={
        "id": "demo-456",
        "name": "Retargeting - Website Visitors",
        "start_date": datetime(2023, 10, 15, tzinfo=timezone.utc),
        "metrics": base.metrics.model_copy(update={"impressions": 12500, "clicks": 450, "spend": 540, "conversions": 32}),
        "budget": BudgetConfig(daily_limit=40, hard_cap=800, currency="USD", duration=30),
    })
    awareness = base.model_copy(update={
        "id": "demo-789",
        "name": "Brand Awareness - Local",
        "start_date": datetime(2023, 9, 1, tzinfo=timezone.utc),
        "funnel_stage": FunnelStage.AWARENESS,
        "status": CampaignStatus.PAUSED,
        # Spend equals the cap; the registry locks it on load.
        "metrics": base.metrics.model_copy(update={"impressions": 80000, "clicks": 900, "spend": 1200, "conversions": 15}),
        "budget": BudgetConfig(daily_limit=60, hard_cap=1200, currency="USD", duration=60),
    })
    return [base, retargeting, awareness]


__all__ = ["demo_campaigns"]
