"""Status/budget policy: the campaign lifecycle state machine & Hard Cap lock.

Stored transitions::

    DRAFT -> ACTIVE <-> PAUSED
    any -> CAP_REACHED               (automatic, spend >= hard cap)
    CAP_REACHED -> DRAFT | PAUSED    (automatic re-arm, cap raised above spend)

Re-arming returns a campaign that was locked while still a DRAFT to DRAFT;
anything else comes back PAUSED, so resuming delivery stays an explicit
ACTIVE transition.

COMPLETED is never stored; it is derived at display time from the start date
and duration. Whatever the sequence of status, metric or budget changes, a
campaign that went through this module satisfies::

    status == CAP_REACHED  <=>  metrics.spend >= budget.hard_cap
"""
from __future__ import annotations

import math
from datetime import datetime
from typing import Any, Mapping

from adpilot.config import BUDGET_LIMITS
from adpilot.exceptions import CapViolationError, InvalidTransitionError, ValidationError
from adpilot.models.campaign import BudgetConfig, Campaign, CampaignMetrics
from adpilot.models.enums import CampaignStatus
from adpilot.utils import get_logger, log_business_event
from adpilot.utils.metrics import cost_per, pct
from adpilot.utils.time import hours_since

logger = get_logger(__name__)

ALLOWED_TRANSITIONS: dict[CampaignStatus, frozenset[CampaignStatus]] = {
    CampaignStatus.DRAFT: frozenset({CampaignStatus.ACTIVE}),
    CampaignStatus.ACTIVE: frozenset({CampaignStatus.PAUSED, CampaignStatus.CAP_REACHED}),
    CampaignStatus.PAUSED: frozenset({CampaignStatus.ACTIVE}),
    CampaignStatus.CAP_REACHED: frozenset({CampaignStatus.PAUSED, CampaignStatus.ACTIVE}),
    CampaignStatus.COMPLETED: frozenset(),
}


def is_cap_reached(campaign: Campaign) -> bool:
    return campaign.metrics.spend >= campaign.budget.hard_cap


def enforce_hard_cap(campaign: Campaign) -> Campaign:
    """Bring the stored status in line with spend vs. hard cap.

    Reaching the cap locks the campaign. A locked campaign whose cap was
    raised (or whose spend was reset) is unlocked into PAUSED, or back into
    DRAFT when it was locked before ever launching.
    """
    if is_cap_reached(campaign):
        if campaign.status == CampaignStatus.CAP_REACHED:
            return campaign
        logger.warning(
            "Hard cap reached; locking campaign",
            campaign_id=campaign.id,
            spend=campaign.metrics.spend,
            hard_cap=campaign.budget.hard_cap,
            previous_status=campaign.status.value,
        )
        log_business_event(
            event_type="hard_cap_reached",
            details={
                "spend": campaign.metrics.spend,
                "hard_cap": campaign.budget.hard_cap,
                "previous_status": campaign.status.value,
            },
            campaign_id=campaign.id,
        )
        return campaign.model_copy(update={"status": CampaignStatus.CAP_REACHED, "locked_from": campaign.status})

    if campaign.status == CampaignStatus.CAP_REACHED:
        unlocked = CampaignStatus.DRAFT if campaign.locked_from == CampaignStatus.DRAFT else CampaignStatus.PAUSED
        logger.info(
            "Hard cap re-armed; campaign unlocked",
            campaign_id=campaign.id,
            spend=campaign.metrics.spend,
            hard_cap=campaign.budget.hard_cap,
            status=unlocked.value,
        )
        return campaign.model_copy(update={"status": unlocked, "locked_from": None})
    return campaign


def transition(campaign: Campaign, target: CampaignStatus) -> Campaign:
    """Apply an explicit (user-issued) status change.

    Raises:
        InvalidTransitionError: the edge is not part of the state machine.
        CapViolationError: the change would break the hard cap lock.
    """
    current = campaign.status
    if target == current:
        return campaign
    if target == CampaignStatus.COMPLETED:
        raise InvalidTransitionError(current.value, target.value)
    if target == CampaignStatus.CAP_REACHED:
        if not is_cap_reached(campaign):
            raise CapViolationError(
                f"Campaign '{campaign.id}' has spent {campaign.metrics.spend:.2f} of "
                f"{campaign.budget.hard_cap:.2f}; the cap lock engages automatically"
            )
    elif is_cap_reached(campaign):
        raise CapViolationError(
            f"Campaign '{campaign.id}' has reached its hard cap of {campaign.budget.hard_cap:.2f}; "
            "raise the cap before changing its status"
        )
    if target not in ALLOWED_TRANSITIONS.get(current, frozenset()):
        raise InvalidTransitionError(current.value, target.value)
    return campaign.model_copy(update={"status": target, "locked_from": None})


def apply_metrics(campaign: Campaign, metrics: CampaignMetrics) -> Campaign:
    """Replace metrics (derived ratios recomputed) and re-check the cap."""
    return enforce_hard_cap(campaign.model_copy(update={"metrics": recompute_metrics(metrics)}))


def record_daily_spend(campaign: Campaign, day: str, amount: float) -> Campaign:
    """Append one day of spend to the series and cumulative total."""
    if amount < 0:
        raise ValidationError("amount must be non-negative")
    m = campaign.metrics
    metrics = m.model_copy(update={
        "dates": [*m.dates, day],
        "daily_spend": [*m.daily_spend, amount],
        "spend": round(m.spend + amount, 2),
    })
    return apply_metrics(campaign, metrics)


def apply_budget(campaign: Campaign, budget: BudgetConfig) -> Campaign:
    """Swap the budget of a running campaign; raising the cap re-arms the lock."""
    return enforce_hard_cap(campaign.model_copy(update={"budget": budget}))


# ------------------------------ Derived values ------------------------------ #

def recompute_metrics(metrics: CampaignMetrics) -> CampaignMetrics:
    return metrics.model_copy(update={
        "cpc": cost_per(metrics.spend, metrics.clicks),
        "ctr": pct(metrics.clicks, metrics.impressions),
    })


def conversion_rate(metrics: CampaignMetrics) -> float:
    return pct(metrics.conversions, metrics.clicks, digits=1)


def spend_percentage(campaign: Campaign) -> float:
    if campaign.budget.hard_cap <= 0:
        return 100.0
    return pct(campaign.metrics.spend, campaign.budget.hard_cap, digits=1)


def days_remaining(campaign: Campaign, now: datetime | None = None) -> int:
    elapsed_hours = max(0.0, hours_since(campaign.start_date, now))
    return max(0, campaign.budget.duration - math.ceil(elapsed_hours / 24))


def display_status(campaign: Campaign, now: datetime | None = None) -> CampaignStatus:
    """Status shown on the dashboard; running campaigns past their duration read COMPLETED."""
    if campaign.status in (CampaignStatus.ACTIVE, CampaignStatus.PAUSED) and days_remaining(campaign, now) == 0:
        return CampaignStatus.COMPLETED
    return campaign.status


# ------------------------------ Budget input -------------------------------- #

def _number(raw: Any) -> float | None:
    if isinstance(raw, bool):
        return None
    try:
        value = float(raw)
    except (TypeError, ValueError):
        return None
    if math.isnan(value) or math.isinf(value):
        return None
    return value


def sanitize_budget(raw: Mapping[str, Any], current: BudgetConfig) -> BudgetConfig:
    """Build a budget from loosely typed form input without ever raising.

    Non-numeric or missing values keep the current value; numeric ones are
    clamped into the allowed ranges.
    """
    daily = _number(raw.get("daily_limit"))
    cap = _number(raw.get("hard_cap"))
    duration = _number(raw.get("duration"))
    currency = raw.get("currency")

    if daily is None:
        daily = current.daily_limit
    daily = min(max(daily, float(BUDGET_LIMITS["min_daily_limit"])), float(BUDGET_LIMITS["max_daily_limit"]))

    cap = current.hard_cap if cap is None else max(cap, float(BUDGET_LIMITS["min_hard_cap"]))

    if duration is None:
        duration = current.duration
    duration = int(min(max(int(duration), int(BUDGET_LIMITS["min_duration_days"])), int(BUDGET_LIMITS["max_duration_days"])))

    if not isinstance(currency, str) or len(currency.strip()) != 3:
        currency = current.currency

    return BudgetConfig(daily_limit=daily, hard_cap=cap, currency=currency.strip().upper(), duration=duration)


__all__ = [
    "ALLOWED_TRANSITIONS",
    "is_cap_reached",
    "enforce_hard_cap",
    "transition",
    "apply_metrics",
    "record_daily_spend",
    "apply_budget",
    "recompute_metrics",
    "conversion_rate",
    "spend_percentage",
    "days_remaining",
    "display_status",
    "sanitize_budget",
]
