"""In-memory campaign registry (single-process, session scoped).

Holds finalized campaigns newest-first. Every operation swaps the internal
tuple for a new one rather than mutating shared objects, so a snapshot taken
by a reader stays consistent. All status-affecting writes go through the
budget policy, which keeps the hard cap lock intact for every stored entry.
"""
from __future__ import annotations

from typing import Callable, Iterable, Iterator

from adpilot.exceptions import DuplicateIdError, NotFoundError
from adpilot.models.campaign import BudgetConfig, Campaign, CampaignMetrics
from adpilot.models.enums import CampaignStatus
from adpilot.services import budget_policy
from adpilot.utils import get_logger, log_business_event

logger = get_logger(__name__)


class CampaignRegistry:
    def __init__(self, campaigns: Iterable[Campaign] = ()) -> None:
        self._campaigns: tuple[Campaign, ...] = ()
        if campaigns:
            self.replace_all(campaigns)

    # ----------------------------- internal helpers ----------------------------- #
    def _index_of(self, campaign_id: str) -> int:
        for idx, campaign in enumerate(self._campaigns):
            if campaign.id == campaign_id:
                return idx
        raise NotFoundError(campaign_id)

    def _replace(self, campaign_id: str, fn: Callable[[Campaign], Campaign]) -> Campaign:
        idx = self._index_of(campaign_id)
        updated = fn(self._campaigns[idx])
        self._campaigns = self._campaigns[:idx] + (updated,) + self._campaigns[idx + 1:]
        return updated

    # --------------------------------- queries ---------------------------------- #
    def __iter__(self) -> Iterator[Campaign]:
        return iter(self._campaigns)

    def __len__(self) -> int:
        return len(self._campaigns)

    def __contains__(self, campaign_id: object) -> bool:
        return any(c.id == campaign_id for c in self._campaigns)

    def list(self) -> list[Campaign]:
        return list(self._campaigns)

    def snapshot(self) -> tuple[Campaign, ...]:
        return self._campaigns

    def find_by_id(self, campaign_id: str) -> Campaign | None:
        return next((c for c in self._campaigns if c.id == campaign_id), None)

    def get(self, campaign_id: str) -> Campaign:
        campaign = self.find_by_id(campaign_id)
        if campaign is None:
            raise NotFoundError(campaign_id)
        return campaign

    # --------------------------------- commands --------------------------------- #
    def insert(self, campaign: Campaign) -> Campaign:
        """Prepend a campaign. Raises DuplicateIdError if the id is taken."""
        if campaign.id in self:
            logger.warning("Campaign insert rejected: duplicate id", campaign_id=campaign.id)
            raise DuplicateIdError(campaign.id)
        stored = budget_policy.enforce_hard_cap(campaign)
        self._campaigns = (stored,) + self._campaigns
        logger.info("Campaign stored", campaign_id=stored.id, status=stored.status.value, total=len(self._campaigns))
        return stored

    def update_status(self, campaign_id: str, status: CampaignStatus) -> Campaign:
        previous = self.get(campaign_id).status
        updated = self._replace(campaign_id, lambda c: budget_policy.transition(c, status))
        if updated.status != previous:
            log_business_event(
                event_type="campaign_status_changed",
                details={"from_status": previous.value, "to_status": updated.status.value},
                campaign_id=campaign_id,
            )
        return updated

    def update_metrics(self, campaign_id: str, metrics: CampaignMetrics) -> Campaign:
        return self._replace(campaign_id, lambda c: budget_policy.apply_metrics(c, metrics))

    def record_spend(self, campaign_id: str, day: str, amount: float) -> Campaign:
        return self._replace(campaign_id, lambda c: budget_policy.record_daily_spend(c, day, amount))

    def update_budget(self, campaign_id: str, budget: BudgetConfig) -> Campaign:
        return self._replace(campaign_id, lambda c: budget_policy.apply_budget(c, budget))

    def delete(self, campaign_id: str) -> Campaign:
        """Remove a campaign. Raises NotFoundError if absent."""
        idx = self._index_of(campaign_id)
        removed = self._campaigns[idx]
        self._campaigns = self._campaigns[:idx] + self._campaigns[idx + 1:]
        log_business_event(event_type="campaign_deleted", details={"name": removed.name}, campaign_id=campaign_id)
        return removed

    def replace_all(self, campaigns: Iterable[Campaign]) -> None:
        """Swap the whole collection (demo reset). Order is kept as given."""
        items = tuple(budget_policy.enforce_hard_cap(c) for c in campaigns)
        ids = [c.id for c in items]
        if len(ids) != len(set(ids)):
            dup = next(i for i in ids if ids.count(i) > 1)
            raise DuplicateIdError(dup)
        self._campaigns = items


__all__ = ["CampaignRegistry"]
