"""Dashboard session: which campaign is selected and which view is shown.

Clearing the selection when the selected campaign is deleted is this
object's job, not the registry's.
"""
from __future__ import annotations

import enum
from typing import Optional

from adpilot.models.campaign import Campaign
from adpilot.services.demo_data import demo_campaigns
from adpilot.services.registry import CampaignRegistry
from adpilot.utils import get_logger

logger = get_logger(__name__)


class DashboardView(str, enum.Enum):
    LIST = "list"
    DETAILS = "details"


class DashboardSession:
    def __init__(self, registry: CampaignRegistry) -> None:
        self.registry = registry
        self.selected_id: Optional[str] = None
        self.view: DashboardView = DashboardView.LIST

    def select(self, campaign_id: str) -> Campaign:
        campaign = self.registry.get(campaign_id)
        self.selected_id = campaign.id
        self.view = DashboardView.DETAILS
        return campaign

    def back_to_list(self) -> None:
        self.view = DashboardView.LIST

    def clear_selection(self) -> None:
        self.selected_id = None
        self.view = DashboardView.LIST

    def active_campaign(self) -> Optional[Campaign]:
        """Selected campaign, falling back to the newest one."""
        if self.selected_id is not None:
            selected = self.registry.find_by_id(self.selected_id)
            if selected is not None:
                return selected
        return next(iter(self.registry), None)

    def delete(self, campaign_id: str) -> Campaign:
        removed = self.registry.delete(campaign_id)
        if self.selected_id == campaign_id:
            logger.info("Selected campaign deleted; returning to list", campaign_id=campaign_id)
            self.clear_selection()
        return removed

    def load_demo_data(self) -> list[Campaign]:
        self.registry.replace_all(demo_campaigns())
        if self.selected_id is not None and self.selected_id not in self.registry:
            self.clear_selection()
        return self.registry.list()


__all__ = ["DashboardView", "DashboardSession"]
