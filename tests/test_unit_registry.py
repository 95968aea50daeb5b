import pytest

from adpilot.exceptions import CapViolationError, DuplicateIdError, NotFoundError
from adpilot.models.campaign import BudgetConfig
from adpilot.models.enums import CampaignStatus
from adpilot.services.dashboard import DashboardSession, DashboardView
from adpilot.services.registry import CampaignRegistry


def test_insert_prepends_newest_first(campaign_factory):
    registry = CampaignRegistry()
    a = campaign_factory(campaign_id="camp-a")
    b = campaign_factory(campaign_id="camp-b")
    registry.insert(a)
    registry.insert(b)
    assert [c.id for c in registry] == ["camp-b", "camp-a"]
    assert len(registry) == 2
    assert "camp-a" in registry


def test_duplicate_insert_fails_and_leaves_collection_unchanged(campaign_factory):
    registry = CampaignRegistry()
    registry.insert(campaign_factory(campaign_id="camp-a"))
    before = registry.snapshot()
    with pytest.raises(DuplicateIdError):
        registry.insert(campaign_factory(campaign_id="camp-a", name="Other"))
    assert registry.snapshot() == before
    assert registry.snapshot() is before


def test_update_status_replaces_without_mutating_previous_state(campaign_factory):
    registry = CampaignRegistry()
    registry.insert(campaign_factory(campaign_id="camp-a"))
    registry.insert(campaign_factory(campaign_id="camp-b"))
    before = registry.snapshot()
    updated = registry.update_status("camp-a", CampaignStatus.PAUSED)
    assert updated.status == CampaignStatus.PAUSED
    assert registry.get("camp-a").status == CampaignStatus.PAUSED
    # previous snapshot still shows the old state; order unchanged
    assert before[1].status == CampaignStatus.ACTIVE
    assert [c.id for c in registry] == ["camp-b", "camp-a"]


def test_missing_ids_raise_not_found(campaign_factory):
    registry = CampaignRegistry()
    assert registry.find_by_id("nope") is None
    with pytest.raises(NotFoundError):
        registry.update_status("nope", CampaignStatus.PAUSED)
    with pytest.raises(NotFoundError):
        registry.delete("nope")
    with pytest.raises(NotFoundError):
        registry.get("nope")


def test_spend_480_to_520_locks_and_resume_rejected(campaign_factory):
    registry = CampaignRegistry()
    registry.insert(campaign_factory(campaign_id="camp-cap", spend=480, hard_cap=500))
    current = registry.get("camp-cap")
    registry.update_metrics("camp-cap", current.metrics.model_copy(update={"spend": 520}))
    assert registry.get("camp-cap").status == CampaignStatus.CAP_REACHED
    with pytest.raises(CapViolationError):
        registry.update_status("camp-cap", CampaignStatus.ACTIVE)
    assert registry.get("camp-cap").status == CampaignStatus.CAP_REACHED


def test_insert_over_cap_is_locked_immediately(campaign_factory):
    registry = CampaignRegistry()
    stored = registry.insert(campaign_factory(spend=700, hard_cap=500))
    assert stored.status == CampaignStatus.CAP_REACHED


def test_record_spend_and_budget_update(campaign_factory):
    registry = CampaignRegistry()
    registry.insert(campaign_factory(campaign_id="camp-s", spend=0, hard_cap=100))
    registry.record_spend("camp-s", "Mon", 60)
    c = registry.record_spend("camp-s", "Tue", 50)
    assert c.status == CampaignStatus.CAP_REACHED
    c = registry.update_budget("camp-s", BudgetConfig(daily_limit=50, hard_cap=200, currency="USD", duration=30))
    assert c.status == CampaignStatus.PAUSED
    assert registry.update_status("camp-s", CampaignStatus.ACTIVE).status == CampaignStatus.ACTIVE


def test_replace_all_rejects_duplicates(campaign_factory):
    registry = CampaignRegistry()
    with pytest.raises(DuplicateIdError):
        registry.replace_all([campaign_factory(campaign_id="x"), campaign_factory(campaign_id="x")])
    assert len(registry) == 0


# ---------- Dashboard session ----------

def test_deleting_selected_campaign_clears_selection(campaign_factory):
    registry = CampaignRegistry()
    registry.insert(campaign_factory(campaign_id="camp-a"))
    registry.insert(campaign_factory(campaign_id="camp-b"))
    session = DashboardSession(registry)
    session.select("camp-a")
    assert session.view == DashboardView.DETAILS

    session.delete("camp-a")
    assert session.selected_id is None
    assert session.view == DashboardView.LIST
    assert [c.id for c in registry] == ["camp-b"]


def test_deleting_other_campaign_keeps_selection(campaign_factory):
    registry = CampaignRegistry()
    registry.insert(campaign_factory(campaign_id="camp-a"))
    registry.insert(campaign_factory(campaign_id="camp-b"))
    session = DashboardSession(registry)
    session.select("camp-a")
    session.delete("camp-b")
    assert session.selected_id == "camp-a"
    assert session.view == DashboardView.DETAILS


def test_active_campaign_falls_back_to_newest(campaign_factory):
    registry = CampaignRegistry()
    session = DashboardSession(registry)
    assert session.active_campaign() is None
    registry.insert(campaign_factory(campaign_id="camp-a"))
    registry.insert(campaign_factory(campaign_id="camp-b"))
    assert session.active_campaign().id == "camp-b"
    session.select("camp-a")
    assert session.active_campaign().id == "camp-a"


def test_select_unknown_campaign_raises(campaign_factory):
    session = DashboardSession(CampaignRegistry())
    with pytest.raises(NotFoundError):
        session.select("missing")


def test_demo_data_is_loaded_with_cap_lock():
    registry = CampaignRegistry()
    session = DashboardSession(registry)
    campaigns = session.load_demo_data()
    assert [c.id for c in campaigns] == ["demo-123", "demo-456", "demo-789"]
    assert registry.get("demo-789").status == CampaignStatus.CAP_REACHED
    assert registry.get("demo-123").status == CampaignStatus.ACTIVE
