"""Pytest fixtures and factories.

The AI collaborator is replaced by ``FakeBackend`` everywhere; no test
touches the network.
"""
import asyncio
import sys
from pathlib import Path
from datetime import datetime, timedelta, timezone
import pytest
from fastapi.testclient import TestClient

# Ensure project root on sys.path so 'adpilot' resolves without an install
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))

from adpilot.main import app  # type: ignore
from adpilot.api.deps import build_app_state  # type: ignore
from adpilot.exceptions import CollaboratorError
from adpilot.integrations.base import GenerationBackend
from adpilot.models.campaign import BudgetConfig, Campaign, CampaignMetrics
from adpilot.models.enums import CampaignStatus
from adpilot.services import generation
from adpilot.utils.circuit_breaker import GLOBAL_CIRCUIT_BREAKER

PIXEL_DATA_URI = "data:image/png;base64,iVBORw0KGgo="

DEFAULT_RESPONSES = {
    "overview": {
        "summary": "Joe's Pizza serves New York-style slices.",
        "businessType": "Pizzeria",
        "services": ["Dine-in", "Delivery"],
        "location": "New York, NY",
    },
    "targeting": {
        "locations": ["New York, NY"],
        "interests": ["Pizza", "Italian Food"],
        "ageRange": "18-45",
        "gender": "All",
        "devices": ["Mobile"],
        "keywords": [],
    },
    "copy": {
        "headline": "Best Pizza in Town",
        "headlinePart2": "Order Online",
        "description": "Hand-tossed dough and a secret family sauce.",
        "ctaText": "Order Now",
    },
    "insights": {
        "insights": [
            {"id": "1", "type": "success", "message": "Clicks are converting well."},
            {"id": "2", "type": "warning", "message": "Spend is rising faster than clicks."},
        ],
        "anomaly": {"detected": True, "description": "CPC spiked on Thursday", "severity": "medium"},
    },
    "text": "Your CPC rose because clicks dropped while spend stayed flat.",
    "image": PIXEL_DATA_URI,
}

_SCHEMA_KEYS = {
    id(generation.OVERVIEW_SCHEMA): "overview",
    id(generation.TARGETING_SCHEMA): "targeting",
    id(generation.COPY_SCHEMA): "copy",
    id(generation.INSIGHTS_SCHEMA): "insights",
}


class FakeBackend(GenerationBackend):
    """Scripted backend. Set ``fail`` to raise, or ``gate`` to hold calls until released."""

    def __init__(self, responses=None):
        self.responses = {**DEFAULT_RESPONSES, **(responses or {})}
        self.calls: list[tuple[str, str]] = []
        self.fail = False
        self.gate: asyncio.Event | None = None

    async def _answer(self, key: str, prompt: str):
        self.calls.append((key, prompt))
        if self.gate is not None:
            await self.gate.wait()
        if self.fail:
            raise CollaboratorError(f"{key} unavailable", operation=key)
        return self.responses[key]

    async def generate_json(self, prompt, schema=None):
        return await self._answer(_SCHEMA_KEYS[id(schema)], prompt)

    async def generate_text(self, prompt):
        return await self._answer("text", prompt)

    async def generate_image(self, prompt):
        return await self._answer("image", prompt)

    def keys(self) -> list[str]:
        return [k for k, _ in self.calls]


@pytest.fixture()
def fake_backend():
    return FakeBackend()


@pytest.fixture()
def generator(fake_backend):
    return generation.GenerationService(fake_backend)


@pytest.fixture(autouse=True)
def _isolate_test_state():
    """Reset the in-memory circuit breaker so failure counters do not spill across tests."""
    GLOBAL_CIRCUIT_BREAKER.reset()
    yield
    GLOBAL_CIRCUIT_BREAKER.reset()


@pytest.fixture()
def app_state(fake_backend):
    state = build_app_state(backend=fake_backend)
    app.state.adpilot = state  # type: ignore[attr-defined]
    yield state
    app.state.adpilot = None  # type: ignore[attr-defined]


@pytest.fixture()
def client(app_state):
    with TestClient(app) as c:
        yield c

# ---------- Data factory helpers ----------

@pytest.fixture()
def campaign_factory():
    counter = {"n": 0}

    def _create(
        *,
        status: CampaignStatus = CampaignStatus.ACTIVE,
        spend: float = 0.0,
        hard_cap: float = 500.0,
        daily_limit: float = 50.0,
        duration: int = 30,
        days_ago: float = 1.0,
        campaign_id: str | None = None,
        **overrides,
    ) -> Campaign:
        counter["n"] += 1
        return Campaign(
            id=campaign_id or f"camp-test{counter['n']:04d}",
            name=overrides.pop("name", f"Test Campaign {counter['n']}"),
            business_name=overrides.pop("business_name", "Joe's Pizza"),
            status=status,
            start_date=datetime.now(timezone.utc) - timedelta(days=days_ago),
            budget=BudgetConfig(daily_limit=daily_limit, hard_cap=hard_cap, currency="USD", duration=duration),
            metrics=CampaignMetrics(impressions=10000, clicks=200, conversions=10, spend=spend),
            **overrides,
        )
    return _create
