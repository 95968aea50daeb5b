"""Core application configuration & tunable product rules.

Everything that may evolve (wizard shape, budget bounds, creative length
limits, targeting fallbacks, collaborator retry/circuit thresholds) is
centralized here so it can be adjusted without diving into service logic.
Values are module constants read from the environment where it makes sense;
tests monkeypatch the dicts directly when they need different numbers.
"""
from __future__ import annotations

import os

# ------------------------------ AI Collaborator ----------------------------- #
# API_KEY is accepted as a fallback name for the same key.
GEMINI_API_KEY: str | None = os.getenv("GEMINI_API_KEY") or os.getenv("API_KEY") or None
GEMINI_API_BASE_URL: str = os.getenv(
	"GEMINI_API_BASE_URL", "https://generativelanguage.googleapis.com/v1beta"
)
GEMINI_TEXT_MODEL: str = os.getenv("GEMINI_TEXT_MODEL", "gemini-2.5-flash")
GEMINI_IMAGE_MODEL: str = os.getenv("GEMINI_IMAGE_MODEL", "gemini-2.5-flash-image")
GEMINI_TIMEOUT_SECONDS: float = float(os.getenv("GEMINI_TIMEOUT_SECONDS", "30"))

# Seed the dashboard with the demo campaigns on startup.
LOAD_DEMO_DATA: bool = os.getenv("LOAD_DEMO_DATA", "true").strip().lower() in {"1", "true", "yes"}

# ---------------------------------- Wizard ---------------------------------- #
WIZARD_SETTINGS: dict[str, int | str] = {
	"total_steps": 5,
	"draft_placeholder_id": "temp-1",
	"campaign_id_prefix": "camp-",
	"default_campaign_name": "New Campaign",
}

# ---------------------------------- Budget ---------------------------------- #
BUDGET_LIMITS: dict[str, float | int | str] = {
	"min_daily_limit": 5,
	"max_daily_limit": 500,   # slider upper bound in the builder
	"min_duration_days": 1,
	"max_duration_days": 365,
	"min_hard_cap": 0,
	"default_daily_limit": 50,
	"default_hard_cap": 500,
	"default_duration_days": 30,
	"default_currency": "USD",
}

# --------------------------------- Creative --------------------------------- #
CREATIVE_LIMITS: dict[str, int] = {
	"headline_max_chars": 40,
	"headline_part2_max_chars": 30,   # Search ads only
	"description_max_chars": 90,
}

CREATIVE_DEFAULTS: dict[str, str] = {
	"primary_color": "#3b82f6",
	"cta_text": "Shop Now",
	"layout_template": "classic",
}

# --------------------------------- Targeting -------------------------------- #
TARGETING_DEFAULTS: dict[str, str | list[str]] = {
	"age_range": "18-65+",
	"gender": "All",
	"devices": ["Mobile", "Desktop"],
	"location": "United States",
}

# ----------------------------- Circuit Breaker ------------------------------ #
CIRCUIT_BREAKER: dict[str, int | float] = {
	"failure_threshold": 5,          # Consecutive failures before OPEN
	"open_cooldown_seconds": 60,     # Stay OPEN for 1 minute
	"half_open_probe_count": 1,      # Probes allowed in HALF_OPEN
}

# --------------------------------- Backoff ---------------------------------- #
BACKOFF_POLICY: dict[str, int | float] = {
	"base_seconds": 1,
	"factor": 2,          # Exponential factor
	"max_seconds": 8,
	"max_attempts": 2,    # A user is waiting on the other end; keep it short
	"jitter_pct": 0.10,   # +/-10% jitter
}

__all__ = [
	"GEMINI_API_KEY",
	"GEMINI_API_BASE_URL",
	"GEMINI_TEXT_MODEL",
	"GEMINI_IMAGE_MODEL",
	"GEMINI_TIMEOUT_SECONDS",
	"LOAD_DEMO_DATA",
	# Rule groups
	"WIZARD_SETTINGS",
	"BUDGET_LIMITS",
	"CREATIVE_LIMITS",
	"CREATIVE_DEFAULTS",
	"TARGETING_DEFAULTS",
	"CIRCUIT_BREAKER",
	"BACKOFF_POLICY",
]
