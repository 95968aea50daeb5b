"""Retry delays for collaborator calls.

Delays grow exponentially from ``BACKOFF_POLICY`` with +/- jitter. When the
server names its own delay (``Retry-After`` on a 429/503) that value wins,
still bounded by ``max_seconds`` since a user is waiting on the answer.
"""
from __future__ import annotations

import random
from email.utils import parsedate_to_datetime
from datetime import datetime, timezone
from typing import Optional

from adpilot.config import BACKOFF_POLICY


def parse_retry_after(value: Optional[str], now: Optional[datetime] = None) -> Optional[float]:
    """Seconds requested by a ``Retry-After`` header (delta-seconds or HTTP date)."""
    if not value:
        return None
    value = value.strip()
    try:
        return max(float(value), 0.0)
    except ValueError:
        pass
    try:
        when = parsedate_to_datetime(value)
    except (TypeError, ValueError):
        return None
    if when.tzinfo is None:
        when = when.replace(tzinfo=timezone.utc)
    return max((when - (now or datetime.now(timezone.utc))).total_seconds(), 0.0)


def compute_backoff_seconds(
    attempt: int,
    *,
    retry_after: Optional[float] = None,
    base: Optional[float] = None,
    factor: Optional[float] = None,
    max_seconds: Optional[float] = None,
    jitter_pct: Optional[float] = None,
) -> float:
    """Delay before retry number ``attempt`` (1-based)."""
    max_seconds = float(max_seconds if max_seconds is not None else BACKOFF_POLICY["max_seconds"])
    if retry_after is not None:
        return min(max(retry_after, 0.0), max_seconds)

    attempt = max(attempt, 1)
    base = float(base if base is not None else BACKOFF_POLICY["base_seconds"])
    factor = float(factor if factor is not None else BACKOFF_POLICY["factor"])
    jitter_pct = float(jitter_pct if jitter_pct is not None else BACKOFF_POLICY["jitter_pct"])

    delay = min(base * (factor ** (attempt - 1)), max_seconds)
    if jitter_pct > 0:
        delay = random.uniform(delay * (1 - jitter_pct), delay * (1 + jitter_pct))
    return max(delay, 0.0)


__all__ = ["compute_backoff_seconds", "parse_retry_after"]
