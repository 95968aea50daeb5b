"""Time utilities (UTC now, elapsed hours)."""
from __future__ import annotations
from datetime import datetime, timezone

def utc_now() -> datetime:
    return datetime.now(timezone.utc)

def ensure_aware(value: datetime) -> datetime:
    """Treat naive datetimes as UTC so subtraction never mixes kinds."""
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value

def hours_since(start: datetime, end: datetime | None = None) -> float:
    end_ts = ensure_aware(end or utc_now())
    return (end_ts - ensure_aware(start)).total_seconds() / 3600.0

__all__ = ["utc_now", "ensure_aware", "hours_since"]
