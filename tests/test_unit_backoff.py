from datetime import datetime, timedelta, timezone
from email.utils import format_datetime

from adpilot.utils.backoff import compute_backoff_seconds, parse_retry_after


def test_backoff_growth_and_cap():
    first = compute_backoff_seconds(1, base=1, factor=2, max_seconds=10, jitter_pct=0.0)
    second = compute_backoff_seconds(2, base=1, factor=2, max_seconds=10, jitter_pct=0.0)
    third = compute_backoff_seconds(3, base=1, factor=2, max_seconds=10, jitter_pct=0.0)
    assert first == 1
    assert second == 2
    assert third == 4
    capped = compute_backoff_seconds(10, base=1, factor=2, max_seconds=5, jitter_pct=0.0)
    assert capped <= 5


def test_backoff_fractional_base_and_jitter_bounds():
    assert compute_backoff_seconds(0, base=0.5, factor=2, max_seconds=8, jitter_pct=0.0) == 0.5
    for _ in range(20):
        delay = compute_backoff_seconds(2, base=1, factor=2, max_seconds=8, jitter_pct=0.1)
        assert 1.8 <= delay <= 2.2


def test_server_requested_delay_wins_but_is_bounded():
    assert compute_backoff_seconds(1, retry_after=3, max_seconds=8) == 3
    assert compute_backoff_seconds(1, retry_after=120, max_seconds=8) == 8
    assert compute_backoff_seconds(1, retry_after=-1, max_seconds=8) == 0


def test_parse_retry_after_header_forms():
    assert parse_retry_after("7") == 7
    assert parse_retry_after(None) is None
    assert parse_retry_after("soon") is None
    now = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)
    header = format_datetime(now + timedelta(seconds=30), usegmt=True)
    assert parse_retry_after(header, now=now) == 30
    assert parse_retry_after(format_datetime(now - timedelta(seconds=30), usegmt=True), now=now) == 0
