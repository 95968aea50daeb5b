"""Process-local circuit breaker for the AI collaborator.

One breaker state per model endpoint, keyed ``"<provider>:<model>"`` (see
``model_key``). The text model and the image model trip independently, so an
image outage leaves copy, targeting and insights generation untouched.

States move CLOSED -> OPEN after ``failure_threshold`` consecutive failures,
OPEN -> HALF_OPEN once the cooldown has elapsed, and HALF_OPEN -> CLOSED on
the first successful probe (or back to OPEN on a failed one).
"""
from __future__ import annotations

import enum
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional

from adpilot.config import CIRCUIT_BREAKER


class BreakerStatus(str, enum.Enum):
    CLOSED = "CLOSED"
    OPEN = "OPEN"
    HALF_OPEN = "HALF_OPEN"


def model_key(provider: str, model: str) -> str:
    return f"{provider}:{model}"


@dataclass
class BreakerState:
    failures: int = 0
    status: BreakerStatus = BreakerStatus.CLOSED
    opened_at: datetime | None = None
    half_open_probes: int = 0
    last_error: str | None = None


class CircuitBreaker:
    def __init__(
        self,
        *,
        failure_threshold: Optional[int] = None,
        cooldown_seconds: Optional[float] = None,
        probe_count: Optional[int] = None,
    ):
        self.failure_threshold = int(failure_threshold or CIRCUIT_BREAKER["failure_threshold"])
        self.cooldown = timedelta(seconds=float(cooldown_seconds or CIRCUIT_BREAKER["open_cooldown_seconds"]))
        self.probe_count = int(probe_count or CIRCUIT_BREAKER["half_open_probe_count"])
        self._states: Dict[str, BreakerState] = {}

    def _get(self, key: str) -> BreakerState:
        return self._states.setdefault(key, BreakerState())

    def _open(self, st: BreakerState) -> None:
        st.status = BreakerStatus.OPEN
        st.opened_at = datetime.now(timezone.utc)
        st.half_open_probes = 0

    def allow_call(self, key: str) -> tuple[bool, str | None]:
        st = self._get(key)
        if st.status == BreakerStatus.OPEN:
            if self.retry_after(key) > 0:
                return False, "circuit_open"
            st.status = BreakerStatus.HALF_OPEN
            st.half_open_probes = 0
        if st.status == BreakerStatus.HALF_OPEN:
            if st.half_open_probes >= self.probe_count:
                return False, "half_open_probe_exhausted"
            st.half_open_probes += 1
        return True, None

    def retry_after(self, key: str) -> float:
        """Seconds until an open breaker lets a probe through (0 when calls are allowed)."""
        st = self._states.get(key)
        if st is None or st.status != BreakerStatus.OPEN or st.opened_at is None:
            return 0.0
        remaining = st.opened_at + self.cooldown - datetime.now(timezone.utc)
        return max(remaining.total_seconds(), 0.0)

    def record_success(self, key: str) -> None:
        st = self._get(key)
        st.failures = 0
        st.last_error = None
        st.status = BreakerStatus.CLOSED
        st.opened_at = None
        st.half_open_probes = 0

    def record_failure(self, key: str, error: str | None = None) -> None:
        st = self._get(key)
        st.failures += 1
        st.last_error = error
        if st.status == BreakerStatus.HALF_OPEN:
            self._open(st)
        elif st.status == BreakerStatus.CLOSED and st.failures >= self.failure_threshold:
            self._open(st)

    def reset(self) -> None:
        self._states.clear()

    def snapshot(self) -> dict[str, dict[str, object]]:
        return {
            k: {
                "failures": v.failures,
                "state": v.status.value,
                "opened_at": v.opened_at.isoformat() if v.opened_at else None,
                "retry_after_seconds": round(self.retry_after(k), 1),
                "last_error": v.last_error,
            }
            for k, v in self._states.items()
        }


GLOBAL_CIRCUIT_BREAKER = CircuitBreaker()

__all__ = ["BreakerStatus", "CircuitBreaker", "GLOBAL_CIRCUIT_BREAKER", "model_key"]
