"""Pure metric math helpers used by the budget policy & dashboard views."""
from __future__ import annotations


def safe_div(numerator: float | int, denominator: float | int) -> float:
    if denominator in (0, 0.0):
        return 0.0
    return float(numerator) / float(denominator)


def pct(numerator: float | int, denominator: float | int, *, digits: int = 2) -> float:
    """Ratio expressed in percent, rounded; 0.0 when the denominator is zero."""
    return round(safe_div(numerator, denominator) * 100.0, digits)


def cost_per(amount: float, count: int, *, digits: int = 2) -> float:
    """Unit cost (e.g. spend per click); 0.0 when nothing was counted."""
    return round(safe_div(amount, count), digits)


__all__ = ["safe_div", "pct", "cost_per"]
