"""Numeric bounding helpers shared by the market and pricing services."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True)
class Bounds:
    minimum: float
    maximum: float

    def clamp(self, value: float) -> float:
        return max(self.minimum, min(self.maximum, value))


def round_half_up(value: float) -> int:
    # builtin round() rounds halves to even
    return int(math.floor(value + 0.5))


TREND_INFLUENCE = Bounds(-0.10, 0.10)
SCORE = Bounds(0.0, 100.0)
GAUGE = Bounds(10.0, 90.0)


def pct_change(current: Optional[float], base: Optional[float]) -> Optional[float]:
    """Percentage change from ``base`` to ``current``.

    Returns ``None`` when either side is missing or the base is not positive, so
    callers can tell "no data" apart from a genuine 0% change.
    """

    if current is None or base is None:
        return None
    if base <= 0 or not math.isfinite(base) or not math.isfinite(current):
        return None
    return (current - base) / base * 100


__all__ = ["Bounds", "round_half_up", "TREND_INFLUENCE", "SCORE", "GAUGE", "pct_change"]
