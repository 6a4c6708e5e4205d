"""Ordinary least-squares trendlines over paired listing values."""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any, Iterable, List, Mapping, Optional, Tuple

from ..models.property import PropertyRecord
from ..utils.coerce import to_float
from .inclusion import RentalPredicate
from . import normalizer

Point = Tuple[float, float]


@dataclass(frozen=True)
class RegressionResult:
    slope: float
    intercept: float

    def predict(self, x: float) -> float:
        return self.slope * x + self.intercept


@dataclass(frozen=True)
class TrendLine:
    """A fitted line plus its endpoints over the observed x range."""

    fit: RegressionResult
    start: Point
    end: Point
    sample_size: int


def _as_point(item: Any) -> Optional[Point]:
    if isinstance(item, Mapping):
        x, y = item.get("x"), item.get("y")
    elif isinstance(item, (tuple, list)) and len(item) == 2:
        x, y = item
    else:
        x, y = getattr(item, "x", None), getattr(item, "y", None)
    x, y = to_float(x), to_float(y)
    if x is None or y is None or not math.isfinite(x) or not math.isfinite(y):
        return None
    return x, y


def clean_points(points: Iterable[Any]) -> List[Point]:
    """Finite ``(x, y)`` pairs from tuples, mappings or objects with ``x``/``y``."""

    return [point for point in (_as_point(item) for item in points) if point is not None]


def fit_line(points: Iterable[Any]) -> Optional[RegressionResult]:
    """Fit ``y = slope * x + intercept``.

    Returns ``None`` (no trendline) for fewer than two points, fewer than two
    distinct x values, or a zero normal-equations denominator.
    """

    pairs = clean_points(points)
    n = len(pairs)
    if n < 2 or len({x for x, _ in pairs}) < 2:
        return None

    sum_x = sum_y = sum_xy = sum_x2 = 0.0
    for x, y in pairs:
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_x2 += x * x

    denominator = n * sum_x2 - sum_x * sum_x
    if denominator == 0:
        return None
    slope = (n * sum_xy - sum_x * sum_y) / denominator
    intercept = (sum_y - slope * sum_x) / n
    return RegressionResult(slope=slope, intercept=intercept)


def trendline(points: Iterable[Any]) -> Optional[TrendLine]:
    pairs = clean_points(points)
    fit = fit_line(pairs)
    if fit is None:
        return None
    low = min(x for x, _ in pairs)
    high = max(x for x, _ in pairs)
    return TrendLine(
        fit=fit,
        start=(low, fit.predict(low)),
        end=(high, fit.predict(high)),
        sample_size=len(pairs),
    )


def size_price_points(records: Iterable[PropertyRecord]) -> List[Point]:
    """Living area vs price for records that have both."""

    points: List[Point] = []
    for record in records:
        size = normalizer.size_sqft(record)
        amount = normalizer.price(record)
        if size is not None and amount > 0:
            points.append((size, amount))
    return points


def acreage_points(
    records: Iterable[PropertyRecord],
    rental_predicate: Optional[RentalPredicate] = None,
) -> List[Point]:
    """Lot acres vs price-per-acre, skipping leases when a predicate is given."""

    points: List[Point] = []
    for record in records:
        if rental_predicate is not None and rental_predicate(record):
            continue
        acres = normalizer.lot_acres(record)
        per_acre = normalizer.price_per_acre(record)
        if acres is not None and per_acre is not None:
            points.append((acres, per_acre))
    return points


__all__ = [
    "RegressionResult",
    "TrendLine",
    "clean_points",
    "fit_line",
    "trendline",
    "size_price_points",
    "acreage_points",
]
