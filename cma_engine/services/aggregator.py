"""Range / average / median aggregation shared by every report metric."""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Iterable, List, Optional, Sequence

import numpy as np

from ..models.property import PropertyRecord
from ..utils.coerce import to_float
from ..utils.normalize import Bounds
from . import normalizer

Extractor = Callable[[PropertyRecord], Optional[float]]


class ValuePolicy(str, Enum):
    """Which finite values count for a metric."""

    POSITIVE = "positive"
    NON_NEGATIVE = "non_negative"
    FINITE = "finite"

    def accepts(self, value: float) -> bool:
        if self is ValuePolicy.POSITIVE:
            return value > 0
        if self is ValuePolicy.NON_NEGATIVE:
            return value >= 0
        return True


@dataclass(frozen=True)
class StatRange:
    min: float = 0.0
    max: float = 0.0


@dataclass(frozen=True)
class StatMetric:
    range: StatRange = StatRange()
    average: float = 0.0
    median: float = 0.0
    count: int = 0

    @property
    def is_empty(self) -> bool:
        return self.count == 0


EMPTY_METRIC = StatMetric()


@dataclass(frozen=True)
class PropertyStatistics:
    price: StatMetric
    price_per_sqft: StatMetric
    days_on_market: StatMetric
    living_area: StatMetric
    lot_size: StatMetric
    acres: StatMetric
    bedrooms: StatMetric
    bathrooms: StatMetric
    year_built: StatMetric


def clean_values(values: Iterable[Any], policy: ValuePolicy = ValuePolicy.POSITIVE) -> List[float]:
    """Finite values accepted by ``policy``, sorted ascending."""

    kept: List[float] = []
    for value in values:
        number = to_float(value)
        if number is None or not math.isfinite(number):
            continue
        if policy.accepts(number):
            kept.append(number)
    kept.sort()
    return kept


def median_of_sorted(ordered: Sequence[float]) -> float:
    n = len(ordered)
    if n == 0:
        return 0.0
    mid = n // 2
    if n % 2:
        return float(ordered[mid])
    return (ordered[mid - 1] + ordered[mid]) / 2


def aggregate(values: Iterable[Any], policy: ValuePolicy = ValuePolicy.POSITIVE) -> StatMetric:
    """Aggregate a numeric series into a :class:`StatMetric`.

    Invalid entries (``None``, NaN, infinities, non-numerics and anything the
    policy rejects) are dropped first. An empty series yields the all-zero
    metric rather than raising.
    """

    ordered = clean_values(values, policy)
    if not ordered:
        return EMPTY_METRIC
    bounds = Bounds(ordered[0], ordered[-1])
    return StatMetric(
        range=StatRange(min=ordered[0], max=ordered[-1]),
        average=bounds.clamp(float(np.mean(ordered))),
        median=median_of_sorted(ordered),
        count=len(ordered),
    )


def aggregate_metric(
    records: Iterable[PropertyRecord],
    extractor: Extractor,
    policy: ValuePolicy = ValuePolicy.POSITIVE,
) -> StatMetric:
    return aggregate((extractor(record) for record in records), policy)


METRIC_EXTRACTORS = {
    "price": normalizer.price,
    "price_per_sqft": normalizer.price_per_sqft,
    "days_on_market": normalizer.days_on_market,
    "living_area": normalizer.size_sqft,
    "lot_size": normalizer.lot_size_sqft,
    "acres": normalizer.lot_acres,
    "bedrooms": normalizer.bedrooms,
    "bathrooms": normalizer.bathrooms,
    "year_built": normalizer.year_built,
}


def property_statistics(records: Iterable[PropertyRecord]) -> PropertyStatistics:
    """All report metrics for ``records``, each through :func:`aggregate`."""

    rows = list(records)
    return PropertyStatistics(
        **{name: aggregate_metric(rows, extractor) for name, extractor in METRIC_EXTRACTORS.items()}
    )


__all__ = [
    "ValuePolicy",
    "StatRange",
    "StatMetric",
    "EMPTY_METRIC",
    "PropertyStatistics",
    "clean_values",
    "median_of_sorted",
    "aggregate",
    "aggregate_metric",
    "METRIC_EXTRACTORS",
    "property_statistics",
]
