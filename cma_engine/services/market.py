"""Market-health readings: inventory, year-over-year prices, list-to-sale, time to sell."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Iterable, List, Optional, Union

import pandas as pd

from ..models.property import PropertyRecord
from ..utils.logging import get_logger, kv
from ..utils.normalize import GAUGE, pct_change
from .aggregator import StatMetric, ValuePolicy, aggregate
from .timeseries import sales_frame
from . import normalizer

LOGGER = get_logger("services.market")

# Closed sales passed in are assumed to cover this many trailing months.
CMA_ABSORPTION_WINDOW_MONTHS = float(os.getenv("CMA_ABSORPTION_WINDOW_MONTHS", "6"))

SELLERS_MARKET_BELOW_MONTHS = 4.0
BUYERS_MARKET_ABOVE_MONTHS = 6.0


class MarketCondition(str, Enum):
    SELLERS = "Seller's Market"
    BALANCED = "Balanced"
    BUYERS = "Buyer's Market"


@dataclass(frozen=True)
class MarketReading:
    active_count: int
    closed_count: int
    window_months: float
    absorption_rate: float
    months_of_inventory: Optional[float]
    condition: Optional[MarketCondition]
    gauge_position: Optional[float]


@dataclass(frozen=True)
class YoYComparison:
    current_count: int
    prior_count: int
    current_average: Optional[float]
    prior_average: Optional[float]
    current_median: Optional[float]
    prior_median: Optional[float]
    avg_change_pct: Optional[float]
    median_change_pct: Optional[float]


@dataclass(frozen=True)
class ListToSaleSummary:
    average_pct: float
    min_pct: float
    max_pct: float
    count: int


def gauge_position(months_of_inventory: float) -> float:
    """Map months of inventory onto a 10-90 dial with 25-75 reserved for balanced."""

    if months_of_inventory < SELLERS_MARKET_BELOW_MONTHS:
        return GAUGE.clamp(25 - (SELLERS_MARKET_BELOW_MONTHS - months_of_inventory) * 6)
    if months_of_inventory > BUYERS_MARKET_ABOVE_MONTHS:
        return GAUGE.clamp(75 + (months_of_inventory - BUYERS_MARKET_ABOVE_MONTHS) * 3)
    return 25 + (months_of_inventory - SELLERS_MARKET_BELOW_MONTHS) / 2 * 50


def condition_for(months_of_inventory: float) -> MarketCondition:
    if months_of_inventory < SELLERS_MARKET_BELOW_MONTHS:
        return MarketCondition.SELLERS
    if months_of_inventory > BUYERS_MARKET_ABOVE_MONTHS:
        return MarketCondition.BUYERS
    return MarketCondition.BALANCED


def classify_market(
    active_count: int,
    closed_count: int,
    window_months: float = CMA_ABSORPTION_WINDOW_MONTHS,
) -> MarketReading:
    """Absorption rate, months of inventory and the resulting market condition.

    With no closed sales the absorption rate is 0 and months of inventory,
    condition and gauge are all ``None``; callers render those as "N/A".
    """

    active_count = max(int(active_count or 0), 0)
    closed_count = max(int(closed_count or 0), 0)
    absorption_rate = closed_count / window_months if window_months and window_months > 0 else 0.0

    months: Optional[float] = None
    condition: Optional[MarketCondition] = None
    gauge: Optional[float] = None
    if absorption_rate > 0:
        months = active_count / absorption_rate
        condition = condition_for(months)
        gauge = gauge_position(months)

    LOGGER.debug(
        kv("market_classified", active=active_count, closed=closed_count, months=months, condition=condition.value if condition else None)
    )
    return MarketReading(
        active_count=active_count,
        closed_count=closed_count,
        window_months=window_months,
        absorption_rate=absorption_rate,
        months_of_inventory=months,
        condition=condition,
        gauge_position=gauge,
    )


def yoy_compare(
    closed_sales: Iterable[PropertyRecord],
    now: Union[date, datetime, None] = None,
) -> YoYComparison:
    """Compare the trailing 12 months of closed prices with the 12 months before.

    The current window is ``[now - 1y, now]`` and the prior window is
    ``[now - 2y, now - 1y)``. A change is ``None`` whenever either window has
    no qualifying sale.
    """

    as_of = pd.Timestamp(now or date.today()).normalize()
    one_year_ago = as_of - pd.DateOffset(years=1)
    two_years_ago = as_of - pd.DateOffset(years=2)

    df = sales_frame(closed_sales)
    current = df[(df["close_date"] >= one_year_ago) & (df["close_date"] <= as_of)]["close_price"]
    prior = df[(df["close_date"] >= two_years_ago) & (df["close_date"] < one_year_ago)]["close_price"]

    current_stats = aggregate(current.tolist())
    prior_stats = aggregate(prior.tolist())
    current_average = None if current_stats.is_empty else current_stats.average
    prior_average = None if prior_stats.is_empty else prior_stats.average
    current_median = None if current_stats.is_empty else current_stats.median
    prior_median = None if prior_stats.is_empty else prior_stats.median

    return YoYComparison(
        current_count=current_stats.count,
        prior_count=prior_stats.count,
        current_average=current_average,
        prior_average=prior_average,
        current_median=current_median,
        prior_median=prior_median,
        avg_change_pct=pct_change(current_average, prior_average),
        median_change_pct=pct_change(current_median, prior_median),
    )


def list_to_sale_ratios(closed_sales: Iterable[PropertyRecord]) -> List[float]:
    """Close price as a percentage of list price, for sales with both prices."""

    ratios: List[float] = []
    for record in closed_sales:
        sold_for = normalizer.close_price(record)
        asked = normalizer.list_price(record)
        if sold_for is not None and asked is not None:
            ratios.append(sold_for / asked * 100)
    return ratios


def list_to_sale_summary(closed_sales: Iterable[PropertyRecord]) -> Optional[ListToSaleSummary]:
    metric = aggregate(list_to_sale_ratios(closed_sales))
    if metric.is_empty:
        return None
    return ListToSaleSummary(
        average_pct=metric.average,
        min_pct=metric.range.min,
        max_pct=metric.range.max,
        count=metric.count,
    )


def time_to_sell(closed_sales: Iterable[PropertyRecord]) -> Optional[StatMetric]:
    """Days-on-market statistics for closed sales; zero-day sales count."""

    metric = aggregate((normalizer.days_on_market(record) for record in closed_sales), ValuePolicy.NON_NEGATIVE)
    return None if metric.is_empty else metric


__all__ = [
    "CMA_ABSORPTION_WINDOW_MONTHS",
    "MarketCondition",
    "MarketReading",
    "YoYComparison",
    "ListToSaleSummary",
    "gauge_position",
    "condition_for",
    "classify_market",
    "yoy_compare",
    "list_to_sale_ratios",
    "list_to_sale_summary",
    "time_to_sell",
]
