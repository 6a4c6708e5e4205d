"""Rule-based suggested list-price range from closed comparable sales."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Iterable, List, Optional, Sequence, Tuple

import numpy as np

from ..models.property import PropertyRecord
from ..utils.logging import get_logger, kv
from ..utils.normalize import SCORE, TREND_INFLUENCE, round_half_up
from .aggregator import StatRange
from .market import list_to_sale_ratios
from . import normalizer

LOGGER = get_logger("services.pricing")

MIN_PRICED_COMPS = 2
MIN_DATED_COMPS_FOR_TREND = 3
QUICK_SALE_FACTOR = 0.98
MAX_VALUE_FACTOR = 1.02
HOT_MARKET_DOM = 21
SLOW_MARKET_DOM = 60


class MarketPace(str, Enum):
    HOT = "hot"
    BALANCED = "balanced"
    SLOW = "slow"


@dataclass(frozen=True)
class PricingSuggestion:
    suggested_low: int
    suggested_mid: int
    suggested_high: int
    quick_sale_price: int
    max_value_price: int
    avg_price_per_sqft: Optional[float]
    market_trend_adjustment_pct: float
    avg_list_to_sale_ratio_pct: Optional[float]
    avg_days_on_market: Optional[float]
    market_condition: MarketPace
    confidence_score: int
    comps_analyzed: int
    price_range: StatRange


def _mean(values: Sequence[float]) -> Optional[float]:
    if not values:
        return None
    return float(np.mean(values))


def quartiles(sorted_prices: Sequence[float]) -> Tuple[float, float]:
    """Q1/Q3 by sorted-array index ``floor(n * 0.25)`` / ``floor(n * 0.75)``."""

    last = len(sorted_prices) - 1
    q1 = sorted_prices[min(int(math.floor(len(sorted_prices) * 0.25)), last)]
    q3 = sorted_prices[min(int(math.floor(len(sorted_prices) * 0.75)), last)]
    return q1, q3


def market_trend_pct(closed_sales: Iterable[PropertyRecord]) -> float:
    """Later-half vs earlier-half average close price, by close date.

    Needs at least three dated sales; otherwise the trend is 0. Ties on the
    close date are broken by price so the split never depends on input order.
    """

    dated: List[Tuple[date, float]] = []
    for record in closed_sales:
        closed_on = normalizer.close_date(record)
        sold_for = normalizer.close_price(record)
        if closed_on is not None and sold_for is not None:
            dated.append((closed_on, sold_for))
    if len(dated) < MIN_DATED_COMPS_FOR_TREND:
        return 0.0

    dated.sort()
    midpoint = len(dated) // 2
    early_avg = float(np.mean([amount for _, amount in dated[:midpoint]]))
    late_avg = float(np.mean([amount for _, amount in dated[midpoint:]]))
    if early_avg <= 0:
        return 0.0
    return (late_avg - early_avg) / early_avg * 100


def pace_for(avg_days_on_market: Optional[float]) -> MarketPace:
    if avg_days_on_market is None:
        return MarketPace.BALANCED
    if avg_days_on_market < HOT_MARKET_DOM:
        return MarketPace.HOT
    if avg_days_on_market > SLOW_MARKET_DOM:
        return MarketPace.SLOW
    return MarketPace.BALANCED


def confidence_score(comps: int, price_per_sqft_samples: int, ratio_samples: int, trend_pct: float) -> int:
    score = 50
    score += min(20, comps * 2)
    score += 10 if price_per_sqft_samples >= 4 else 0
    score += 10 if ratio_samples >= 3 else 0
    score -= 10 if abs(trend_pct) > 10 else 0
    return int(SCORE.clamp(score))


def suggest_pricing(closed_sales: Iterable[PropertyRecord]) -> Optional[PricingSuggestion]:
    """Suggested price range from closed comparables, or ``None`` with too few priced sales."""

    priced = [record for record in closed_sales if normalizer.close_price(record) is not None]
    if len(priced) < MIN_PRICED_COMPS:
        LOGGER.debug(kv("pricing_unavailable", priced_comps=len(priced)))
        return None

    prices = sorted(normalizer.close_price(record) for record in priced)
    q1, q3 = quartiles(prices)

    trend_pct = market_trend_pct(priced)
    multiplier = 1 + TREND_INFLUENCE.clamp(trend_pct / 100)

    suggested_low = round_half_up(q1 * multiplier)
    suggested_high = round_half_up(q3 * multiplier)
    suggested_mid = round_half_up((q1 + q3) / 2 * multiplier)

    per_sqft = []
    for record in priced:
        size = normalizer.size_sqft(record)
        if size is not None:
            per_sqft.append(normalizer.close_price(record) / size)
    ratios = list_to_sale_ratios(priced)
    doms = [dom for dom in (normalizer.days_on_market(record) for record in priced) if dom is not None and dom > 0]
    avg_dom = _mean(doms)

    suggestion = PricingSuggestion(
        suggested_low=suggested_low,
        suggested_mid=suggested_mid,
        suggested_high=suggested_high,
        quick_sale_price=round_half_up(suggested_low * QUICK_SALE_FACTOR),
        max_value_price=round_half_up(suggested_high * MAX_VALUE_FACTOR),
        avg_price_per_sqft=_mean(per_sqft),
        market_trend_adjustment_pct=trend_pct,
        avg_list_to_sale_ratio_pct=_mean(ratios),
        avg_days_on_market=avg_dom,
        market_condition=pace_for(avg_dom),
        confidence_score=confidence_score(len(priced), len(per_sqft), len(ratios), trend_pct),
        comps_analyzed=len(priced),
        price_range=StatRange(min=prices[0], max=prices[-1]),
    )
    LOGGER.debug(
        kv(
            "pricing_suggested",
            comps=suggestion.comps_analyzed,
            mid=suggestion.suggested_mid,
            trend_pct=trend_pct,
            confidence=suggestion.confidence_score,
        )
    )
    return suggestion


def estimate_from_price_per_sqft(subject: PropertyRecord, closed_sales: Iterable[PropertyRecord]) -> Optional[int]:
    """Average closed price-per-sqft applied to the subject's living area."""

    subject_size = normalizer.size_sqft(subject)
    if subject_size is None:
        return None
    per_sqft = []
    for record in closed_sales:
        sold_for = normalizer.close_price(record)
        size = normalizer.size_sqft(record)
        if sold_for is not None and size is not None:
            per_sqft.append(sold_for / size)
    average = _mean(per_sqft)
    if average is None:
        return None
    return round_half_up(average * subject_size)


__all__ = [
    "MarketPace",
    "PricingSuggestion",
    "quartiles",
    "market_trend_pct",
    "pace_for",
    "confidence_score",
    "suggest_pricing",
    "estimate_from_price_per_sqft",
]
