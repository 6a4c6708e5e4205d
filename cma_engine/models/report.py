"""Pydantic schemas for CMA report requests and responses."""

from __future__ import annotations

from datetime import date
from typing import Dict, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field

from ..services.market import MarketCondition
from ..services.pricing import MarketPace
from .property import PropertyRecord


class _FromEngine(BaseModel):
    model_config = ConfigDict(from_attributes=True)


class StatRangePayload(_FromEngine):
    min: float
    max: float


class StatMetricPayload(_FromEngine):
    range: StatRangePayload
    average: float
    median: float
    count: int


class PropertyStatisticsPayload(_FromEngine):
    price: StatMetricPayload
    price_per_sqft: StatMetricPayload
    days_on_market: StatMetricPayload
    living_area: StatMetricPayload
    lot_size: StatMetricPayload
    acres: StatMetricPayload
    bedrooms: StatMetricPayload
    bathrooms: StatMetricPayload
    year_built: StatMetricPayload


class MarketReadingPayload(_FromEngine):
    active_count: int
    closed_count: int
    window_months: float
    absorption_rate: float
    months_of_inventory: Optional[float] = None
    condition: Optional[MarketCondition] = None
    gauge_position: Optional[float] = None


class YoYPayload(_FromEngine):
    current_count: int
    prior_count: int
    current_average: Optional[float] = None
    prior_average: Optional[float] = None
    current_median: Optional[float] = None
    prior_median: Optional[float] = None
    avg_change_pct: Optional[float] = None
    median_change_pct: Optional[float] = None


class ListToSalePayload(_FromEngine):
    average_pct: float
    min_pct: float
    max_pct: float
    count: int


class PricingPayload(_FromEngine):
    suggested_low: int
    suggested_mid: int
    suggested_high: int
    quick_sale_price: int
    max_value_price: int
    avg_price_per_sqft: Optional[float] = None
    market_trend_adjustment_pct: float
    avg_list_to_sale_ratio_pct: Optional[float] = None
    avg_days_on_market: Optional[float] = None
    market_condition: MarketPace
    confidence_score: int
    comps_analyzed: int
    price_range: StatRangePayload


class TrendPointPayload(_FromEngine):
    month_key: str
    average_price: float
    sale_count: int
    min_price: float
    max_price: float


class RegressionPayload(_FromEngine):
    slope: float
    intercept: float


class TrendLinePayload(_FromEngine):
    fit: RegressionPayload
    start: Tuple[float, float]
    end: Tuple[float, float]
    sample_size: int


class ReportRequest(BaseModel):
    records: List[PropertyRecord] = Field(default_factory=list)
    status_filter: str = "all"
    excluded_ids: List[str] = Field(default_factory=list)
    as_of: Optional[date] = None
    subject: Optional[PropertyRecord] = None


class ReportResponse(BaseModel):
    status_filter: str
    excluded_ids: List[str]
    as_of: date
    status_counts: Dict[str, int]
    included_count: int
    statistics: PropertyStatisticsPayload
    market: MarketReadingPayload
    yoy: YoYPayload
    list_to_sale: Optional[ListToSalePayload] = None
    time_to_sell: Optional[StatMetricPayload] = None
    pricing: Optional[PricingPayload] = None
    monthly_trend: List[TrendPointPayload]
    period_change_pct: Optional[float] = None
    size_price_trend: Optional[TrendLinePayload] = None
    acreage_trend: Optional[TrendLinePayload] = None
    avg_price_per_acre: Optional[float] = None
    subject_estimate: Optional[int] = None


class PricingResponse(BaseModel):
    available: bool
    comps_considered: int
    suggestion: Optional[PricingPayload] = None


class TrendResponse(BaseModel):
    points: List[TrendPointPayload]
    period_change_pct: Optional[float] = None
