"""Assemble every CMA statistic for one record set and filter state."""

from __future__ import annotations

import os
from dataclasses import dataclass
from datetime import date
from types import MappingProxyType
from typing import Mapping, Optional, Sequence, Tuple

from ..models.property import FilterState, PropertyRecord, StatusFilter
from ..utils.caching import fingerprint, memoize
from ..utils.logging import get_logger, kv
from .aggregator import PropertyStatistics, StatMetric, aggregate, property_statistics
from .inclusion import RentalPredicate, included_by_status
from .listing_rules import is_rental_or_lease
from .market import (
    ListToSaleSummary,
    MarketReading,
    YoYComparison,
    classify_market,
    list_to_sale_summary,
    time_to_sell,
    yoy_compare,
)
from .pricing import PricingSuggestion, estimate_from_price_per_sqft, suggest_pricing
from .regression import TrendLine, acreage_points, size_price_points, trendline
from .timeseries import TrendPoint, monthly_trend, period_change_pct
from . import normalizer

LOGGER = get_logger("services.report")

APPLY_RENTAL_RULE = os.getenv("CMA_APPLY_RENTAL_RULE", "true").strip().lower() not in {"0", "false", "no", "off"}
REPORT_CACHE_SIZE = int(os.getenv("CMA_REPORT_CACHE_SIZE", "64"))


@dataclass(frozen=True)
class CMAReport:
    filter_state: FilterState
    as_of: date
    status_counts: Mapping[str, int]
    included_count: int
    statistics: PropertyStatistics
    market: MarketReading
    yoy: YoYComparison
    list_to_sale: Optional[ListToSaleSummary]
    time_to_sell: Optional[StatMetric]
    pricing: Optional[PricingSuggestion]
    monthly_trend: Tuple[TrendPoint, ...]
    period_change_pct: Optional[float]
    size_price_trend: Optional[TrendLine]
    acreage_trend: Optional[TrendLine]
    avg_price_per_acre: Optional[float]
    subject_estimate: Optional[int]


def _report_key(service, records, filter_state, as_of, subject=None):
    subject_key = subject.canonical_json() if subject is not None else None
    return (
        fingerprint(record.canonical_json() for record in records),
        filter_state,
        as_of,
        subject_key,
        service.rental_predicate,
    )


class CMAReportService:
    def __init__(self, rental_predicate: Optional[RentalPredicate] = None) -> None:
        self.rental_predicate = rental_predicate

    def build_report(
        self,
        records: Sequence[PropertyRecord],
        filter_state: Optional[FilterState] = None,
        as_of: Optional[date] = None,
        subject: Optional[PropertyRecord] = None,
    ) -> CMAReport:
        return self._build(tuple(records), filter_state or FilterState(), as_of or date.today(), subject)

    @memoize("report.build", key=_report_key, maxsize=REPORT_CACHE_SIZE)
    def _build(
        self,
        records: Sequence[PropertyRecord],
        filter_state: FilterState,
        as_of: date,
        subject: Optional[PropertyRecord] = None,
    ) -> CMAReport:
        partitions = included_by_status(records, filter_state, self.rental_predicate)
        included = partitions[filter_state.status_filter]
        closed = partitions[StatusFilter.CLOSED]
        active = partitions[StatusFilter.ACTIVE]

        trend = tuple(monthly_trend(closed))
        report = CMAReport(
            filter_state=filter_state,
            as_of=as_of,
            status_counts=MappingProxyType({status_filter.value: len(rows) for status_filter, rows in partitions.items()}),
            included_count=len(included),
            statistics=property_statistics(included),
            market=classify_market(len(active), len(closed)),
            yoy=yoy_compare(closed, as_of),
            list_to_sale=list_to_sale_summary(closed),
            time_to_sell=time_to_sell(closed),
            pricing=suggest_pricing(closed),
            monthly_trend=trend,
            period_change_pct=period_change_pct(trend),
            size_price_trend=trendline(size_price_points(included)),
            acreage_trend=trendline(acreage_points(included, self.rental_predicate)),
            avg_price_per_acre=self._avg_price_per_acre(included, closed),
            subject_estimate=estimate_from_price_per_sqft(subject, closed) if subject is not None else None,
        )
        LOGGER.info(
            kv(
                "report_built",
                records=len(records),
                included=report.included_count,
                closed=len(closed),
                status=filter_state.status_filter.value,
                excluded=len(filter_state.excluded_ids),
                pricing="yes" if report.pricing else "no",
            )
        )
        return report

    @staticmethod
    def _avg_price_per_acre(included: Sequence[PropertyRecord], closed: Sequence[PropertyRecord]) -> Optional[float]:
        """Closed sales when any carry acreage, otherwise every included listing."""

        closed_metric = aggregate(normalizer.price_per_acre(record) for record in closed)
        if not closed_metric.is_empty:
            return closed_metric.average
        included_metric = aggregate(normalizer.price_per_acre(record) for record in included)
        return None if included_metric.is_empty else included_metric.average


_SERVICE_SINGLETON: CMAReportService | None = None


def _get_default_service() -> CMAReportService:
    global _SERVICE_SINGLETON
    if _SERVICE_SINGLETON is None:
        _SERVICE_SINGLETON = CMAReportService(is_rental_or_lease if APPLY_RENTAL_RULE else None)
    return _SERVICE_SINGLETON


def build_report(
    records: Sequence[PropertyRecord],
    filter_state: Optional[FilterState] = None,
    as_of: Optional[date] = None,
    subject: Optional[PropertyRecord] = None,
) -> CMAReport:
    """Module-level helper used by the FastAPI layer."""

    return _get_default_service().build_report(records, filter_state, as_of, subject)
