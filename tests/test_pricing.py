from datetime import date

import pytest

from cma_engine.models.property import PropertyRecord
from cma_engine.services.pricing import (
    MarketPace,
    confidence_score,
    estimate_from_price_per_sqft,
    market_trend_pct,
    pace_for,
    quartiles,
    suggest_pricing,
)


def _sale(sale_id, close_price, close_date=None, **fields):
    return PropertyRecord(id=sale_id, status="Closed", close_price=close_price, close_date=close_date, **fields)


def _sample():
    return [
        _sale("S1", 300000, date(2024, 1, 1), living_area=2000),
        _sale("S2", 310000, date(2024, 2, 1), living_area=2000),
        _sale("S3", 295000, date(2024, 3, 1), living_area=2000),
        _sale("S4", 320000, date(2024, 3, 31), living_area=2000),
    ]


def test_sample_set_ordering_and_confidence():
    suggestion = suggest_pricing(_sample())
    assert suggestion.suggested_low <= suggestion.suggested_mid <= suggestion.suggested_high
    assert 0 <= suggestion.confidence_score <= 100
    assert suggestion.comps_analyzed == 4
    assert suggestion.avg_price_per_sqft == pytest.approx(153.125)
    assert suggestion.price_range.min == 295000
    assert suggestion.price_range.max == 320000
    # 50 base, +8 for four comps, +10 for four price-per-sqft samples
    assert suggestion.confidence_score == 68


def test_undated_sales_have_no_trend_adjustment():
    sales = [_sale(f"S{i}", price) for i, price in enumerate([300000, 310000, 295000, 320000])]
    suggestion = suggest_pricing(sales)
    assert suggestion.market_trend_adjustment_pct == 0
    assert suggestion.suggested_low == 300000
    assert suggestion.suggested_mid == 310000
    assert suggestion.suggested_high == 320000
    assert suggestion.quick_sale_price == 294000
    assert suggestion.max_value_price == 326400
    assert suggestion.avg_price_per_sqft is None
    assert suggestion.avg_list_to_sale_ratio_pct is None
    assert suggestion.market_condition is MarketPace.BALANCED


def test_fewer_than_two_priced_sales_is_unavailable():
    assert suggest_pricing([]) is None
    assert suggest_pricing([_sale("S1", 300000), _sale("S2", 0)]) is None


def test_quartile_indices():
    assert quartiles([1, 2]) == (1, 2)
    assert quartiles([10, 20, 30, 40, 50, 60, 70, 80]) == (30, 70)


def test_trend_adjustment_is_capped():
    sales = [
        _sale("S1", 200000, date(2024, 1, 1)),
        _sale("S2", 200000, date(2024, 1, 2)),
        _sale("S3", 400000, date(2024, 2, 1)),
        _sale("S4", 400000, date(2024, 2, 2)),
    ]
    assert market_trend_pct(sales) == pytest.approx(100)
    suggestion = suggest_pricing(sales)
    # q1 = 200000, q3 = 400000, multiplier capped at 1.10
    assert suggestion.suggested_low == 220000
    assert suggestion.suggested_high == 440000
    assert suggestion.confidence_score == 48


def test_pace_thresholds():
    assert pace_for(None) is MarketPace.BALANCED
    assert pace_for(10) is MarketPace.HOT
    assert pace_for(21) is MarketPace.BALANCED
    assert pace_for(60) is MarketPace.BALANCED
    assert pace_for(61) is MarketPace.SLOW


def test_confidence_score_bounds():
    assert confidence_score(100, 10, 10, 0) == 90
    assert confidence_score(2, 0, 0, 25) == 44


def test_subject_estimate_from_price_per_sqft():
    subject = PropertyRecord(id="SUBJ", living_area=2000)
    comps = [_sale("S1", 300000, living_area=2000), _sale("S2", 150000, living_area=1000)]
    assert estimate_from_price_per_sqft(subject, comps) == 300000
    assert estimate_from_price_per_sqft(PropertyRecord(id="SUBJ"), comps) is None


def test_trend_split_ignores_input_order_on_shared_close_dates():
    sales = [
        _sale("S1", 300000, date(2024, 1, 5)),
        _sale("S2", 100000, date(2024, 1, 5)),
        _sale("S3", 200000, date(2024, 2, 5)),
    ]
    # split after (Jan 5, 100000): early 100000, late mean(300000, 200000)
    assert market_trend_pct(sales) == pytest.approx(150)
    assert market_trend_pct(list(reversed(sales))) == pytest.approx(150)
    assert suggest_pricing(sales) == suggest_pricing(list(reversed(sales)))
