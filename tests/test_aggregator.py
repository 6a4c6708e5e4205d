import math

import pytest

from cma_engine.models.property import PropertyRecord
from cma_engine.services.aggregator import (
    EMPTY_METRIC,
    ValuePolicy,
    aggregate,
    property_statistics,
)


def test_aggregate_basic_series():
    metric = aggregate([3, 1, 2])
    assert metric.range.min == 1
    assert metric.range.max == 3
    assert metric.median == 2
    assert metric.average == pytest.approx(2)
    assert metric.count == 3


def test_even_series_median_averages_middle_pair():
    metric = aggregate([400000, 100000, 300000, 200000])
    assert metric.median == 250000


@pytest.mark.parametrize(
    "values",
    [
        [0.1, 0.1, 0.1],
        [1e9, 1e9 + 1, 1e9 + 2],
        [5],
        [12.5, 3.25, 99.0, 42.0, 7.75],
    ],
)
def test_median_and_average_stay_within_range(values):
    metric = aggregate(values)
    assert metric.range.min <= metric.median <= metric.range.max
    assert metric.range.min <= metric.average <= metric.range.max


@pytest.mark.parametrize("values", [[], [None, "abc", float("nan"), float("inf"), -5, 0]])
def test_empty_or_invalid_series_is_all_zero(values):
    metric = aggregate(values)
    assert metric == EMPTY_METRIC
    assert metric.range.min == 0 and metric.range.max == 0
    assert metric.average == 0 and metric.median == 0
    assert not math.isnan(metric.average)


def test_non_negative_policy_keeps_zero():
    assert aggregate([0, 10], ValuePolicy.NON_NEGATIVE).count == 2
    assert aggregate([0, 10]).count == 1


def test_aggregate_ignores_input_order():
    assert aggregate([5, 1, 9, 3]) == aggregate([9, 3, 1, 5])


def test_property_statistics_per_metric():
    records = [
        PropertyRecord(id="A", status="Active", list_price=300000, living_area=1500, bedrooms=3),
        PropertyRecord(id="B", status="Closed", close_price=500000, living_area=2500, bedrooms=4),
        PropertyRecord(id="C", status="Active", list_price="not listed"),
    ]
    stats = property_statistics(records)
    assert stats.price.count == 2
    assert stats.price.range.min == 300000
    assert stats.price.range.max == 500000
    assert stats.price_per_sqft.average == pytest.approx(200)
    assert stats.bedrooms.median == 3.5
    assert stats.acres.is_empty
