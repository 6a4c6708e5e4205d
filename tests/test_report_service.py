from datetime import date

import pytest

from cma_engine.models.property import FilterState, PropertyRecord
from cma_engine.services.listing_rules import is_rental_or_lease
from cma_engine.services.market import MarketCondition
from cma_engine.services.report_service import REPORT_CACHE_SIZE, CMAReportService
from cma_engine.utils.caching import cache_size, clear_prefix

AS_OF = date(2024, 6, 30)


@pytest.fixture(autouse=True)
def _fresh_cache():
    clear_prefix("report.build")
    yield
    clear_prefix("report.build")


def _records():
    return [
        PropertyRecord(id="A1", status="Active", list_price=450000, living_area=2200, lot_size_acres=0.5),
        PropertyRecord(id="A2", status="Active", list_price=425000, living_area=2000),
        PropertyRecord(id="C1", status="Closed", close_price=400000, list_price=410000, living_area=2000,
                       lot_size_acres=0.5, close_date=date(2024, 1, 15), days_on_market=20),
        PropertyRecord(id="C2", status="Closed", close_price=420000, list_price=420000, living_area=2100,
                       lot_size_acres=0.4, close_date=date(2024, 3, 10), days_on_market=30),
        PropertyRecord(id="C3", status="Closed", close_price=380000, list_price=395000, living_area=1900,
                       close_date=date(2023, 3, 3), days_on_market=45),
        PropertyRecord.model_validate({"id": "R1", "status": "Closed", "closePrice": 2800, "type": "Lease",
                                       "closeDate": "2024-02-01"}),
    ]


def test_report_assembles_every_section():
    service = CMAReportService(is_rental_or_lease)
    report = service.build_report(_records(), FilterState(), as_of=AS_OF,
                                  subject=PropertyRecord(id="SUBJ", living_area=2000))
    assert report.status_counts["all"] == 6
    assert report.status_counts["closed"] == 3
    assert report.status_counts["active"] == 2
    assert report.included_count == 6
    assert report.market.absorption_rate == pytest.approx(0.5)
    assert report.market.months_of_inventory == pytest.approx(4)
    assert report.market.condition is MarketCondition.BALANCED
    assert report.yoy.current_count == 2
    assert report.yoy.prior_count == 1
    assert report.pricing is not None
    assert report.pricing.comps_analyzed == 3
    assert [point.month_key for point in report.monthly_trend] == ["2023-03", "2024-01", "2024-03"]
    assert report.size_price_trend is not None
    assert report.acreage_trend is not None
    assert report.avg_price_per_acre == pytest.approx(925000)
    assert report.subject_estimate == 400000


def test_status_filter_narrows_statistics_only():
    service = CMAReportService(is_rental_or_lease)
    report = service.build_report(_records(), FilterState.from_values("active"), as_of=AS_OF)
    assert report.included_count == 2
    assert report.statistics.price.range.min == 425000
    assert report.pricing.comps_analyzed == 3


def test_exclusions_change_pricing():
    service = CMAReportService(is_rental_or_lease)
    state = FilterState.from_values("closed", ["C1", "C2"])
    report = service.build_report(_records(), state, as_of=AS_OF)
    assert report.included_count == 1
    assert report.pricing is None
    assert report.market.closed_count == 1


def test_rentals_kept_without_predicate():
    report = CMAReportService().build_report(_records(), FilterState.from_values("closed"), as_of=AS_OF)
    assert report.status_counts["closed"] == 4


def test_reports_memoised_by_content_and_filter_state():
    service = CMAReportService(is_rental_or_lease)
    records = _records()
    first = service.build_report(records, FilterState(), as_of=AS_OF)
    reordered = service.build_report(list(reversed(records)), FilterState(), as_of=AS_OF)
    assert reordered is first
    assert cache_size("report.build") == 1

    toggled = service.build_report(records, FilterState().toggle("C1"), as_of=AS_OF)
    assert toggled is not first
    assert toggled.status_counts["closed"] == 2
    assert cache_size("report.build") == 2


def test_report_cache_is_bounded():
    service = CMAReportService(is_rental_or_lease)
    for i in range(REPORT_CACHE_SIZE + 10):
        service.build_report([PropertyRecord(id=f"B{i}", status="Active", list_price=100000 + i)], as_of=AS_OF)
    assert cache_size("report.build") == REPORT_CACHE_SIZE


def test_cached_report_containers_are_read_only():
    service = CMAReportService(is_rental_or_lease)
    report = service.build_report(_records(), FilterState(), as_of=AS_OF)
    with pytest.raises(TypeError):
        report.status_counts["closed"] = 99
    assert isinstance(report.monthly_trend, tuple)
    again = service.build_report(_records(), FilterState(), as_of=AS_OF)
    assert again.status_counts["closed"] == 3
