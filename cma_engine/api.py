from fastapi import FastAPI, APIRouter, HTTPException
from dotenv import load_dotenv

load_dotenv(override=False)

from .models.property import FilterState
from .models.report import (
    PricingPayload,
    PricingResponse,
    ReportRequest,
    ReportResponse,
    TrendPointPayload,
    TrendResponse,
)
from .services.report_service import CMAReport, build_report
from .utils.logging import get_logger, id_list, kv

LOGGER = get_logger("api")

app = FastAPI(title="CMA Engine")
router = APIRouter(prefix="/api")


def _filter_state(req: ReportRequest) -> FilterState:
    try:
        return FilterState.from_values(req.status_filter, req.excluded_ids)
    except ValueError:
        raise HTTPException(400, detail=f"invalid status_filter: {req.status_filter!r}")


def _report_for(req: ReportRequest) -> CMAReport:
    filter_state = _filter_state(req)
    LOGGER.info(
        kv(
            "report_requested",
            records=len(req.records),
            status=filter_state.status_filter.value,
            excluded=id_list(filter_state.excluded_ids),
        )
    )
    return build_report(req.records, filter_state, req.as_of, req.subject)


@router.get("/health")
def health(): return {"status": "ok"}


@router.post("/cma/report", response_model=ReportResponse)
def cma_report(req: ReportRequest):
    report = _report_for(req)
    return ReportResponse(
        status_filter=report.filter_state.status_filter.value,
        excluded_ids=sorted(report.filter_state.excluded_ids),
        as_of=report.as_of,
        status_counts=dict(report.status_counts),
        included_count=report.included_count,
        statistics=report.statistics,
        market=report.market,
        yoy=report.yoy,
        list_to_sale=report.list_to_sale,
        time_to_sell=report.time_to_sell,
        pricing=report.pricing,
        monthly_trend=list(report.monthly_trend),
        period_change_pct=report.period_change_pct,
        size_price_trend=report.size_price_trend,
        acreage_trend=report.acreage_trend,
        avg_price_per_acre=report.avg_price_per_acre,
        subject_estimate=report.subject_estimate,
    )


@router.post("/cma/pricing", response_model=PricingResponse)
def cma_pricing(req: ReportRequest):
    report = _report_for(req)
    suggestion = report.pricing
    return PricingResponse(
        available=suggestion is not None,
        comps_considered=report.status_counts.get("closed", 0),
        suggestion=PricingPayload.model_validate(suggestion) if suggestion is not None else None,
    )


@router.post("/cma/trend", response_model=TrendResponse)
def cma_trend(req: ReportRequest):
    report = _report_for(req)
    return TrendResponse(
        points=[TrendPointPayload.model_validate(point) for point in report.monthly_trend],
        period_change_pct=report.period_change_pct,
    )


app.include_router(router)
