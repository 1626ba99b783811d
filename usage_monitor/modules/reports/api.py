from __future__ import annotations

from fastapi import APIRouter, Depends, Query

from usage_monitor.core.utils.time import utcnow
from usage_monitor.dependencies import ReportsContext, get_reports_context
from usage_monitor.modules.reports.mappers import build_overview, build_report
from usage_monitor.modules.reports.schemas import OverviewResponse, ReportResponse

router = APIRouter(prefix="/api/reports", tags=["dashboard"])


@router.get("", response_model=ReportResponse)
async def get_report(
    context: ReportsContext = Depends(get_reports_context),
) -> ReportResponse:
    report = await context.service.build_report(now=utcnow())
    return build_report(report)


@router.get("/overview", response_model=OverviewResponse)
async def get_overview(
    days: int | None = Query(None, ge=1, le=365),
    context: ReportsContext = Depends(get_reports_context),
) -> OverviewResponse:
    overview = await context.service.build_overview(now=utcnow(), days=days)
    return build_overview(overview)
