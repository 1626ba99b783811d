from __future__ import annotations

from fastapi import APIRouter, Depends, Query
from fastapi.responses import JSONResponse

from usage_monitor.core.errors import dashboard_error
from usage_monitor.core.utils.time import utcnow
from usage_monitor.dependencies import HistoryContext, get_history_context
from usage_monitor.modules.history.schemas import HistoryRecordResponse, HistoryResponse
from usage_monitor.modules.reports.mappers import build_history_point

router = APIRouter(prefix="/api/history", tags=["dashboard"])


def _sign_in_required() -> JSONResponse:
    return JSONResponse(status_code=401, content=dashboard_error("authentication_required", "Sign in required"))


@router.get("", response_model=HistoryResponse)
async def list_history(
    days: int | None = Query(None, ge=1, le=365),
    limit: int | None = Query(None, ge=1, le=10000),
    context: HistoryContext = Depends(get_history_context),
) -> HistoryResponse:
    samples = await context.service.list_history(now=utcnow(), days=days, limit=limit)
    return HistoryResponse(count=len(samples), points=[build_history_point(sample) for sample in samples])


@router.post("", response_model=HistoryRecordResponse)
async def record_history(
    context: HistoryContext = Depends(get_history_context),
) -> HistoryRecordResponse | JSONResponse:
    if context.user is None:
        return _sign_in_required()
    sample = await context.service.record_snapshot(now=utcnow())
    return HistoryRecordResponse(
        saved=sample is not None,
        point=build_history_point(sample) if sample is not None else None,
    )


@router.delete("")
async def clear_history(
    context: HistoryContext = Depends(get_history_context),
) -> JSONResponse:
    if context.user is None:
        return _sign_in_required()
    cleared = await context.service.clear()
    if not cleared:
        return JSONResponse(status_code=500, content=dashboard_error("history_clear_failed", "Could not clear history"))
    return JSONResponse(status_code=200, content={"status": "cleared"})
