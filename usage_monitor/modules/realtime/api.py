from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, Response, StreamingResponse

from usage_monitor.core.config.settings import get_settings
from usage_monitor.core.errors import dashboard_error
from usage_monitor.core.realtime import get_realtime_hub
from usage_monitor.db.session import SessionLocal
from usage_monitor.dependencies import get_current_user
from usage_monitor.modules.auth.service import CurrentUser
from usage_monitor.modules.monitor.ports import PersistenceStore
from usage_monitor.modules.monitor.store import UsageStore
from usage_monitor.modules.realtime.service import StoreFactory, snapshot_stream

router = APIRouter(prefix="/api/realtime", tags=["dashboard"])


def _store_factory(user_id: str) -> StoreFactory:
    account_count = get_settings().account_count

    @asynccontextmanager
    async def _open() -> AsyncIterator[PersistenceStore]:
        async with SessionLocal() as session:
            yield UsageStore(session, user_id, account_count=account_count)

    return _open


@router.get("/stream")
async def stream_snapshots(
    user: CurrentUser | None = Depends(get_current_user),
) -> Response:
    if user is None:
        return JSONResponse(status_code=401, content=dashboard_error("authentication_required", "Sign in required"))
    stream = snapshot_stream(
        user.id,
        _store_factory(user.id),
        get_realtime_hub(),
        refresh_interval_seconds=get_settings().metrics_refresh_interval_seconds,
    )
    return StreamingResponse(stream, media_type="text/event-stream", headers={"Cache-Control": "no-cache"})
