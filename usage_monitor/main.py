from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI

from usage_monitor.core.config.settings import get_settings
from usage_monitor.core.handlers.exceptions import add_exception_handlers
from usage_monitor.db.session import close_db, init_db
from usage_monitor.modules.accounts import api as accounts_api
from usage_monitor.modules.auth import api as auth_api
from usage_monitor.modules.history import api as history_api
from usage_monitor.modules.monitor.scheduler import get_monitor_scheduler
from usage_monitor.modules.realtime import api as realtime_api
from usage_monitor.modules.reports import api as reports_api
from usage_monitor.modules.settings import api as settings_api


@asynccontextmanager
async def lifespan(_: FastAPI) -> AsyncIterator[None]:
    await init_db()
    scheduler = get_monitor_scheduler()
    if get_settings().scheduler_enabled:
        scheduler.start()
    try:
        yield
    finally:
        await scheduler.stop()
        await close_db()


def create_app() -> FastAPI:
    app = FastAPI(title="usage-monitor", version="0.1.0", lifespan=lifespan)

    add_exception_handlers(app)

    app.include_router(auth_api.router)
    app.include_router(accounts_api.router)
    app.include_router(settings_api.router)
    app.include_router(history_api.router)
    app.include_router(reports_api.router)
    app.include_router(realtime_api.router)

    @app.get("/health")
    async def health_check() -> dict[str, str]:
        return {"status": "ok"}

    return app


app = create_app()
