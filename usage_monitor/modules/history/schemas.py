from __future__ import annotations

from pydantic import Field

from usage_monitor.modules.reports.schemas import HistoryPointSchema
from usage_monitor.modules.shared.schemas import DashboardModel


class HistoryResponse(DashboardModel):
    count: int
    points: list[HistoryPointSchema] = Field(default_factory=list)


class HistoryRecordResponse(DashboardModel):
    saved: bool
    point: HistoryPointSchema | None = None
