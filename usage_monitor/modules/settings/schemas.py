from __future__ import annotations

from pydantic import Field

from usage_monitor.core.usage import CapacityMode
from usage_monitor.modules.shared.schemas import DashboardModel


class SettingsResponse(DashboardModel):
    capacity_mode: CapacityMode
    x2_mode: bool
    capacity: float
    account_names: dict[int, str] = Field(default_factory=dict)


class SettingsUpdateRequest(DashboardModel):
    capacity_mode: CapacityMode | None = None
    x2_mode: bool | None = None
    account_names: dict[int, str] | None = None
