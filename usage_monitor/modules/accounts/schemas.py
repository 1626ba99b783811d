from __future__ import annotations

from datetime import datetime

from pydantic import Field, field_validator

from usage_monitor.core.utils.time import to_utc_naive
from usage_monitor.modules.shared.schemas import DashboardModel


class AccountEntry(DashboardModel):
    account_number: int
    display_name: str
    usage_percent: float
    reset_date: datetime | None = None
    needs_update: bool
    reset_state: str
    remaining: float
    normalized_percent: float
    availability: str
    load: str


class AccountsResponse(DashboardModel):
    capacity: float
    accounts: list[AccountEntry] = Field(default_factory=list)


class AccountsSaveRequest(DashboardModel):
    usages: dict[int, float]


class AccountsSaveResponse(AccountsResponse):
    history_saved: bool


class AccountUpdateRequest(DashboardModel):
    usage_percent: float | None = None
    reset_date: datetime | None = None

    @field_validator("reset_date")
    @classmethod
    def _normalize_reset_date(cls, value: datetime | None) -> datetime | None:
        if value is None:
            return None
        return to_utc_naive(value)


class ResetCheckResponse(DashboardModel):
    reset_accounts: list[int] = Field(default_factory=list)
