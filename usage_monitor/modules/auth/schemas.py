from __future__ import annotations

from pydantic import Field

from usage_monitor.modules.shared.schemas import DashboardModel


class CredentialsRequest(DashboardModel):
    email: str = Field(min_length=3, max_length=320)
    password: str = Field(min_length=1, max_length=1024)


class PasswordChangeRequest(DashboardModel):
    current_password: str = Field(min_length=1, max_length=1024)
    new_password: str = Field(min_length=1, max_length=1024)


class SessionResponse(DashboardModel):
    authenticated: bool
    user_id: str | None = None
    email: str | None = None
