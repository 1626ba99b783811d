from __future__ import annotations

from dataclasses import dataclass

from fastapi import Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from usage_monitor.core.config.settings import get_settings
from usage_monitor.db.session import get_session
from usage_monitor.modules.accounts.service import AccountsService
from usage_monitor.modules.auth.repository import UsersRepository
from usage_monitor.modules.auth.service import SESSION_COOKIE, AuthService, CurrentUser, get_session_store
from usage_monitor.modules.history.service import HistoryService
from usage_monitor.modules.monitor.scheduler import MonitorScheduler, get_monitor_scheduler
from usage_monitor.modules.monitor.store import UsageStore
from usage_monitor.modules.reports.service import ReportsService
from usage_monitor.modules.settings.service import SettingsService


@dataclass(slots=True)
class AuthContext:
    session: AsyncSession
    service: AuthService


@dataclass(slots=True)
class StoreContext:
    user: CurrentUser | None
    store: UsageStore


@dataclass(slots=True)
class AccountsContext:
    user: CurrentUser | None
    service: AccountsService
    scheduler: MonitorScheduler


@dataclass(slots=True)
class SettingsContext:
    user: CurrentUser | None
    service: SettingsService


@dataclass(slots=True)
class HistoryContext:
    user: CurrentUser | None
    service: HistoryService


@dataclass(slots=True)
class ReportsContext:
    user: CurrentUser | None
    service: ReportsService


def get_auth_context(
    session: AsyncSession = Depends(get_session),
) -> AuthContext:
    return AuthContext(session=session, service=AuthService(UsersRepository(session), get_session_store()))


async def get_current_user(
    request: Request,
    context: AuthContext = Depends(get_auth_context),
) -> CurrentUser | None:
    return await context.service.get_current_user(request.cookies.get(SESSION_COOKIE))


def get_store_context(
    session: AsyncSession = Depends(get_session),
    user: CurrentUser | None = Depends(get_current_user),
) -> StoreContext:
    store = UsageStore(session, user.id if user else None, account_count=get_settings().account_count)
    return StoreContext(user=user, store=store)


def get_accounts_context(
    context: StoreContext = Depends(get_store_context),
) -> AccountsContext:
    return AccountsContext(
        user=context.user,
        service=AccountsService(context.store),
        scheduler=get_monitor_scheduler(),
    )


def get_settings_context(
    context: StoreContext = Depends(get_store_context),
) -> SettingsContext:
    return SettingsContext(user=context.user, service=SettingsService(context.store))


def get_history_context(
    context: StoreContext = Depends(get_store_context),
) -> HistoryContext:
    return HistoryContext(user=context.user, service=HistoryService(context.store))


def get_reports_context(
    context: StoreContext = Depends(get_store_context),
) -> ReportsContext:
    return ReportsContext(user=context.user, service=ReportsService(context.store, tz=get_settings().tzinfo))
