from __future__ import annotations

from collections.abc import Sequence

from fastapi import APIRouter, Body, Depends
from fastapi.responses import JSONResponse

from usage_monitor.core.errors import dashboard_error
from usage_monitor.core.usage.display import account_display
from usage_monitor.core.usage.reset import ResetDateValidationError, reset_state
from usage_monitor.core.usage.types import AccountState
from usage_monitor.core.usage.validation import UsageValidationError
from usage_monitor.core.utils.time import utcnow
from usage_monitor.dependencies import AccountsContext, get_accounts_context
from usage_monitor.modules.accounts.schemas import (
    AccountEntry,
    AccountsResponse,
    AccountsSaveRequest,
    AccountsSaveResponse,
    AccountUpdateRequest,
    ResetCheckResponse,
)
from usage_monitor.modules.accounts.service import AccountNotFoundError, NotSignedInError

router = APIRouter(prefix="/api/accounts", tags=["dashboard"])


def _entry(account: AccountState, capacity: float) -> AccountEntry:
    display = account_display(account, capacity)
    return AccountEntry(
        account_number=account.account_number,
        display_name=account.name,
        usage_percent=account.usage_percent,
        reset_date=account.reset_date,
        needs_update=account.needs_update,
        reset_state=reset_state(account).value,
        remaining=display.remaining,
        normalized_percent=display.normalized_percent,
        availability=display.availability.value,
        load=display.load.value,
    )


def _entries(accounts: Sequence[AccountState], capacity: float) -> list[AccountEntry]:
    return [_entry(account, capacity) for account in accounts]


def _sign_in_required() -> JSONResponse:
    return JSONResponse(status_code=401, content=dashboard_error("authentication_required", "Sign in required"))


def _account_not_found(exc: Exception) -> JSONResponse:
    return JSONResponse(status_code=404, content=dashboard_error("account_not_found", str(exc)))


@router.get("", response_model=AccountsResponse)
async def list_accounts(
    context: AccountsContext = Depends(get_accounts_context),
) -> AccountsResponse:
    settings = await context.service.get_settings()
    accounts = await context.service.list_accounts()
    return AccountsResponse(capacity=settings.capacity, accounts=_entries(accounts, settings.capacity))


@router.put("", response_model=AccountsSaveResponse)
async def save_accounts(
    payload: AccountsSaveRequest = Body(...),
    context: AccountsContext = Depends(get_accounts_context),
) -> AccountsSaveResponse | JSONResponse:
    try:
        result = await context.service.save_all(payload.usages, now=utcnow())
    except NotSignedInError:
        return _sign_in_required()
    except AccountNotFoundError as exc:
        return _account_not_found(exc)
    except UsageValidationError as exc:
        return JSONResponse(status_code=400, content=dashboard_error("invalid_usage", str(exc)))
    settings = await context.service.get_settings()
    return AccountsSaveResponse(
        capacity=settings.capacity,
        accounts=_entries(result.accounts, settings.capacity),
        history_saved=result.history_point is not None,
    )


@router.patch("/{account_number}", response_model=AccountEntry)
async def update_account(
    account_number: int,
    payload: AccountUpdateRequest = Body(...),
    context: AccountsContext = Depends(get_accounts_context),
) -> AccountEntry | JSONResponse:
    try:
        account = await context.service.update_account(
            account_number,
            now=utcnow(),
            usage_percent=payload.usage_percent,
            reset_date=payload.reset_date,
        )
    except NotSignedInError:
        return _sign_in_required()
    except AccountNotFoundError as exc:
        return _account_not_found(exc)
    except UsageValidationError as exc:
        return JSONResponse(status_code=400, content=dashboard_error("invalid_usage", str(exc)))
    except ResetDateValidationError as exc:
        return JSONResponse(status_code=400, content=dashboard_error("invalid_reset_date", str(exc)))
    if context.user is not None and payload.usage_percent is not None:
        context.scheduler.schedule_history_snapshot(context.user.id)
    settings = await context.service.get_settings()
    return _entry(account, settings.capacity)


@router.delete("/{account_number}", response_model=AccountEntry)
async def reset_account(
    account_number: int,
    context: AccountsContext = Depends(get_accounts_context),
) -> AccountEntry | JSONResponse:
    try:
        account = await context.service.reset_account(account_number)
    except NotSignedInError:
        return _sign_in_required()
    except AccountNotFoundError as exc:
        return _account_not_found(exc)
    settings = await context.service.get_settings()
    return _entry(account, settings.capacity)


@router.post("/reset-check", response_model=ResetCheckResponse)
async def run_reset_check(
    context: AccountsContext = Depends(get_accounts_context),
) -> ResetCheckResponse | JSONResponse:
    if context.user is None:
        return _sign_in_required()
    fired = await context.service.run_reset_check(now=utcnow())
    return ResetCheckResponse(reset_accounts=fired)
