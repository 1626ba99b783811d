from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass, replace
from datetime import datetime
from enum import Enum

from usage_monitor.core.usage.types import AccountState

logger = logging.getLogger(__name__)


class ResetState(str, Enum):
    NORMAL = "normal"
    AWAITING_NEW_RESET_DATE = "awaiting_new_reset_date"


class ResetDateValidationError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class ResetOutcome:
    account: AccountState
    fired: bool


def reset_state(account: AccountState) -> ResetState:
    if account.needs_update:
        return ResetState.AWAITING_NEW_RESET_DATE
    return ResetState.NORMAL


def is_reset_due(account: AccountState, *, now: datetime) -> bool:
    if reset_state(account) != ResetState.NORMAL:
        return False
    return account.reset_date is not None and now >= account.reset_date


def check_auto_reset(account: AccountState, *, now: datetime) -> ResetOutcome:
    if not is_reset_due(account, now=now):
        return ResetOutcome(account=account, fired=False)
    logger.info(
        "Automatic reset fired account=%s reset_date=%s",
        account.account_number,
        account.reset_date.isoformat() if account.reset_date else None,
    )
    # The stale reset date stays until the user supplies a new one.
    return ResetOutcome(account=replace(account, usage_percent=0.0, needs_update=True), fired=True)


def check_auto_resets(accounts: Iterable[AccountState], *, now: datetime) -> list[ResetOutcome]:
    return [check_auto_reset(account, now=now) for account in accounts]


def apply_reset_date(account: AccountState, reset_date: datetime, *, now: datetime) -> AccountState:
    if reset_date <= now:
        raise ResetDateValidationError("Reset date must be in the future")
    # Attention is only cleared once usage has actually been brought back to zero.
    needs_update = account.needs_update and account.usage_percent != 0
    return replace(account, reset_date=reset_date, needs_update=needs_update)


def reset_to_defaults(account: AccountState) -> AccountState:
    return replace(account, usage_percent=0.0, reset_date=None, needs_update=False)
