from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from usage_monitor.core.usage.reset import (
    ResetDateValidationError,
    ResetState,
    apply_reset_date,
    check_auto_reset,
    check_auto_resets,
    reset_state,
    reset_to_defaults,
)
from usage_monitor.core.usage.types import AccountState

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 15, 12, 0, 0)


def test_auto_reset_fires_when_reset_date_has_passed():
    stale_date = NOW - timedelta(minutes=1)
    account = AccountState(account_number=1, usage_percent=72, reset_date=stale_date)

    outcome = check_auto_reset(account, now=NOW)

    assert outcome.fired is True
    assert outcome.account.usage_percent == 0
    assert outcome.account.needs_update is True
    assert outcome.account.reset_date == stale_date
    assert reset_state(outcome.account) == ResetState.AWAITING_NEW_RESET_DATE


def test_auto_reset_fires_exactly_at_reset_date():
    account = AccountState(account_number=1, usage_percent=10, reset_date=NOW)
    assert check_auto_reset(account, now=NOW).fired is True


def test_auto_reset_is_idempotent():
    account = AccountState(account_number=1, usage_percent=72, reset_date=NOW - timedelta(days=1))
    first = check_auto_reset(account, now=NOW)
    # Usage logged after the reset must survive later checks.
    logged = AccountState(account_number=1, usage_percent=15, reset_date=first.account.reset_date, needs_update=True)

    second = check_auto_reset(logged, now=NOW + timedelta(minutes=5))

    assert second.fired is False
    assert second.account == logged


def test_auto_reset_skips_future_or_missing_dates():
    outcomes = check_auto_resets(
        [
            AccountState(account_number=1, usage_percent=30, reset_date=NOW + timedelta(days=1)),
            AccountState(account_number=2, usage_percent=30),
        ],
        now=NOW,
    )
    assert [outcome.fired for outcome in outcomes] == [False, False]


def test_new_reset_date_must_be_in_the_future():
    account = AccountState(account_number=1, usage_percent=10)
    with pytest.raises(ResetDateValidationError):
        apply_reset_date(account, NOW, now=NOW)
    with pytest.raises(ResetDateValidationError):
        apply_reset_date(account, NOW - timedelta(days=1), now=NOW)


def test_new_reset_date_clears_attention_when_usage_is_zero():
    account = AccountState(account_number=1, usage_percent=0, reset_date=NOW - timedelta(days=1), needs_update=True)
    updated = apply_reset_date(account, NOW + timedelta(days=7), now=NOW)
    assert updated.needs_update is False
    assert updated.reset_date == NOW + timedelta(days=7)
    assert reset_state(updated) == ResetState.NORMAL


def test_new_reset_date_keeps_attention_when_usage_is_nonzero():
    account = AccountState(account_number=1, usage_percent=12, reset_date=NOW - timedelta(days=1), needs_update=True)
    updated = apply_reset_date(account, NOW + timedelta(days=7), now=NOW)
    assert updated.needs_update is True
    assert updated.reset_date == NOW + timedelta(days=7)


def test_reset_to_defaults_clears_everything_but_identity():
    account = AccountState(
        account_number=2,
        usage_percent=55,
        reset_date=NOW,
        needs_update=True,
        display_name="Work",
    )
    cleared = reset_to_defaults(account)
    assert cleared == AccountState(account_number=2, display_name="Work")
