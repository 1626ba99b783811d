from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from usage_monitor.core.usage.scoring import (
    balance_score,
    efficiency_label,
    efficiency_score,
    recommend_account,
    recommendation_reasons,
    suggested_distribution,
    timing_score,
    utilization_score,
)
from usage_monitor.core.usage.types import AccountState

pytestmark = pytest.mark.unit

NOW = datetime(2024, 6, 15, 12, 0, 0)


def _accounts(*usages: float, reset_in_days: list[float | None] | None = None) -> list[AccountState]:
    resets = reset_in_days or [None] * len(usages)
    return [
        AccountState(
            account_number=index + 1,
            usage_percent=usage,
            reset_date=NOW + timedelta(days=days) if days is not None else None,
        )
        for index, (usage, days) in enumerate(zip(usages, resets))
    ]


def test_balance_score_for_even_and_spread_usage():
    assert balance_score(_accounts(30, 30, 30)) == 100
    assert balance_score(_accounts(0, 50, 100)) == 59


def test_utilization_score_is_capped_average():
    assert utilization_score(_accounts(10, 20, 30)) == 20
    assert utilization_score(_accounts(150, 150, 150)) == 100


def test_timing_score_rewards_and_penalizes():
    assert timing_score(_accounts(90, 20, 10), now=NOW) == 50
    assert timing_score(_accounts(90, reset_in_days=[1]), now=NOW) == 65
    assert timing_score(_accounts(90, reset_in_days=[6]), now=NOW) == 35
    assert timing_score(_accounts(20, reset_in_days=[1]), now=NOW) == 40
    assert timing_score(_accounts(10, 10, 10, 10, 10, 10, reset_in_days=[1] * 6), now=NOW) == 0


def test_efficiency_label_bands():
    assert efficiency_label(80) == "Excellent"
    assert efficiency_label(60) == "Good"
    assert efficiency_label(40) == "Average"
    assert efficiency_label(39) == "Low"


def test_efficiency_score_is_rounded_mean():
    score = efficiency_score(_accounts(30, 30, 30), now=NOW)
    assert (score.utilization, score.balance, score.timing) == (30, 100, 50)
    assert score.score == 60
    assert score.label == "Good"


def test_recommendation_prefers_most_remaining_capacity():
    recommendation = recommend_account(_accounts(10, 50, 96), now=NOW)
    assert recommendation is not None
    assert recommendation.account_number == 1
    assert recommendation.available == 90


def test_recommendation_penalty_outweighs_reset_bonus():
    recommendation = recommend_account(_accounts(60, 50, 99, reset_in_days=[None, None, 1]), now=NOW)
    assert recommendation is not None
    assert recommendation.account_number == 2


def test_recommendation_reset_bonus_applies_within_three_days():
    recommendation = recommend_account(_accounts(10, 50, reset_in_days=[None, 2]), now=NOW)
    assert recommendation is not None
    assert recommendation.account_number == 2


def test_recommendation_ties_keep_lowest_account():
    recommendation = recommend_account(_accounts(40, 40, 40), now=NOW)
    assert recommendation is not None
    assert recommendation.account_number == 1


def test_recommendation_requires_accounts():
    assert recommend_account([], now=NOW) is None


def test_recommendation_reasons_are_bounded():
    accounts = _accounts(10, 70, 80, reset_in_days=[1, None, None])
    reasons = recommendation_reasons(accounts[0], accounts, now=NOW)
    assert len(reasons) == 4
    assert reasons[0].startswith("More than 50%")


def test_recommendation_reasons_fall_back_to_balance_message():
    accounts = _accounts(60, 60)
    assert recommendation_reasons(accounts[0], accounts, now=NOW) == (
        "Optimal balance between usage and remaining time",
    )


def test_suggested_distribution_favors_earliest_reset():
    shares = suggested_distribution(_accounts(10, 10, 10, reset_in_days=[1, 3, None]), now=NOW)
    assert [share.days_to_reset for share in shares] == pytest.approx([1, 3, 7])
    assert [share.suggested_percent for share in shares] == [45, 36, 18]


def test_suggested_distribution_without_remaining_days():
    shares = suggested_distribution(_accounts(10, 10, reset_in_days=[-1, -2]), now=NOW)
    assert [share.suggested_percent for share in shares] == [33, 33]
