from __future__ import annotations

import math
from datetime import datetime
from enum import Enum

PERIOD_DAYS = 7
NORMAL_CAPACITY = 100.0
DOUBLED_CAPACITY = 200.0
DEFAULT_ACCOUNT_COUNT = 3
SECONDS_PER_DAY = 24 * 60 * 60


class CapacityMode(str, Enum):
    NORMAL = "normal"
    DOUBLED = "doubled"


def capacity_for_mode(mode: CapacityMode | str) -> float:
    if CapacityMode(mode) == CapacityMode.DOUBLED:
        return DOUBLED_CAPACITY
    return NORMAL_CAPACITY


def account_numbers(count: int = DEFAULT_ACCOUNT_COUNT) -> tuple[int, ...]:
    return tuple(range(1, count + 1))


def account_key(account_number: int) -> str:
    return f"account{account_number}"


def parse_account_key(key: str) -> int | None:
    if not key.startswith("account"):
        return None
    suffix = key[len("account") :]
    if not suffix.isdigit():
        return None
    number = int(suffix)
    return number if number > 0 else None


def default_account_name(account_number: int) -> str:
    return f"Account {account_number}"


def days_between(start: datetime, end: datetime) -> float:
    return (end - start).total_seconds() / SECONDS_PER_DAY


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))
