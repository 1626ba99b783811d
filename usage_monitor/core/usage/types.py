from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum

from usage_monitor.core.usage import (
    DEFAULT_ACCOUNT_COUNT,
    CapacityMode,
    account_numbers,
    capacity_for_mode,
    default_account_name,
)


class Severity(str, Enum):
    NOMINAL = "nominal"
    CAUTION = "caution"
    CRITICAL = "critical"


@dataclass(frozen=True, slots=True)
class UsageSample:
    timestamp: datetime
    usage: Mapping[int, float]

    def value(self, account_number: int) -> float:
        return float(self.usage.get(account_number, 0.0))

    def total(self, accounts: tuple[int, ...]) -> float:
        return sum(self.value(number) for number in accounts)


@dataclass(frozen=True, slots=True)
class AccountState:
    account_number: int
    usage_percent: float = 0.0
    reset_date: datetime | None = None
    needs_update: bool = False
    display_name: str = ""

    @property
    def name(self) -> str:
        return self.display_name or default_account_name(self.account_number)

    @classmethod
    def default(cls, account_number: int, display_name: str | None = None) -> AccountState:
        return cls(account_number=account_number, display_name=display_name or default_account_name(account_number))


@dataclass(frozen=True, slots=True)
class MonitorSettings:
    capacity_mode: CapacityMode = CapacityMode.NORMAL
    account_names: Mapping[int, str] = field(default_factory=dict)
    account_count: int = DEFAULT_ACCOUNT_COUNT

    @property
    def capacity(self) -> float:
        return capacity_for_mode(self.capacity_mode)

    @property
    def x2_mode(self) -> bool:
        return self.capacity_mode == CapacityMode.DOUBLED

    @property
    def accounts(self) -> tuple[int, ...]:
        return account_numbers(self.account_count)

    def name_for(self, account_number: int) -> str:
        name = self.account_names.get(account_number, "").strip()
        return name or default_account_name(account_number)


@dataclass(frozen=True, slots=True)
class AccountPatch:
    usage_percent: float | None = None
    reset_date: datetime | None = None
    needs_update: bool | None = None
    clear_reset_date: bool = False

    def apply(self, account: AccountState) -> AccountState:
        reset_date = account.reset_date
        if self.clear_reset_date:
            reset_date = None
        elif self.reset_date is not None:
            reset_date = self.reset_date
        return AccountState(
            account_number=account.account_number,
            usage_percent=account.usage_percent if self.usage_percent is None else self.usage_percent,
            reset_date=reset_date,
            needs_update=account.needs_update if self.needs_update is None else self.needs_update,
            display_name=account.display_name,
        )
