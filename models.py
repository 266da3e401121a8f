"""
models.py
Lightweight domain types (dataclasses built from store rows).
"""

from __future__ import annotations

import enum
from dataclasses import dataclass, fields
from typing import Any

# Table names used with the record store
PLAYERS = "players"
PACKAGES = "packages"
PLAYER_PACKAGES = "player_packages"
ATTENDANCE = "attendance"
EXPENSES = "expenses"
ADMIN_USERS = "admin_users"


class _Row:
    """Build a dataclass from a store row, ignoring columns it doesn't know."""

    @classmethod
    def from_row(cls, row: dict[str, Any]):
        names = {f.name for f in fields(cls)}
        return cls(**{k: v for k, v in dict(row).items() if k in names})


@dataclass(frozen=True)
class Player(_Row):
    id: Any
    first_name: str
    last_name: str
    phone: str | None = None
    notes: str | None = None
    created_at: str | None = None

    @property
    def full_name(self) -> str:
        return f"{self.first_name} {self.last_name}"


@dataclass(frozen=True)
class Package(_Row):
    id: Any
    name: str
    sessions_included: int
    price_cents: int


@dataclass(frozen=True)
class PlayerPackage(_Row):
    id: Any
    player_id: Any
    sessions_total: int
    sessions_used: int
    price_cents: int
    package_id: Any = None
    purchased_at: str | None = None

    @property
    def sessions_remaining(self) -> int:
        return self.sessions_total - self.sessions_used

    @property
    def has_room(self) -> bool:
        return self.sessions_used < self.sessions_total


@dataclass(frozen=True)
class AttendanceRecord(_Row):
    id: Any
    player_id: Any
    date: str
    created_at: str | None = None


@dataclass(frozen=True)
class Expense(_Row):
    id: Any
    date: str
    category: str
    amount_cents: int
    description: str | None = None
    created_at: str | None = None


class CheckInOutcome(str, enum.Enum):
    PACKAGE_DECREMENTED = "package_decremented"
    DROP_IN = "drop_in"
    PACKAGE_UPDATE_FAILED = "package_update_failed"
    # another check-in used the last session between our read and our write
    PACKAGE_FULL = "package_full"


@dataclass(frozen=True)
class CheckInResult:
    outcome: CheckInOutcome
    attendance: AttendanceRecord
    package: PlayerPackage | None
    message: str

    @property
    def is_warning(self) -> bool:
        return self.outcome in (CheckInOutcome.PACKAGE_UPDATE_FAILED, CheckInOutcome.PACKAGE_FULL)

    @property
    def sessions_remaining(self) -> int | None:
        return self.package.sessions_remaining if self.package else None


@dataclass(frozen=True)
class MonthlySummary:
    label: str
    revenue_cents: int
    expenses_cents: int

    @property
    def profit_cents(self) -> int:
        return self.revenue_cents - self.expenses_cents
