"""Pytest configuration and fixtures for Camp Desk tests."""

import re
from datetime import date, datetime, timedelta

import pytest

from errors import RecordNotFound, StoreError
from ledger import PackageLedgerService
from models import ATTENDANCE, PACKAGES, PLAYER_PACKAGES, PLAYERS

TODAY = date(2024, 3, 15)
_BASE = datetime(2024, 3, 15, 8, 0, 0)


def _like(pattern: str, value) -> bool:
    if value is None:
        return False
    regex, chars = "", iter(pattern)
    for ch in chars:
        if ch == "\\":
            regex += re.escape(next(chars, "\\"))
        elif ch == "%":
            regex += ".*"
        elif ch == "_":
            regex += "."
        else:
            regex += re.escape(ch)
    return re.fullmatch(regex, str(value), flags=re.IGNORECASE | re.DOTALL) is not None


def _sort_key(value):
    # text sorts case-insensitively, like the SQLite store's COLLATE NOCASE
    return (value is None, value.casefold() if isinstance(value, str) else value)


def _matches(row: dict, f) -> bool:
    value = row.get(f.field)
    if f.op == "eq":
        return value == f.value
    if f.op == "gte":
        return value is not None and value >= f.value
    if f.op == "lt":
        return value is not None and value < f.value
    if f.op == "ilike":
        return _like(f.value, value)
    return value in f.value


class MemoryRecordStore:
    """In-memory RecordStore with call log and failure injection."""

    DEFAULTS = {
        PLAYER_PACKAGES: {"sessions_used": 0},
    }

    def __init__(self):
        self.tables: dict[str, list[dict]] = {}
        self.calls: list[tuple[str, str]] = []
        self._failures: dict[tuple[str, str], Exception] = {}
        self._seq = 0
        self.before_update = None

    def fail(self, op: str, table: str, error: Exception | None = None):
        """Make the next `op` on `table` raise."""
        self._failures[(op, table)] = error or StoreError(f"{op} on {table} rejected", table=table)

    def _check(self, op: str, table: str):
        self.calls.append((op, table))
        error = self._failures.pop((op, table), None)
        if error is not None:
            raise error

    def _now(self) -> str:
        self._seq += 1
        return (_BASE + timedelta(seconds=self._seq)).isoformat()

    def find(self, table, filters=(), order=(), limit=None, any_of=()):
        self._check("find", table)
        rows = [r for r in self.tables.get(table, []) if all(_matches(r, f) for f in filters)]
        if any_of:
            rows = [r for r in rows if any(_matches(r, f) for f in any_of)]
        for o in reversed(list(order)):
            rows.sort(key=lambda r: _sort_key(r.get(o.field)), reverse=o.descending)
        if limit is not None:
            rows = rows[:limit]
        return [dict(r) for r in rows]

    def insert(self, table, rows):
        self._check("insert", table)
        out = []
        for row in rows:
            now = self._now()
            new = {"created_at": now}
            new.update(self.DEFAULTS.get(table, {}))
            if table == PLAYER_PACKAGES:
                new["purchased_at"] = now
            if table == ATTENDANCE:
                new["date"] = TODAY.isoformat()
            new.update(row)
            new["id"] = len(self.tables.get(table, [])) + 1
            self.tables.setdefault(table, []).append(new)
            out.append(dict(new))
        return out

    def update(self, table, row_id, patch, expect=None):
        self._check("update", table)
        if self.before_update is not None:
            hook, self.before_update = self.before_update, None
            hook(self)
        for row in self.tables.get(table, []):
            if row["id"] == row_id:
                if any(row.get(k) != v for k, v in (expect or {}).items()):
                    return None
                row.update(patch)
                return dict(row)
        raise RecordNotFound(table, row_id)

    def get(self, table, row_id) -> dict:
        return next(r for r in self.tables[table] if r["id"] == row_id)


@pytest.fixture
def store():
    return MemoryRecordStore()


@pytest.fixture
def ledger(store):
    return PackageLedgerService(store, today=lambda: TODAY)


@pytest.fixture
def player(store):
    return store.insert(PLAYERS, [{"first_name": "Maya", "last_name": "Lopez", "phone": "555-0101", "notes": None}])[0]


@pytest.fixture
def catalog(store):
    return store.insert(
        PACKAGES,
        [
            {"name": "10-Session Pass", "sessions_included": 10, "price_cents": 18000},
            {"name": "5-Session Pass", "sessions_included": 5, "price_cents": 10000},
        ],
    )


def add_package(store, player_id, total, used, purchased_at, price_cents=10000):
    return store.insert(
        PLAYER_PACKAGES,
        [
            {
                "player_id": player_id,
                "sessions_total": total,
                "sessions_used": used,
                "price_cents": price_cents,
                "purchased_at": purchased_at,
            }
        ],
    )[0]
