"""
store.py
The record store contract: a table-oriented request/response API.

Every backend (SQLite file, hosted Supabase project, in-memory fake in tests)
exposes the same three calls. No transaction spans two calls.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Iterable, Protocol, Sequence

OPS = ("eq", "gte", "lt", "ilike", "in")


@dataclass(frozen=True)
class Filter:
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in OPS:
            raise ValueError(f"Unsupported filter op: {self.op}")


@dataclass(frozen=True)
class Order:
    field: str
    descending: bool = False


def eq(field: str, value) -> Filter:
    return Filter(field, "eq", value)


def gte(field: str, value) -> Filter:
    return Filter(field, "gte", value)


def lt(field: str, value) -> Filter:
    return Filter(field, "lt", value)


def ilike(field: str, pattern: str) -> Filter:
    """Case-insensitive LIKE; `%` is the wildcard, `\\` escapes `%`, `_` and itself."""
    return Filter(field, "ilike", pattern)


def in_(field: str, values: Iterable) -> Filter:
    return Filter(field, "in", tuple(values))


def asc(field: str) -> Order:
    return Order(field)


def desc(field: str) -> Order:
    return Order(field, descending=True)


class RecordStore(Protocol):
    def find(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: Sequence[Order] = (),
        limit: int | None = None,
        any_of: Sequence[Filter] = (),
    ) -> list[dict]:
        """Rows matching all `filters` and, if given, at least one of `any_of`."""
        ...

    def insert(self, table: str, rows: Sequence[dict]) -> list[dict]:
        """Insert rows; returns them with generated ids and defaulted columns."""
        ...

    def update(self, table: str, row_id, patch: dict, expect: dict | None = None) -> dict | None:
        """
        Apply `patch` to the row with `row_id`.

        `expect` holds equality preconditions checked in the same statement.
        Returns the updated row, or None when the row exists but a precondition
        did not hold. Raises RecordNotFound when there is no such row.
        """
        ...


def escape_like(text: str) -> str:
    """Make `text` match literally inside an ilike pattern."""
    return text.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")
