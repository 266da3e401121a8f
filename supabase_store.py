"""
supabase_store.py
RecordStore backed by a hosted Supabase project (PostgREST table API).
"""

from __future__ import annotations

import logging
from typing import Sequence

import httpx
from postgrest.exceptions import APIError
from supabase import Client, create_client

from errors import RecordNotFound, StoreError
from store import Filter, Order

logger = logging.getLogger(__name__)


def _apply(query, f: Filter):
    if f.op == "eq":
        return query.is_(f.field, "null") if f.value is None else query.eq(f.field, f.value)
    if f.op == "gte":
        return query.gte(f.field, f.value)
    if f.op == "lt":
        return query.lt(f.field, f.value)
    if f.op == "ilike":
        return query.ilike(f.field, f.value)
    return query.in_(f.field, list(f.value))


def _or_clause(filters: Sequence[Filter]) -> str:
    """PostgREST `or=(...)` syntax, e.g. `first_name.ilike.%ann%,phone.ilike.%ann%`."""
    parts = []
    for f in filters:
        if f.op == "in":
            parts.append(f"{f.field}.in.({','.join(str(v) for v in f.value)})")
        elif f.op == "eq" and f.value is None:
            parts.append(f"{f.field}.is.null")
        else:
            parts.append(f"{f.field}.{f.op}.{f.value}")
    return ",".join(parts)


class SupabaseRecordStore:
    """RecordStore over the Supabase table API. Errors surface as StoreError."""

    def __init__(self, client: Client):
        self.client = client

    @classmethod
    def connect(cls, url: str, key: str) -> "SupabaseRecordStore":
        if not url or not key:
            raise StoreError("Supabase URL and key must both be configured.")
        return cls(create_client(url, key))

    def _execute(self, table: str, query):
        try:
            return query.execute().data or []
        except APIError as e:
            logger.error(f"Supabase rejected request on {table}: {e.message}", exc_info=True)
            raise StoreError(e.message or str(e), table=table) from e
        except httpx.HTTPError as e:
            logger.error(f"Supabase unreachable ({table}): {e}", exc_info=True)
            raise StoreError(str(e), table=table) from e

    def find(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: Sequence[Order] = (),
        limit: int | None = None,
        any_of: Sequence[Filter] = (),
    ) -> list[dict]:
        query = self.client.table(table).select("*")
        for f in filters:
            query = _apply(query, f)
        if any_of:
            query = query.or_(_or_clause(any_of))
        for o in order:
            query = query.order(o.field, desc=o.descending)
        if limit is not None:
            query = query.limit(limit)
        return self._execute(table, query)

    def insert(self, table: str, rows: Sequence[dict]) -> list[dict]:
        return self._execute(table, self.client.table(table).insert(list(rows)))

    def update(self, table: str, row_id, patch: dict, expect: dict | None = None) -> dict | None:
        query = self.client.table(table).update(patch).eq("id", row_id)
        for col, value in (expect or {}).items():
            query = query.eq(col, value)
        rows = self._execute(table, query)
        if rows:
            return rows[0]

        # Nothing matched: either the row is gone or a precondition failed
        exists = self._execute(table, self.client.table(table).select("id").eq("id", row_id).limit(1))
        if not exists:
            raise RecordNotFound(table, row_id)
        return None
