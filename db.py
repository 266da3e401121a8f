"""
db.py
SQLite helpers + initialization (creates DB/tables, seeds the package catalog,
inserts default admin) and the SQLite-backed record store.
"""

from __future__ import annotations

import logging
import re
import sqlite3
from contextlib import contextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Sequence

from errors import RecordNotFound, StoreError
from models import ADMIN_USERS, PACKAGES
from store import Filter, Order

logger = logging.getLogger(__name__)

_IDENT = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")

# ISO-8601 UTC with milliseconds, so purchases in the same second still order
_NOW = "(strftime('%Y-%m-%dT%H:%M:%fZ', 'now'))"

# Catalog seeded on first run (name, sessions_included, price_cents)
DEFAULT_PACKAGES = [
    ("5-Session Pass", 5, 10000),
    ("10-Session Pass", 10, 18000),
    ("20-Session Pass", 20, 32000),
]


@contextmanager
def get_conn(db_file: Path):
    conn = sqlite3.connect(db_file, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def _create_tables(conn: sqlite3.Connection) -> None:
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS admin_users (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            username TEXT NOT NULL UNIQUE,
            password_hash TEXT NOT NULL,
            must_change_password INTEGER NOT NULL DEFAULT 0,
            created_at TEXT NOT NULL DEFAULT {_NOW}
        )
        """
    )

    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS players (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            first_name TEXT NOT NULL,
            last_name TEXT NOT NULL,
            phone TEXT,
            notes TEXT,
            created_at TEXT NOT NULL DEFAULT {_NOW}
        )
        """
    )

    conn.execute(
        """
        CREATE TABLE IF NOT EXISTS packages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            name TEXT NOT NULL,
            sessions_included INTEGER NOT NULL CHECK(sessions_included > 0),
            price_cents INTEGER NOT NULL CHECK(price_cents >= 0)
        )
        """
    )

    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS player_packages (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            player_id INTEGER NOT NULL,
            package_id INTEGER,
            sessions_total INTEGER NOT NULL,
            sessions_used INTEGER NOT NULL DEFAULT 0,
            price_cents INTEGER NOT NULL,
            purchased_at TEXT NOT NULL DEFAULT {_NOW},
            CHECK(sessions_used >= 0 AND sessions_used <= sessions_total),
            FOREIGN KEY(player_id) REFERENCES players(id),
            FOREIGN KEY(package_id) REFERENCES packages(id)
        )
        """
    )

    # No UNIQUE(player_id, date): same-day duplicates are a policy setting
    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS attendance (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            player_id INTEGER NOT NULL,
            date TEXT NOT NULL DEFAULT (date('now')),
            created_at TEXT NOT NULL DEFAULT {_NOW},
            FOREIGN KEY(player_id) REFERENCES players(id)
        )
        """
    )

    conn.execute(
        f"""
        CREATE TABLE IF NOT EXISTS expenses (
            id INTEGER PRIMARY KEY AUTOINCREMENT,
            date TEXT NOT NULL,
            category TEXT NOT NULL,
            description TEXT,
            amount_cents INTEGER NOT NULL CHECK(amount_cents > 0),
            created_at TEXT NOT NULL DEFAULT {_NOW}
        )
        """
    )


def init_db(db_file: Path, default_admin_hash: str) -> None:
    """
    Initialize the database.
    - Create tables
    - Seed the package catalog if it is empty
    - Insert default admin (admin/admin123) flagged for a password change
    """
    with get_conn(db_file) as conn:
        _create_tables(conn)

        if conn.execute(f"SELECT id FROM {PACKAGES} LIMIT 1").fetchone() is None:
            conn.executemany(
                f"INSERT INTO {PACKAGES}(name, sessions_included, price_cents) VALUES(?,?,?)",
                DEFAULT_PACKAGES,
            )
            logger.info(f"Seeded {len(DEFAULT_PACKAGES)} catalog packages")

        if conn.execute(f"SELECT id FROM {ADMIN_USERS} LIMIT 1").fetchone() is None:
            now = datetime.now(timezone.utc).isoformat(timespec="seconds")
            conn.execute(
                f"INSERT INTO {ADMIN_USERS}(username, password_hash, must_change_password, created_at) "
                "VALUES(?,?,1,?)",
                ("admin", default_admin_hash, now),
            )
            logger.info("Created default admin account")


# ---------- Record store ----------

def _ident(name: str) -> str:
    if not _IDENT.match(name):
        raise ValueError(f"Bad SQL identifier: {name!r}")
    return name


def _condition(f: Filter, params: list) -> str:
    col = _ident(f.field)
    if f.op == "eq":
        if f.value is None:
            return f"{col} IS NULL"
        params.append(f.value)
        return f"{col} = ?"
    if f.op == "gte":
        params.append(f.value)
        return f"{col} >= ?"
    if f.op == "lt":
        params.append(f.value)
        return f"{col} < ?"
    if f.op == "ilike":
        params.append(f.value)
        return f"LOWER({col}) LIKE LOWER(?) ESCAPE '\\'"
    # in
    values = list(f.value)
    if not values:
        return "0"
    params.extend(values)
    return f"{col} IN ({','.join('?' * len(values))})"


class SqliteRecordStore:
    """RecordStore over a local SQLite file."""

    def __init__(self, db_file: Path):
        self.db_file = Path(db_file)

    def find(
        self,
        table: str,
        filters: Sequence[Filter] = (),
        order: Sequence[Order] = (),
        limit: int | None = None,
        any_of: Sequence[Filter] = (),
    ) -> list[dict]:
        params: list = []
        sql = f"SELECT * FROM {_ident(table)} WHERE 1=1"
        for f in filters:
            sql += " AND " + _condition(f, params)
        if any_of:
            sql += " AND (" + " OR ".join(_condition(f, params) for f in any_of) + ")"
        if order:
            sql += " ORDER BY " + ", ".join(
                f"{_ident(o.field)} COLLATE NOCASE {'DESC' if o.descending else 'ASC'}" for o in order
            )
        if limit is not None:
            sql += " LIMIT ?"
            params.append(int(limit))

        try:
            with get_conn(self.db_file) as conn:
                return [dict(r) for r in conn.execute(sql, params).fetchall()]
        except sqlite3.Error as e:
            raise StoreError(str(e), table=table) from e

    def insert(self, table: str, rows: Sequence[dict]) -> list[dict]:
        name = _ident(table)
        inserted = []
        try:
            with get_conn(self.db_file) as conn:
                for row in rows:
                    if row:
                        cols = [_ident(c) for c in row]
                        cur = conn.execute(
                            f"INSERT INTO {name}({', '.join(cols)}) VALUES({','.join('?' * len(cols))})",
                            tuple(row.values()),
                        )
                    else:
                        cur = conn.execute(f"INSERT INTO {name} DEFAULT VALUES")
                    new = conn.execute(f"SELECT * FROM {name} WHERE rowid = ?", (cur.lastrowid,)).fetchone()
                    inserted.append(dict(new))
        except sqlite3.Error as e:
            raise StoreError(str(e), table=table) from e
        return inserted

    def update(self, table: str, row_id, patch: dict, expect: dict | None = None) -> dict | None:
        name = _ident(table)
        if not patch:
            raise ValueError("Empty patch")
        sets = ", ".join(f"{_ident(c)} = ?" for c in patch)
        params = list(patch.values()) + [row_id]
        where = "id = ?"
        for col, value in (expect or {}).items():
            where += f" AND {_ident(col)} = ?"
            params.append(value)

        try:
            with get_conn(self.db_file) as conn:
                cur = conn.execute(f"UPDATE {name} SET {sets} WHERE {where}", params)
                row = conn.execute(f"SELECT * FROM {name} WHERE id = ?", (row_id,)).fetchone()
        except sqlite3.Error as e:
            raise StoreError(str(e), table=table) from e

        if row is None:
            raise RecordNotFound(table, row_id)
        if cur.rowcount == 0:
            return None
        return dict(row)
