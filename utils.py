"""
utils.py
Dates, money, exports, sample data.
"""

from __future__ import annotations

from datetime import date, datetime
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from zoneinfo import ZoneInfo

import pandas as pd

from models import PLAYER_PACKAGES, PLAYERS, EXPENSES


def today_in(tz_name: str) -> date:
    return datetime.now(ZoneInfo(tz_name)).date()


def parse_iso(d: str) -> date:
    return date.fromisoformat(d)


def month_bounds(year: int, month: int) -> tuple[date, date]:
    """First day of the month and first day of the next month."""
    start = date(year, month, 1)
    if month == 12:
        return start, date(year + 1, 1, 1)
    return start, date(year, month + 1, 1)


def dollars_to_cents(amount: str) -> int | None:
    """
    Parse a dollar amount typed by a user ("12", "12.5", "$1,200.00").
    Returns None if it isn't a number. Rounds half-up to whole cents.
    """
    cleaned = str(amount).strip().replace("$", "").replace(",", "")
    try:
        value = Decimal(cleaned)
    except InvalidOperation:
        return None
    if not value.is_finite():
        return None
    return int((value * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def format_cents(cents: int) -> str:
    sign = "-" if cents < 0 else ""
    return f"{sign}${abs(cents) / 100:,.2f}"


def rows_to_csv_bytes(rows, columns: list[str] | None = None) -> bytes:
    df = pd.DataFrame([dict(r) for r in rows], columns=columns)
    return df.to_csv(index=False).encode("utf-8")


def insert_sample_data(store) -> None:
    """
    Insert 3 players, a couple of package sales and expenses
    (safe to run multiple times: adds new rows each time).
    """
    today = date.today()

    players = store.insert(
        PLAYERS,
        [
            {"first_name": "Maya", "last_name": "Lopez", "phone": "555-0101", "notes": "Goalkeeper"},
            {"first_name": "Eli", "last_name": "Carter", "phone": "555-0102", "notes": None},
            {"first_name": "Noah", "last_name": "Kim", "phone": None, "notes": "Asthma inhaler in bag"},
        ],
    )

    store.insert(
        PLAYER_PACKAGES,
        [
            {"player_id": players[0]["id"], "sessions_total": 10, "sessions_used": 9, "price_cents": 18000},
            {"player_id": players[1]["id"], "sessions_total": 5, "sessions_used": 0, "price_cents": 10000},
        ],
    )

    store.insert(
        EXPENSES,
        [
            {"date": today.isoformat(), "category": "Equipment", "description": "Cones + bibs", "amount_cents": 4599},
            {"date": today.isoformat(), "category": "Field rental", "description": None, "amount_cents": 25000},
        ],
    )
