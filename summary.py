"""
summary.py
Monthly revenue / expenses / profit, plus report exports.
"""

from __future__ import annotations

import pandas as pd

from models import EXPENSES, PLAYER_PACKAGES, PLAYERS, MonthlySummary
from store import RecordStore, asc, desc, gte, lt
from utils import month_bounds, rows_to_csv_bytes

PLAYER_COLUMNS = ["id", "first_name", "last_name", "phone", "notes", "created_at"]
EXPENSE_COLUMNS = ["id", "date", "category", "description", "amount_cents", "created_at"]
REPORT_COLUMNS = ["month", "revenue_cents", "expenses_cents", "profit_cents"]


def monthly_summary(store: RecordStore, year: int, month: int) -> MonthlySummary:
    """Package sales vs. expenses for one calendar month."""
    start, next_start = month_bounds(year, month)

    sales = store.find(
        PLAYER_PACKAGES,
        filters=[gte("purchased_at", start.isoformat()), lt("purchased_at", next_start.isoformat())],
    )
    spent = store.find(
        EXPENSES,
        filters=[gte("date", start.isoformat()), lt("date", next_start.isoformat())],
    )

    return MonthlySummary(
        label=start.strftime("%B %Y"),
        revenue_cents=sum(r.get("price_cents") or 0 for r in sales),
        expenses_cents=sum(r.get("amount_cents") or 0 for r in spent),
    )


def revenue_by_month(store: RecordStore) -> pd.DataFrame:
    sales = pd.DataFrame(store.find(PLAYER_PACKAGES), columns=["purchased_at", "price_cents"])
    spent = pd.DataFrame(store.find(EXPENSES), columns=["date", "amount_cents"])
    if sales.empty and spent.empty:
        return pd.DataFrame(columns=REPORT_COLUMNS)

    revenue = (
        sales.assign(month=sales["purchased_at"].astype(str).str[:7])
        .groupby("month")["price_cents"].sum()
        .rename("revenue_cents")
    )
    expenses = (
        spent.assign(month=spent["date"].astype(str).str[:7])
        .groupby("month")["amount_cents"].sum()
        .rename("expenses_cents")
    )

    df = pd.concat([revenue, expenses], axis=1).fillna(0).astype(int)
    df["profit_cents"] = df["revenue_cents"] - df["expenses_cents"]
    df = df.reset_index().rename(columns={"index": "month"})
    return df[REPORT_COLUMNS].sort_values("month", ascending=False, ignore_index=True)


def players_csv(store: RecordStore) -> bytes:
    return rows_to_csv_bytes(store.find(PLAYERS, order=[asc("id")]), columns=PLAYER_COLUMNS)


def expenses_csv(store: RecordStore) -> bytes:
    rows = store.find(EXPENSES, order=[desc("date"), desc("created_at")])
    return rows_to_csv_bytes(rows, columns=EXPENSE_COLUMNS)
