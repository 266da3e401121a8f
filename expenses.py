"""
expenses.py
Expense log.
"""

from __future__ import annotations

import logging
from datetime import date

from errors import InvalidInput
from models import EXPENSES, Expense
from store import RecordStore, desc
from utils import dollars_to_cents

logger = logging.getLogger(__name__)

CATEGORIES = ["Equipment", "Field rental", "Staff", "Snacks", "Marketing", "Other"]


def log_expense(store: RecordStore, on_date: date, category: str, description: str, amount: str) -> Expense:
    category = (category or "").strip()
    if not category:
        raise InvalidInput("Please select a category.")

    cents = dollars_to_cents(amount)
    if cents is None or cents <= 0:
        raise InvalidInput("Please enter a valid amount in dollars.")

    row = store.insert(
        EXPENSES,
        [
            {
                "date": on_date.isoformat(),
                "category": category,
                "description": (description or "").strip() or None,
                "amount_cents": cents,
            }
        ],
    )[0]
    logger.info(f"Expense recorded: {category} {cents}c on {on_date}")
    return Expense.from_row(row)


def recent_expenses(store: RecordStore, limit: int = 50) -> list[Expense]:
    rows = store.find(EXPENSES, order=[desc("date"), desc("created_at")], limit=limit)
    return [Expense.from_row(r) for r in rows]
