"""Tests for package sales and the expense log."""

from datetime import date

import pytest

from errors import InvalidInput, PackageNotFound, PlayerNotFound
from expenses import log_expense, recent_expenses
from models import EXPENSES, PLAYER_PACKAGES
from sales import list_catalog, sell_package


class TestSales:
    def test_catalog_ordered_by_sessions(self, store, catalog):
        assert [p.sessions_included for p in list_catalog(store)] == [5, 10]

    def test_sale_copies_catalog_values(self, store, catalog, player):
        ten = catalog[0]

        sold = sell_package(store, player["id"], ten["id"])

        assert sold.player_id == player["id"]
        assert sold.package_id == ten["id"]
        assert sold.sessions_total == 10
        assert sold.sessions_used == 0
        assert sold.price_cents == 18000
        assert sold.purchased_at is not None

    def test_later_catalog_change_does_not_touch_sale(self, store, catalog, player):
        sold = sell_package(store, player["id"], catalog[1]["id"])
        store.update("packages", catalog[1]["id"], {"price_cents": 1, "sessions_included": 1})

        assert store.get(PLAYER_PACKAGES, sold.id)["price_cents"] == 10000
        assert store.get(PLAYER_PACKAGES, sold.id)["sessions_total"] == 5

    def test_selection_required(self, store, catalog, player):
        with pytest.raises(InvalidInput, match="player"):
            sell_package(store, None, catalog[0]["id"])
        with pytest.raises(InvalidInput, match="package"):
            sell_package(store, player["id"], "")

    def test_unknown_package(self, store, catalog, player):
        with pytest.raises(PackageNotFound):
            sell_package(store, player["id"], 999)
        assert PLAYER_PACKAGES not in store.tables

    def test_unknown_player(self, store, catalog):
        with pytest.raises(PlayerNotFound):
            sell_package(store, 999, catalog[0]["id"])


class TestExpenses:
    def test_records_cents(self, store):
        expense = log_expense(store, date(2024, 3, 2), " Equipment ", "  ", "$1,234.565")

        assert expense.category == "Equipment"
        assert expense.description is None
        assert expense.amount_cents == 123457
        assert expense.date == "2024-03-02"

    @pytest.mark.parametrize("amount", ["", "abc", "0", "-5", "NaN"])
    def test_bad_amount(self, store, amount):
        with pytest.raises(InvalidInput, match="valid amount"):
            log_expense(store, date(2024, 3, 2), "Snacks", "", amount)
        assert EXPENSES not in store.tables

    def test_category_required(self, store):
        with pytest.raises(InvalidInput, match="category"):
            log_expense(store, date(2024, 3, 2), " ", "", "10")

    def test_recent_newest_first(self, store):
        log_expense(store, date(2024, 3, 1), "Staff", "", "100")
        log_expense(store, date(2024, 3, 5), "Snacks", "", "20")
        log_expense(store, date(2024, 3, 5), "Other", "", "5")

        assert [e.category for e in recent_expenses(store)] == ["Other", "Snacks", "Staff"]
        assert len(recent_expenses(store, limit=2)) == 2
