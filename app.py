"""
app.py
Streamlit Camp Desk (owner-only): players, package sales, check-ins,
expenses and the monthly summary.
Run: streamlit run app.py
"""

from __future__ import annotations

import logging
from datetime import date

import pandas as pd
import streamlit as st

import auth
import db
import expenses
import roster
import sales
import summary
import utils
from config import get_settings
from errors import CampError, LogicError, StoreError
from ledger import LOOKUP, PackageLedgerService
from models import CheckInOutcome
from supabase_store import SupabaseRecordStore

st.set_page_config(page_title="Camp Desk", layout="wide")


@st.cache_resource
def get_store():
    settings = get_settings()
    logging.basicConfig(
        level=settings.LOG_LEVEL,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    if settings.STORE_BACKEND == "supabase":
        return SupabaseRecordStore.connect(settings.SUPABASE_URL, settings.SUPABASE_KEY)

    # Initialize DB + default admin if needed
    db.init_db(settings.DB_FILE, auth.hash_password("admin123"))
    return db.SqliteRecordStore(settings.DB_FILE)


def camp_today() -> date:
    return utils.today_in(get_settings().TIMEZONE)


def get_ledger() -> PackageLedgerService:
    return PackageLedgerService.from_settings(get_store(), get_settings())


def require_login():
    if "admin" not in st.session_state:
        st.session_state.admin = None


def logout():
    st.session_state.admin = None
    st.success("Logged out.")


def login_screen():
    st.title("🔐 Camp Desk Login")

    col1, col2 = st.columns([1, 1])
    with col1:
        username = st.text_input("Username", value="admin")
        password = st.text_input("Password", type="password")
        if st.button("Login", type="primary"):
            admin = auth.login(get_store(), username.strip(), password)
            if admin:
                st.session_state.admin = admin
                st.rerun()
            else:
                st.error("Invalid username or password.")

    with col2:
        if get_settings().STORE_BACKEND == "sqlite":
            st.info(
                "First run creates a default admin:\n\n"
                "- username: **admin**\n"
                "- password: **admin123**\n\n"
                "You will be forced to change it on first login."
            )


def password_form(key: str) -> bool:
    p1 = st.text_input("New password", type="password", key=f"{key}_p1")
    p2 = st.text_input("Confirm new password", type="password", key=f"{key}_p2")
    if st.button("Update password", type="primary", key=f"{key}_btn"):
        try:
            auth.check_new_password(p1, p2)
            st.session_state.admin = auth.change_password(get_store(), st.session_state.admin["id"], p1)
        except CampError as e:
            st.error(str(e))
            return False
        st.success("Password updated.")
        return True
    return False


def force_change_password_screen():
    st.title("⚠️ Change Password (Required)")
    st.warning("You must change the default password before using the app.")
    if password_form("force"):
        st.rerun()


def player_label(p) -> str:
    return f"{p.full_name} ({p.phone or 'no phone'})"


def player_picker(key: str):
    """Search box + result list; returns the selected Player or None."""
    with st.form(f"{key}_search"):
        query = st.text_input("Search by player name or phone")
        submitted = st.form_submit_button("Search")

    if submitted:
        try:
            st.session_state[f"{key}_results"] = roster.search_players(get_store(), query)
        except StoreError as e:
            st.error(str(e))
            st.session_state[f"{key}_results"] = []
        else:
            if query.strip() and not st.session_state[f"{key}_results"]:
                st.error("No players found. Try a different name or phone.")

    results = st.session_state.get(f"{key}_results", [])
    if not results:
        st.caption("No players loaded yet. Search to see results.")
        return None

    choice = st.radio(
        "Players",
        options=range(len(results)),
        format_func=lambda i: player_label(results[i]),
        key=f"{key}_choice",
    )
    return results[choice]


# ---------- Pages ----------

def summary_page():
    st.header("📊 Monthly Summary")

    today = camp_today()
    try:
        s = summary.monthly_summary(get_store(), today.year, today.month)
    except StoreError as e:
        st.error(f"Could not load summary: {e}")
        return

    st.subheader(s.label)
    c1, c2, c3 = st.columns(3)
    c1.metric("Revenue (package sales)", utils.format_cents(s.revenue_cents))
    c2.metric("Expenses", utils.format_cents(s.expenses_cents))
    c3.metric("Profit", utils.format_cents(s.profit_cents))


def players_page():
    st.header("👥 Players")

    try:
        entries = roster.list_players(get_store())
    except StoreError as e:
        st.error(str(e))
        entries = []

    query = st.text_input("Filter (name/phone)")
    entries = roster.filter_roster(entries, query)

    df = pd.DataFrame(
        [
            {
                "id": e.player.id,
                "name": e.player.full_name,
                "phone": e.player.phone or "",
                "package": (
                    f"{e.active_package.sessions_remaining} of {e.active_package.sessions_total} left"
                    if e.active_package else "No active package"
                ),
            }
            for e in entries
        ],
        columns=["id", "name", "phone", "package"],
    )
    st.dataframe(df, use_container_width=True, hide_index=True)

    if not entries:
        return

    st.divider()
    options = {player_label(e.player): e.player.id for e in entries}
    chosen = st.selectbox("View player", ["(none)"] + list(options.keys()))
    if chosen != "(none)":
        player_profile_view(options[chosen])


def player_profile_view(player_id):
    try:
        profile = roster.player_profile(get_store(), player_id)
    except StoreError as e:
        st.error(f"Failed to load player: {e}")
        return

    p = profile.player
    st.subheader(p.full_name)
    st.write(p.phone or "No phone on file")
    if p.notes:
        st.write(f"Notes: {p.notes}")
    if p.created_at:
        st.caption(f"Registered on {p.created_at[:10]}")

    st.markdown("**Packages**")
    if not profile.packages:
        st.caption("No packages purchased yet.")
    else:
        if profile.active_package:
            a = profile.active_package
            st.write(
                f"Active package: {a.sessions_remaining} sessions remaining "
                f"({a.sessions_used}/{a.sessions_total} used)"
            )
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "purchased": (pkg.purchased_at or "")[:10],
                        "sessions": pkg.sessions_total,
                        "used": pkg.sessions_used,
                        "price": utils.format_cents(pkg.price_cents),
                    }
                    for pkg in profile.packages
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )

    st.markdown("**Recent attendance**")
    if not profile.attendance:
        st.caption("No attendance recorded yet.")
    else:
        st.dataframe(
            pd.DataFrame([{"date": a.date, "time": (a.created_at or "")[11:16]} for a in profile.attendance]),
            use_container_width=True,
            hide_index=True,
        )


def register_page():
    st.header("📝 Register Player")

    with st.form("register", clear_on_submit=True):
        first_name = st.text_input("First name")
        last_name = st.text_input("Last name")
        phone = st.text_input("Phone (optional)")
        notes = st.text_area("Notes (optional)")
        submitted = st.form_submit_button("Register", type="primary")

    if submitted:
        try:
            player = roster.register_player(get_store(), first_name, last_name, phone, notes)
        except CampError as e:
            st.error(str(e))
        else:
            st.success(f"Player {player.full_name} registered successfully.")


def sell_package_page():
    st.header("💳 Sell Package")

    try:
        catalog = sales.list_catalog(get_store())
    except StoreError as e:
        st.error(str(e))
        catalog = []

    player = player_picker("sell")

    st.subheader("Select package")
    if not catalog:
        st.caption("No packages found. Check your database seeding.")
        return
    pkg = st.selectbox(
        "Package",
        catalog,
        format_func=lambda p: f"{p.name} - {p.sessions_included} sessions - {utils.format_cents(p.price_cents)}",
    )

    if st.button("Sell Package", type="primary"):
        try:
            sales.sell_package(get_store(), player.id if player else None, pkg.id if pkg else None)
        except CampError as e:
            st.error(str(e))
        else:
            st.success(f"Sold {pkg.name} to {player.full_name}.")


def check_in_page():
    st.header("✅ Check-In")
    ledger = get_ledger()

    player = player_picker("checkin")

    if player is not None:
        st.subheader("Selected player")
        st.write(player_label(player))
        if player.notes:
            st.caption(f"Notes: {player.notes}")

        active = ledger.peek_active_package(player.id)

        if active is LOOKUP:
            st.error("Could not load packages. Checking in will try again and warn if the package is not updated.")
        elif active:
            st.write(
                f"Package sessions: **{active.sessions_used} / {active.sessions_total}** used "
                f"({active.sessions_remaining} remaining)"
            )
        else:
            st.caption("No active package with remaining sessions. This will be a drop-in unless they buy a package.")

        if st.button("Check In for Today", type="primary"):
            try:
                result = ledger.check_in(player.id, active_package=active)
            except (StoreError, LogicError) as e:
                st.error(str(e))
            else:
                if result.is_warning:
                    st.warning(f"{player.full_name}: {result.message}")
                else:
                    st.success(f"{player.full_name}: {result.message}")
                    if result.outcome == CheckInOutcome.DROP_IN:
                        st.info("Drop-in: no session balance was affected.")

    st.divider()
    st.subheader("Today's check-ins")
    today_rows = ledger.todays_check_ins()
    if not today_rows:
        st.caption("Nobody checked in yet today.")
    else:
        st.dataframe(
            pd.DataFrame([{"player": name, "time": (r.created_at or "")[11:16]} for r, name in today_rows]),
            use_container_width=True,
            hide_index=True,
        )


def expenses_page():
    st.header("🧾 Expenses")

    with st.form("expense", clear_on_submit=True):
        c1, c2, c3 = st.columns(3)
        with c1:
            on_date = st.date_input("Date", value=camp_today())
        with c2:
            category = st.selectbox("Category", [""] + expenses.CATEGORIES)
        with c3:
            amount = st.text_input("Amount ($)")
        description = st.text_input("Description (optional)")
        submitted = st.form_submit_button("Record expense", type="primary")

    if submitted:
        try:
            expenses.log_expense(get_store(), on_date, category, description, amount)
        except CampError as e:
            st.error(str(e))
        else:
            st.success("Expense recorded.")

    st.divider()
    st.subheader("Recent expenses")
    try:
        rows = expenses.recent_expenses(get_store())
    except StoreError as e:
        st.error(str(e))
        rows = []
    if rows:
        st.dataframe(
            pd.DataFrame(
                [
                    {
                        "date": e.date,
                        "category": e.category,
                        "description": e.description or "",
                        "amount": utils.format_cents(e.amount_cents),
                    }
                    for e in rows
                ]
            ),
            use_container_width=True,
            hide_index=True,
        )
    else:
        st.caption("No expenses recorded yet.")


def reports_page():
    st.header("📈 Reports")
    store = get_store()

    try:
        st.subheader("Export players to CSV")
        st.download_button(
            "Download players.csv",
            data=summary.players_csv(store),
            file_name="players.csv",
            mime="text/csv",
        )

        st.subheader("Export expenses to CSV")
        st.download_button(
            "Download expenses.csv",
            data=summary.expenses_csv(store),
            file_name="expenses.csv",
            mime="text/csv",
        )

        st.divider()
        st.subheader("Revenue summary by month")
        st.dataframe(summary.revenue_by_month(store), use_container_width=True, hide_index=True)
    except StoreError as e:
        st.error(str(e))


def settings_page():
    st.header("⚙️ Settings")

    st.subheader("Change password")
    password_form("settings")

    st.divider()

    st.subheader("Sample data")
    st.caption("Insert 3 sample players, two package sales and a few expenses (adds new rows each run).")
    if st.button("Insert sample data"):
        try:
            utils.insert_sample_data(get_store())
        except StoreError as e:
            st.error(str(e))
        else:
            st.success("Sample data inserted.")


PAGES = {
    "Summary": summary_page,
    "Players": players_page,
    "Register": register_page,
    "Sell Package": sell_package_page,
    "Check-In": check_in_page,
    "Expenses": expenses_page,
    "Reports": reports_page,
    "Settings": settings_page,
}


def main_app():
    st.sidebar.title("⚽ Camp Desk")
    st.sidebar.caption(f"Logged in as: {st.session_state.admin['username']}")

    pages = list(PAGES)
    if "page" not in st.session_state:
        st.session_state.page = "Check-In"
    st.session_state.page = st.sidebar.radio("Navigate", pages, index=pages.index(st.session_state.page))

    if st.sidebar.button("Logout"):
        logout()
        st.rerun()

    PAGES[st.session_state.page]()


# --------- App entry ---------

def run():
    require_login()

    if not st.session_state.admin:
        login_screen()
        return

    # Force password change on first login after DB creation
    if st.session_state.admin.get("must_change_password"):
        force_change_password_screen()
        return

    main_app()


if __name__ == "__main__":
    run()
