"""
roster.py
Player search, registration, listing and profile.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from errors import InvalidInput, PlayerNotFound
from ledger import pick_active
from models import ATTENDANCE, PLAYER_PACKAGES, PLAYERS, AttendanceRecord, Player, PlayerPackage
from store import RecordStore, asc, desc, eq, escape_like, ilike

logger = logging.getLogger(__name__)

RECENT_ATTENDANCE = 20


@dataclass(frozen=True)
class RosterEntry:
    player: Player
    active_package: PlayerPackage | None


@dataclass(frozen=True)
class PlayerProfile:
    player: Player
    packages: list[PlayerPackage]  # newest first
    active_package: PlayerPackage | None
    attendance: list[AttendanceRecord]


def _clean_query(query: str) -> str:
    # , ( ) are separators in the remote `or` filter syntax, * is its wildcard
    return "".join(ch for ch in query.strip() if ch not in ",()*")


def search_players(store: RecordStore, query: str) -> list[Player]:
    """
    Case-insensitive substring match on first name, last name or phone.
    A blank query returns nothing rather than the whole roster.
    """
    term = _clean_query(query)
    if not term:
        return []
    pattern = f"%{escape_like(term)}%"
    rows = store.find(
        PLAYERS,
        any_of=[ilike("first_name", pattern), ilike("last_name", pattern), ilike("phone", pattern)],
        order=[asc("first_name")],
    )
    return [Player.from_row(r) for r in rows]


def register_player(store: RecordStore, first_name: str, last_name: str, phone: str = "", notes: str = "") -> Player:
    first_name = (first_name or "").strip()
    last_name = (last_name or "").strip()
    if not first_name or not last_name:
        raise InvalidInput("First name and last name are required.")

    row = store.insert(
        PLAYERS,
        [
            {
                "first_name": first_name,
                "last_name": last_name,
                "phone": (phone or "").strip() or None,
                "notes": (notes or "").strip() or None,
            }
        ],
    )[0]
    player = Player.from_row(row)
    logger.info(f"Registered player {player.id}: {player.full_name}")
    return player


def get_player(store: RecordStore, player_id) -> Player:
    rows = store.find(PLAYERS, filters=[eq("id", player_id)], limit=1)
    if not rows:
        raise PlayerNotFound(player_id)
    return Player.from_row(rows[0])


def list_players(store: RecordStore) -> list[RosterEntry]:
    """Every player, newest registration first, with their active package."""
    players = [Player.from_row(r) for r in store.find(PLAYERS, order=[desc("created_at"), desc("id")])]
    if not players:
        return []

    by_player: dict = {}
    for row in store.find(PLAYER_PACKAGES, order=[asc("purchased_at"), asc("id")]):
        by_player.setdefault(row["player_id"], []).append(PlayerPackage.from_row(row))

    return [RosterEntry(p, pick_active(by_player.get(p.id, []))) for p in players]


def filter_roster(entries: list[RosterEntry], query: str) -> list[RosterEntry]:
    """Local filter for the listing page; blank query keeps everyone."""
    q = query.strip().lower()
    if not q:
        return entries
    return [
        e for e in entries
        if q in e.player.full_name.lower() or q in (e.player.phone or "").lower()
    ]


def player_profile(store: RecordStore, player_id) -> PlayerProfile:
    player = get_player(store, player_id)

    packages = [
        PlayerPackage.from_row(r)
        for r in store.find(
            PLAYER_PACKAGES,
            filters=[eq("player_id", player_id)],
            order=[asc("purchased_at"), asc("id")],
        )
    ]
    attendance = [
        AttendanceRecord.from_row(r)
        for r in store.find(
            ATTENDANCE,
            filters=[eq("player_id", player_id)],
            order=[desc("date"), desc("created_at")],
            limit=RECENT_ATTENDANCE,
        )
    ]
    return PlayerProfile(player, list(reversed(packages)), pick_active(packages), attendance)
