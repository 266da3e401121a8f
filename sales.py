"""
sales.py
Package catalog + selling a package to a player.
"""

from __future__ import annotations

import logging

from errors import InvalidInput, PackageNotFound
from models import PACKAGES, PLAYER_PACKAGES, Package, PlayerPackage
from store import RecordStore, asc, eq
from roster import get_player

logger = logging.getLogger(__name__)


def list_catalog(store: RecordStore) -> list[Package]:
    rows = store.find(PACKAGES, order=[asc("sessions_included")])
    return [Package.from_row(r) for r in rows]


def sell_package(store: RecordStore, player_id, package_id) -> PlayerPackage:
    """
    Record a sale. Session count and price are copied from the catalog entry
    so later catalog edits never change what was sold.
    """
    if player_id in (None, ""):
        raise InvalidInput("Select a player first.")
    if package_id in (None, ""):
        raise InvalidInput("Select a package to sell.")

    player = get_player(store, player_id)
    rows = store.find(PACKAGES, filters=[eq("id", package_id)], limit=1)
    if not rows:
        raise PackageNotFound(package_id)
    pkg = Package.from_row(rows[0])

    row = store.insert(
        PLAYER_PACKAGES,
        [
            {
                "player_id": player.id,
                "package_id": pkg.id,
                "sessions_total": pkg.sessions_included,
                "sessions_used": 0,
                "price_cents": pkg.price_cents,
            }
        ],
    )[0]
    sold = PlayerPackage.from_row(row)
    logger.info(f"Sold {pkg.name} to player {player.id} (purchase {sold.id})")
    return sold
