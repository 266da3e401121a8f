"""
ledger.py
Package balance + check-in rules.

A player's active package is derived on every call, never stored: the oldest
purchase that still has sessions left. A check-in always records attendance
first; consuming a session is secondary and its failure only downgrades the
result to a warning.
"""

from __future__ import annotations

import logging
from datetime import date
from typing import Callable

from errors import DuplicateCheckIn, LogicError, StoreError
from models import (
    ATTENDANCE,
    PLAYER_PACKAGES,
    PLAYERS,
    AttendanceRecord,
    CheckInOutcome,
    CheckInResult,
    PlayerPackage,
)
from store import RecordStore, asc, desc, eq, in_
from utils import today_in

logger = logging.getLogger(__name__)

# Sentinel: "look the active package up yourself"
LOOKUP = object()


class PackageLedgerService:
    def __init__(
        self,
        store: RecordStore,
        today: Callable[[], date] = date.today,
        allow_duplicate_same_day: bool = True,
        max_attempts: int = 3,
    ):
        if max_attempts < 1:
            raise ValueError("max_attempts must be >= 1")
        self.store = store
        self.today = today
        self.allow_duplicate_same_day = allow_duplicate_same_day
        self.max_attempts = max_attempts

    @classmethod
    def from_settings(cls, store: RecordStore, settings) -> "PackageLedgerService":
        return cls(
            store,
            today=lambda: today_in(settings.TIMEZONE),
            allow_duplicate_same_day=settings.ALLOW_DUPLICATE_SAME_DAY_CHECKIN,
            max_attempts=settings.CHECKIN_MAX_ATTEMPTS,
        )

    # ---------- Reads ----------

    def packages_for(self, player_id) -> list[PlayerPackage]:
        """All purchases for a player, oldest first."""
        rows = self.store.find(
            PLAYER_PACKAGES,
            filters=[eq("player_id", player_id)],
            order=[asc("purchased_at"), asc("id")],
        )
        return [PlayerPackage.from_row(r) for r in rows]

    def find_active_package(self, player_id) -> PlayerPackage | None:
        """Oldest purchase with sessions left, or None for a drop-in."""
        return pick_active(self.packages_for(player_id))

    def peek_active_package(self, player_id):
        """
        Active package for display before a check-in. Returns LOOKUP when the
        read fails, so check_in reads again instead of assuming a drop-in.
        """
        try:
            return self.find_active_package(player_id)
        except StoreError as e:
            logger.error(f"Failed to load packages for player {player_id}: {e}", exc_info=True)
            return LOOKUP

    def todays_check_ins(self) -> list[tuple[AttendanceRecord, str]]:
        """Today's attendance, newest first, paired with the player's name."""
        try:
            rows = self.store.find(
                ATTENDANCE,
                filters=[eq("date", self.today().isoformat())],
                order=[desc("created_at"), desc("id")],
            )
            records = [AttendanceRecord.from_row(r) for r in rows]
            ids = {r.player_id for r in records}
            players = self.store.find(PLAYERS, filters=[in_("id", ids)]) if ids else []
        except StoreError as e:
            logger.error(f"Failed to load today's check-ins: {e}", exc_info=True)
            return []

        names = {p["id"]: f"{p['first_name']} {p['last_name']}" for p in players}
        return [(r, names.get(r.player_id, "Unknown player")) for r in records]

    # ---------- Check-in ----------

    def check_in(self, player_id, active_package=LOOKUP) -> CheckInResult:
        """
        Record attendance for today, then consume one session of the active
        package.

        `active_package` may carry a package the caller fetched moments ago;
        pass None when the caller already knows the player has no package.
        Raises StoreError only when the attendance write itself fails.
        """
        if player_id is None or (isinstance(player_id, str) and not player_id.strip()):
            raise LogicError("Select a player before checking in.")

        on_date = self.today()
        if not self.allow_duplicate_same_day:
            existing = self.store.find(
                ATTENDANCE,
                filters=[eq("player_id", player_id), eq("date", on_date.isoformat())],
                limit=1,
            )
            if existing:
                raise DuplicateCheckIn(player_id, on_date)

        # Primary effect: a failure here propagates and nothing else happens
        row = self.store.insert(ATTENDANCE, [{"player_id": player_id, "date": on_date.isoformat()}])[0]
        attendance = AttendanceRecord.from_row(row)
        logger.info(f"Attendance recorded for player {player_id} on {on_date}")

        if active_package is LOOKUP:
            try:
                active_package = self.find_active_package(player_id)
            except StoreError as e:
                logger.warning(f"Checked in player {player_id} but could not read packages: {e}")
                return _update_failed(attendance, None)

        if active_package is None:
            logger.info(f"Player {player_id} checked in as drop-in")
            return CheckInResult(
                CheckInOutcome.DROP_IN,
                attendance,
                None,
                "Checked in. No active package on file (drop-in).",
            )

        return self._consume_session(attendance, active_package)

    def _consume_session(self, attendance: AttendanceRecord, package: PlayerPackage) -> CheckInResult:
        for attempt in range(1, self.max_attempts + 1):
            if not package.has_room:
                logger.warning(f"Package {package.id} filled up before it could be decremented")
                return _full(attendance, package)

            try:
                # Compare-and-set: only applies if nobody else moved the counter
                updated = self.store.update(
                    PLAYER_PACKAGES,
                    package.id,
                    {"sessions_used": package.sessions_used + 1},
                    expect={"sessions_used": package.sessions_used},
                )
                if updated is None:
                    fresh = self.store.find(PLAYER_PACKAGES, filters=[eq("id", package.id)], limit=1)
                    if not fresh:
                        raise StoreError(f"Package {package.id} disappeared", table=PLAYER_PACKAGES)
                    package = PlayerPackage.from_row(fresh[0])
                    logger.info(f"Package {package.id} changed under check-in (attempt {attempt})")
                    continue
            except StoreError as e:
                logger.warning(f"Checked in but failed to update package {package.id}: {e}")
                return _update_failed(attendance, package)

            package = PlayerPackage.from_row(updated)
            logger.info(
                f"Package {package.id} now at {package.sessions_used}/{package.sessions_total} sessions"
            )
            return CheckInResult(
                CheckInOutcome.PACKAGE_DECREMENTED,
                attendance,
                package,
                f"Checked in. Session deducted ({package.sessions_remaining} remaining).",
            )

        if not package.has_room:
            return _full(attendance, package)
        logger.warning(f"Gave up decrementing package {package.id} after {self.max_attempts} attempts")
        return _update_failed(attendance, package)


def pick_active(packages: list[PlayerPackage]) -> PlayerPackage | None:
    """First package with room, in the order given (callers pass oldest first)."""
    return next((p for p in packages if p.has_room), None)


def _update_failed(attendance: AttendanceRecord, package: PlayerPackage | None) -> CheckInResult:
    return CheckInResult(
        CheckInOutcome.PACKAGE_UPDATE_FAILED,
        attendance,
        package,
        "Checked in, but package was not updated. Verify manually.",
    )


def _full(attendance: AttendanceRecord, package: PlayerPackage) -> CheckInResult:
    return CheckInResult(
        CheckInOutcome.PACKAGE_FULL,
        attendance,
        package,
        "Checked in, but the package ran out of sessions in the meantime. Verify manually.",
    )
