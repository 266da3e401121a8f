"""
errors.py
Application exceptions. Store adapters raise StoreError; callers breaking a
precondition get LogicError.
"""

from __future__ import annotations


class CampError(Exception):
    """Base class for every error raised by the camp desk."""


# ---------- Store errors ----------

class StoreError(CampError):
    """A call to the record store failed or was rejected."""

    def __init__(self, message: str, table: str | None = None):
        self.table = table
        super().__init__(message)


class RecordNotFound(StoreError):
    def __init__(self, table: str, row_id):
        self.row_id = row_id
        super().__init__(f"No row with id {row_id} in {table}", table=table)


class PlayerNotFound(RecordNotFound):
    def __init__(self, player_id):
        super().__init__("players", player_id)


class PackageNotFound(RecordNotFound):
    def __init__(self, package_id):
        super().__init__("packages", package_id)


# ---------- Logic errors ----------

class LogicError(CampError):
    """The caller broke a precondition (missing player, bad input...)."""


class InvalidInput(LogicError):
    pass


class DuplicateCheckIn(LogicError):
    """Player already checked in today and duplicates are switched off."""

    def __init__(self, player_id, on_date):
        self.player_id = player_id
        self.on_date = on_date
        super().__init__(f"Player {player_id} is already checked in for {on_date}.")
