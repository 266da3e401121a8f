"""
auth.py
Owner login (bcrypt hashing, verify, login, change password).

Admin accounts live in the `admin_users` table of whichever record store the
app is running against.
"""

from __future__ import annotations

import logging

import bcrypt

from errors import InvalidInput
from models import ADMIN_USERS
from store import RecordStore, eq

logger = logging.getLogger(__name__)

MIN_PASSWORD_LENGTH = 6


def _to_bcrypt_secret(password: str) -> bytes:
    """
    bcrypt only uses the first 72 BYTES of the password.
    We truncate to 72 bytes to avoid ValueError and to make behavior explicit.
    """
    pw = password.encode("utf-8")
    if len(pw) > 72:
        pw = pw[:72]
    return pw


def hash_password(password: str, rounds: int = 12) -> str:
    secret = _to_bcrypt_secret(password)
    return bcrypt.hashpw(secret, bcrypt.gensalt(rounds=rounds)).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_to_bcrypt_secret(password), password_hash.encode("utf-8"))


def get_admin_by_username(store: RecordStore, username: str) -> dict | None:
    rows = store.find(ADMIN_USERS, filters=[eq("username", username)], limit=1)
    return rows[0] if rows else None


def login(store: RecordStore, username: str, password: str) -> dict | None:
    """Returns the admin row on success, None otherwise."""
    admin = get_admin_by_username(store, username)
    if not admin or not verify_password(password, admin["password_hash"]):
        logger.info(f"Failed login for {username!r}")
        return None
    return admin


def check_new_password(new_password: str, confirm: str) -> None:
    if len(new_password) < MIN_PASSWORD_LENGTH:
        raise InvalidInput(f"Password must be at least {MIN_PASSWORD_LENGTH} characters.")
    if new_password != confirm:
        raise InvalidInput("Passwords do not match.")


def change_password(store: RecordStore, admin_id, new_password: str) -> dict:
    row = store.update(
        ADMIN_USERS,
        admin_id,
        {"password_hash": hash_password(new_password), "must_change_password": 0},
    )
    logger.info(f"Password changed for admin {admin_id}")
    return row
