"""
auth.py
Owner login for the tracker (bcrypt hashing, verify, login, change password).
"""

from __future__ import annotations

import logging
from pathlib import Path

import bcrypt
import db

logger = logging.getLogger(__name__)


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
    salt = bcrypt.gensalt(rounds=rounds)
    return bcrypt.hashpw(secret, salt).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    return bcrypt.checkpw(_to_bcrypt_secret(password), password_hash.encode("utf-8"))


def login(username: str, password: str, db_file: Path | None = None) -> bool:
    admin = db.get_admin(username, db_file)
    if not admin:
        logger.info(f"Login rejected for unknown user '{username}'")
        return False
    ok = verify_password(password, admin["password_hash"])
    if not ok:
        logger.info(f"Login rejected for user '{username}': wrong password")
    return ok


def change_password(username: str, new_password: str, db_file: Path | None = None) -> None:
    db.set_admin_password_hash(username, hash_password(new_password), db_file)
    db.clear_force_password_change(db_file)
    logger.info(f"Password changed for user '{username}'")
