"""
db.py
SQLite key-value slot + initialization (creates DB/table, inserts default admin, etc.)
"""

from __future__ import annotations

import json
import logging
import sqlite3
from contextlib import contextmanager
from pathlib import Path
from datetime import datetime, timezone

import config

logger = logging.getLogger(__name__)

ADMIN_KEY_PREFIX = "admin:"
FORCE_PASSWORD_CHANGE_KEY = "force_password_change"


@contextmanager
def get_conn(db_file: Path | None = None):
    conn = sqlite3.connect(db_file or config.DB_FILE, check_same_thread=False)
    conn.row_factory = sqlite3.Row
    try:
        yield conn
        conn.commit()
    finally:
        conn.close()


def execute(sql: str, params: tuple = (), db_file: Path | None = None) -> int:
    with get_conn(db_file) as conn:
        cur = conn.execute(sql, params)
        return cur.lastrowid


def fetch_one(sql: str, params: tuple = (), db_file: Path | None = None):
    with get_conn(db_file) as conn:
        cur = conn.execute(sql, params)
        return cur.fetchone()


def create_tables(db_file: Path | None = None) -> None:
    # Every persisted value is a whole document under one key
    execute(
        """
        CREATE TABLE IF NOT EXISTS kv_store (
            key TEXT PRIMARY KEY,
            value TEXT NOT NULL
        )
        """,
        db_file=db_file,
    )


def read_value(key: str, db_file: Path | None = None) -> str | None:
    """
    Return the raw text stored under `key`, or None if the key was never written.
    """
    create_tables(db_file)
    row = fetch_one("SELECT value FROM kv_store WHERE key = ?", (key,), db_file=db_file)
    if row:
        return str(row["value"])
    return None


def write_value(key: str, value: str, db_file: Path | None = None) -> None:
    """
    Overwrite the value under `key` as one unit.
    """
    create_tables(db_file)
    execute(
        """
        INSERT INTO kv_store(key, value) VALUES(?, ?)
        ON CONFLICT(key) DO UPDATE SET value=excluded.value
        """,
        (key, value),
        db_file=db_file,
    )


def get_admin(username: str, db_file: Path | None = None) -> dict | None:
    raw = read_value(ADMIN_KEY_PREFIX + username, db_file)
    if raw is None:
        return None
    return json.loads(raw)


def set_admin_password_hash(username: str, password_hash: str, db_file: Path | None = None) -> None:
    admin = get_admin(username, db_file) or {
        "username": username,
        "created_at": datetime.now(timezone.utc).isoformat(timespec="seconds"),
    }
    admin["password_hash"] = password_hash
    write_value(ADMIN_KEY_PREFIX + username, json.dumps(admin), db_file)


def init_db(default_admin_hash: str, db_file: Path | None = None) -> None:
    """
    Initialize the database.
    - Create the key-value table
    - Insert default admin (admin/<GYM_DEFAULT_ADMIN_PASSWORD>) if no admin exists
    - Force password change on first login
    """
    create_tables(db_file)

    admin = fetch_one(
        "SELECT key FROM kv_store WHERE key LIKE ? LIMIT 1",
        (ADMIN_KEY_PREFIX + "%",),
        db_file=db_file,
    )
    if not admin:
        logger.info("No admin found, creating default admin user")
        set_admin_password_hash("admin", default_admin_hash, db_file)
        write_value(FORCE_PASSWORD_CHANGE_KEY, "1", db_file)
    else:
        # ensure setting exists
        if read_value(FORCE_PASSWORD_CHANGE_KEY, db_file) is None:
            write_value(FORCE_PASSWORD_CHANGE_KEY, "0", db_file)


def is_force_password_change(db_file: Path | None = None) -> bool:
    return read_value(FORCE_PASSWORD_CHANGE_KEY, db_file) == "1"


def clear_force_password_change(db_file: Path | None = None) -> None:
    write_value(FORCE_PASSWORD_CHANGE_KEY, "0", db_file)
