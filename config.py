"""
config.py
Environment-driven settings for the membership tracker.
"""

from __future__ import annotations

import os
from pathlib import Path

DB_FILE = Path(os.environ.get("GYM_DB_FILE", str(Path(__file__).with_name("gym.db"))))

# Name of the key-value slot that holds the whole member collection
STORAGE_KEY = os.environ.get("GYM_STORAGE_KEY", "gym-members")

CURRENCY_SYMBOL = os.environ.get("GYM_CURRENCY", "₹")

# Members due within this many days count as "due soon"
DUE_SOON_DAYS = int(os.environ.get("GYM_DUE_SOON_DAYS", "7"))

LOG_LEVEL = os.environ.get("GYM_LOG_LEVEL", "INFO")

DEFAULT_ADMIN_PASSWORD = os.environ.get("GYM_DEFAULT_ADMIN_PASSWORD", "admin123")
