"""Shared constants and globals for the session engine modules."""

from __future__ import annotations

from pathlib import Path

# Default values used throughout the engine
DEFAULT_SETS_PER_EXERCISE = 1
DEFAULT_HOLD_THRESHOLD_MS = 800
DEFAULT_TICK_INTERVAL = 1.0
DEFAULT_CALORIES_PER_SECOND = 0.1
DEFAULT_SAVE_RETRY_ATTEMPTS = 3

# Path to the SQLite database used by the bundled collaborators
DEFAULT_DB_PATH = Path(__file__).resolve().parent / "data" / "sessions.db"

# Schema applied by :func:`session_engine.store.init_db`
SCHEMA_PATH = Path(__file__).resolve().parent / "data" / "schema.sql"

__all__ = [
    "DEFAULT_SETS_PER_EXERCISE",
    "DEFAULT_HOLD_THRESHOLD_MS",
    "DEFAULT_TICK_INTERVAL",
    "DEFAULT_CALORIES_PER_SECOND",
    "DEFAULT_SAVE_RETRY_ATTEMPTS",
    "DEFAULT_DB_PATH",
    "SCHEMA_PATH",
]
