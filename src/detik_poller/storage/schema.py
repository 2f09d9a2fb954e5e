"""Database schema definition and initialization."""

from __future__ import annotations

import logging

from detik_poller.storage.connection import get_connection

logger = logging.getLogger(__name__)

# Report and user tables are named by configuration; the rest are fixed.
_REPORTS_SQL = """\
-- Confirmed Detik reports (those carrying a location)
CREATE TABLE IF NOT EXISTS {reports} (
    contribution_id INTEGER PRIMARY KEY,
    created_at      TEXT NOT NULL,
    disaster_type   TEXT NOT NULL,
    text            TEXT,
    lang            TEXT NOT NULL,
    url             TEXT,
    image_url       TEXT,
    title           TEXT,
    the_geom        TEXT NOT NULL,          -- WKT POINT(lon lat)
    user_hash       TEXT,
    stored_at       TEXT NOT NULL
);
CREATE INDEX IF NOT EXISTS idx_{reports}_created_at ON {reports}(created_at);

-- Reporting users, tracked by a hash of their Detik identifier
CREATE TABLE IF NOT EXISTS {users} (
    user_hash       TEXT PRIMARY KEY,
    reports_count   INTEGER NOT NULL DEFAULT 1,
    first_seen_at   TEXT NOT NULL,
    last_seen_at    TEXT NOT NULL
);
"""

_STATE_SQL = """\
-- Committed watermark per feed
CREATE TABLE IF NOT EXISTS poll_state (
    source              TEXT PRIMARY KEY,
    last_processed_id   INTEGER NOT NULL,
    updated_at          TEXT NOT NULL
);

-- One row per poll cycle
CREATE TABLE IF NOT EXISTS poll_runs (
    id              TEXT PRIMARY KEY,
    started_at      TEXT NOT NULL,
    finished_at     TEXT NOT NULL,
    status          TEXT NOT NULL CHECK (status IN ('success', 'error')),
    stop_reason     TEXT NOT NULL,
    pages_fetched   INTEGER NOT NULL,
    items_forwarded INTEGER NOT NULL,
    items_dropped   INTEGER NOT NULL,
    watermark       INTEGER NOT NULL,
    error           TEXT
);
CREATE INDEX IF NOT EXISTS idx_poll_runs_started_at ON poll_runs(started_at);
CREATE INDEX IF NOT EXISTS idx_poll_runs_status ON poll_runs(status);

-- Consecutive failure tracking for alerting
CREATE TABLE IF NOT EXISTS poll_errors (
    source                  TEXT PRIMARY KEY,
    consecutive_failures    INTEGER NOT NULL DEFAULT 0,
    last_error              TEXT,
    last_failed_at          TEXT,
    last_succeeded_at       TEXT
);
"""


def init_db(
    database_path: str,
    reports_table: str = "detik_reports",
    users_table: str = "detik_users",
) -> None:
    """Create all tables and indexes if they do not already exist."""
    with get_connection(database_path) as conn:
        conn.executescript(_REPORTS_SQL.format(reports=reports_table, users=users_table))
        conn.executescript(_STATE_SQL)
    logger.info("Database initialized at %s", database_path)
