"""Database sink — stores reports and upserts their hashed authors."""

from __future__ import annotations

import logging
import sqlite3
from datetime import datetime, timezone

from detik_poller.config import Config
from detik_poller.errors import DispatchError
from detik_poller.sinks.base import Sink
from detik_poller.sinks.normalize import NormalizedReport
from detik_poller.storage.connection import get_connection

logger = logging.getLogger(__name__)


class DatabaseSink(Sink):
    """Insert confirmed reports into the reports table.

    The report row and the user upsert share one transaction, so a report is
    never stored without its author being counted. A report already stored
    is skipped, so re-walking pages after a failed cycle adds no duplicates.
    """

    def __init__(
        self,
        database_path: str,
        reports_table: str = "detik_reports",
        users_table: str = "detik_users",
    ) -> None:
        self._database_path = database_path
        self._reports_table = reports_table
        self._users_table = users_table

    @property
    def name(self) -> str:
        return "database"

    @classmethod
    def from_config(cls, config: Config) -> DatabaseSink:
        return cls(config.database_path, config.table_detik, config.table_detik_users)

    def send(self, report: NormalizedReport) -> None:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with get_connection(self._database_path) as conn:
                cursor = conn.execute(
                    f"INSERT INTO {self._reports_table} "  # noqa: S608
                    "(contribution_id, created_at, disaster_type, text, lang, url, "
                    "image_url, title, the_geom, user_hash, stored_at) "
                    "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?) "
                    "ON CONFLICT(contribution_id) DO NOTHING",
                    (
                        report.contribution_id,
                        report.created_at,
                        report.disaster_type,
                        report.text,
                        report.lang,
                        report.url,
                        report.image_url,
                        report.title,
                        report.geometry_wkt,
                        report.user_hash,
                        now,
                    ),
                )
                if cursor.rowcount == 0:
                    logger.info("Report %d already stored, skipping", report.contribution_id)
                    return
                if report.user_hash:
                    conn.execute(
                        f"INSERT INTO {self._users_table} "  # noqa: S608
                        "(user_hash, reports_count, first_seen_at, last_seen_at) "
                        "VALUES (?, 1, ?, ?) "
                        "ON CONFLICT(user_hash) DO UPDATE SET "
                        "reports_count = reports_count + 1, "
                        "last_seen_at = excluded.last_seen_at",
                        (report.user_hash, now, now),
                    )
        except sqlite3.Error as exc:
            raise DispatchError(
                f"Storing report {report.contribution_id} failed: {exc}",
                contribution_id=report.contribution_id,
            ) from exc
        logger.info("Stored report %d", report.contribution_id)
