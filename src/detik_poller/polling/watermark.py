"""Watermark stores — persist the highest processed contribution id."""

from __future__ import annotations

import logging
import sqlite3
from abc import ABC, abstractmethod
from datetime import datetime, timezone

from detik_poller.errors import WatermarkError
from detik_poller.storage.connection import get_connection

logger = logging.getLogger(__name__)


class WatermarkStore(ABC):
    """Holds ``last_processed_id`` between poll cycles."""

    @abstractmethod
    def load(self) -> int:
        """Return the committed watermark, or 0 when nothing was processed."""

    @abstractmethod
    def commit(self, value: int) -> int:
        """Raise the watermark to ``value`` if higher. Returns the stored value."""


class InMemoryWatermarkStore(WatermarkStore):
    """Process-local watermark, lost on restart."""

    def __init__(self, initial: int = 0) -> None:
        self._value = initial

    def load(self) -> int:
        return self._value

    def commit(self, value: int) -> int:
        self._value = max(self._value, value)
        return self._value


class DatabaseWatermarkStore(WatermarkStore):
    """Watermark backed by the ``poll_state`` table.

    Until a cycle has committed a state row, loading falls back to the newest
    stored report, so a database that already holds reports resumes after
    them. Once the row exists it is authoritative. SQLite failures surface
    as WatermarkError.
    """

    def __init__(
        self,
        database_path: str,
        reports_table: str = "detik_reports",
        source: str = "detik",
    ) -> None:
        self._database_path = database_path
        self._reports_table = reports_table
        self._source = source

    def load(self) -> int:
        try:
            with get_connection(self._database_path) as conn:
                state = conn.execute(
                    "SELECT last_processed_id FROM poll_state WHERE source = ?",
                    (self._source,),
                ).fetchone()
                if state is not None:
                    value = state["last_processed_id"]
                    logger.info("Loaded watermark %d for '%s'", value, self._source)
                    return value
                stored_max = self._stored_max(conn)
        except sqlite3.Error as exc:
            raise WatermarkError(f"Loading watermark for '{self._source}' failed: {exc}") from exc

        if stored_max is None:
            logger.warning(
                "No previous contributions found for '%s'; watermark starts at 0",
                self._source,
            )
            return 0
        logger.info(
            "No committed watermark for '%s'; resuming after stored report %d",
            self._source, stored_max,
        )
        return stored_max

    def _stored_max(self, conn: sqlite3.Connection) -> int | None:
        try:
            row = conn.execute(
                f"SELECT MAX(contribution_id) AS max_id FROM {self._reports_table}"  # noqa: S608
            ).fetchone()
        except sqlite3.OperationalError:
            # HTTP-sink deployments may never create the reports table
            return None
        return row["max_id"] if row else None

    def commit(self, value: int) -> int:
        now = datetime.now(timezone.utc).isoformat()
        try:
            with get_connection(self._database_path) as conn:
                conn.execute(
                    "INSERT INTO poll_state (source, last_processed_id, updated_at) "
                    "VALUES (?, ?, ?) "
                    "ON CONFLICT(source) DO UPDATE SET "
                    "last_processed_id = MAX(last_processed_id, excluded.last_processed_id), "
                    "updated_at = excluded.updated_at",
                    (self._source, value, now),
                )
                row = conn.execute(
                    "SELECT last_processed_id FROM poll_state WHERE source = ?",
                    (self._source,),
                ).fetchone()
        except sqlite3.Error as exc:
            raise WatermarkError(f"Committing watermark for '{self._source}' failed: {exc}") from exc
        return row["last_processed_id"]
