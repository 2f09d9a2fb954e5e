"""Scheduled job functions — one Detik poll cycle plus its bookkeeping."""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone

import detik_poller.sinks  # noqa: F401  triggers sink registration
from detik_poller.alerts.telegram import send_message
from detik_poller.config import Config
from detik_poller.feed.fetcher import PageFetcher
from detik_poller.polling.forwarder import Forwarder
from detik_poller.polling.orchestrator import PollOrchestrator, PollResult
from detik_poller.polling.watermark import DatabaseWatermarkStore
from detik_poller.sinks.registry import get_sink_class, registered_types
from detik_poller.storage.connection import get_connection

logger = logging.getLogger(__name__)

_SOURCE = "detik"


def build_orchestrator(config: Config) -> PollOrchestrator:
    """Wire the fetcher, sink, forwarder and watermark store from config."""
    sink_cls = get_sink_class(config.sink_type)
    if sink_cls is None:
        raise ValueError(
            f"Unknown sink type '{config.sink_type}'; "
            f"expected one of: {', '.join(registered_types())}"
        )
    forwarder = Forwarder(
        sink_cls.from_config(config),
        lang=config.report_language,
        disaster_type=config.disaster_type,
    )
    return PollOrchestrator(
        PageFetcher(config.detik_url, timeout=config.request_timeout_seconds),
        DatabaseWatermarkStore(config.database_path, config.table_detik, source=_SOURCE),
        forwarder,
        config.historical_load_period_ms,
        max_pages=config.max_pages_per_poll,
    )


def _record_run(database_path: str, started_at: str, result: PollResult) -> None:
    """Insert a poll run record into the poll_runs table."""
    finished_at = datetime.now(timezone.utc).isoformat()
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO poll_runs "
            "(id, started_at, finished_at, status, stop_reason, pages_fetched, "
            "items_forwarded, items_dropped, watermark, error) "
            "VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?)",
            (
                str(uuid.uuid4()),
                started_at,
                finished_at,
                "success" if result.ok else "error",
                result.stop_reason,
                result.pages_fetched,
                result.items_forwarded,
                result.items_dropped,
                result.watermark,
                str(result.error) if result.error else None,
            ),
        )


def _record_failure(database_path: str, error_msg: str) -> int:
    """Record a failed poll cycle. Returns the updated consecutive_failures count."""
    now = datetime.now(timezone.utc).isoformat()
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO poll_errors "
            "(source, consecutive_failures, last_error, last_failed_at) "
            "VALUES (?, 1, ?, ?) "
            "ON CONFLICT(source) DO UPDATE SET "
            "consecutive_failures = consecutive_failures + 1, "
            "last_error = excluded.last_error, last_failed_at = excluded.last_failed_at",
            (_SOURCE, error_msg, now),
        )
        row = conn.execute(
            "SELECT consecutive_failures FROM poll_errors WHERE source = ?",
            (_SOURCE,),
        ).fetchone()
    return row["consecutive_failures"] if row else 1


def _record_success(database_path: str) -> None:
    """Reset the consecutive failure count after a successful cycle."""
    now = datetime.now(timezone.utc).isoformat()
    with get_connection(database_path) as conn:
        conn.execute(
            "INSERT INTO poll_errors "
            "(source, consecutive_failures, last_succeeded_at) "
            "VALUES (?, 0, ?) "
            "ON CONFLICT(source) DO UPDATE SET "
            "consecutive_failures = 0, last_succeeded_at = excluded.last_succeeded_at",
            (_SOURCE, now),
        )


def _send_alert(config: Config, message: str) -> None:
    """Send a Telegram alert when alerts are configured. Never raises."""
    if not config.alerts_enabled:
        return
    result = send_message(
        config.telegram_bot_token,
        config.telegram_chat_id,
        f"[DETIK POLLER ALERT]\n{message}",
        max_retries=2,
    )
    if not result.ok:
        logger.error("Failed to send alert: %s", result.error)


def run_poll(config: Config) -> PollResult:
    """Run one poll cycle, record it, and alert on a failure streak."""
    started_at = datetime.now(timezone.utc).isoformat()

    orchestrator = build_orchestrator(config)
    result = orchestrator.poll()

    try:
        _record_run(config.database_path, started_at, result)
        if result.ok:
            _record_success(config.database_path)
        else:
            consecutive = _record_failure(config.database_path, str(result.error))
            if consecutive >= config.poll_failure_alert_threshold:
                _send_alert(
                    config,
                    f"Detik poll has failed {consecutive} consecutive time(s). "
                    f"Last error: {result.error}",
                )
    except Exception:
        logger.exception("Failed to record poll run")

    return result
