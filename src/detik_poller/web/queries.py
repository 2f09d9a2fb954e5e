"""Read-only query functions for the status API."""

from __future__ import annotations

from detik_poller.storage.connection import get_readonly_connection

_RUN_COLUMNS = (
    "id, started_at, finished_at, status, stop_reason, pages_fetched, "
    "items_forwarded, items_dropped, watermark, error"
)

_REPORT_COLUMNS = (
    "contribution_id, created_at, disaster_type, text, lang, url, "
    "image_url, title, the_geom, stored_at"
)


def get_status(database_path: str, reports_table: str, users_table: str) -> dict:
    """Return the committed watermark, storage counts and the latest run."""
    with get_readonly_connection(database_path) as conn:
        state = conn.execute(
            "SELECT last_processed_id, updated_at FROM poll_state WHERE source = 'detik'"
        ).fetchone()
        total_reports = conn.execute(
            f"SELECT COUNT(*) FROM {reports_table}"  # noqa: S608
        ).fetchone()[0]
        total_users = conn.execute(
            f"SELECT COUNT(*) FROM {users_table}"  # noqa: S608
        ).fetchone()[0]
        errors = conn.execute(
            "SELECT consecutive_failures FROM poll_errors WHERE source = 'detik'"
        ).fetchone()
        last_run = conn.execute(
            f"SELECT {_RUN_COLUMNS} FROM poll_runs ORDER BY started_at DESC LIMIT 1"  # noqa: S608
        ).fetchone()

    return {
        "watermark": state["last_processed_id"] if state else 0,
        "watermark_updated_at": state["updated_at"] if state else None,
        "total_reports": total_reports,
        "total_users": total_users,
        "consecutive_failures": errors["consecutive_failures"] if errors else 0,
        "last_run": dict(last_run) if last_run else None,
    }


def list_poll_runs(
    database_path: str,
    *,
    status: str | None = None,
    page: int = 1,
    per_page: int = 50,
) -> tuple[list[dict], int]:
    """Return a page of poll runs, newest first, and the total count."""
    where = ""
    params: list = []
    if status:
        where = "WHERE status = ?"
        params.append(status)

    with get_readonly_connection(database_path) as conn:
        total = conn.execute(
            f"SELECT COUNT(*) FROM poll_runs {where}", params  # noqa: S608
        ).fetchone()[0]
        rows = conn.execute(
            f"SELECT {_RUN_COLUMNS} FROM poll_runs {where} "  # noqa: S608
            "ORDER BY started_at DESC LIMIT ? OFFSET ?",
            [*params, per_page, (page - 1) * per_page],
        ).fetchall()
    return [dict(r) for r in rows], total


def list_reports(
    database_path: str,
    reports_table: str,
    *,
    page: int = 1,
    per_page: int = 20,
) -> tuple[list[dict], int]:
    """Return a page of stored reports, highest contribution id first."""
    with get_readonly_connection(database_path) as conn:
        total = conn.execute(
            f"SELECT COUNT(*) FROM {reports_table}"  # noqa: S608
        ).fetchone()[0]
        rows = conn.execute(
            f"SELECT {_REPORT_COLUMNS} FROM {reports_table} "  # noqa: S608
            "ORDER BY contribution_id DESC LIMIT ? OFFSET ?",
            (per_page, (page - 1) * per_page),
        ).fetchall()
    return [dict(r) for r in rows], total
