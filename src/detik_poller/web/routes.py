"""API route handlers for the status API."""

from __future__ import annotations

import logging
import math
import sqlite3

from fastapi import APIRouter, Query, Request
from fastapi.responses import JSONResponse

from detik_poller.storage.connection import get_connection
from detik_poller.web.models import PollRunListResponse, ReportListResponse, StatusResponse
from detik_poller.web.queries import get_status, list_poll_runs, list_reports

logger = logging.getLogger(__name__)

router = APIRouter()
health_router = APIRouter()


@health_router.get("/health")
def health(request: Request) -> JSONResponse:
    """Check database connectivity and return health status."""
    database_path = request.app.state.database_path
    try:
        with get_connection(database_path) as conn:
            conn.execute("SELECT 1")
        return JSONResponse({"status": "healthy", "database": "ok"})
    except (sqlite3.Error, OSError) as exc:
        logger.warning("Health check failed: %s", exc)
        return JSONResponse(
            {"status": "unhealthy", "database": "error", "detail": str(exc)},
            status_code=503,
        )


@router.get("/status", response_model=StatusResponse)
def poll_status(request: Request) -> StatusResponse:
    state = request.app.state
    data = get_status(state.database_path, state.reports_table, state.users_table)
    return StatusResponse(**data)


@router.get("/runs", response_model=PollRunListResponse)
def runs(
    request: Request,
    status: str | None = None,
    page: int = Query(1, ge=1),
    per_page: int = Query(50, ge=1, le=100),
) -> PollRunListResponse:
    database_path = request.app.state.database_path
    rows, total = list_poll_runs(database_path, status=status, page=page, per_page=per_page)
    pages = math.ceil(total / per_page) if total else 0
    return PollRunListResponse(
        runs=rows,
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )


@router.get("/reports", response_model=ReportListResponse)
def reports(
    request: Request,
    page: int = Query(1, ge=1),
    per_page: int = Query(20, ge=1, le=100),
) -> ReportListResponse:
    state = request.app.state
    rows, total = list_reports(
        state.database_path, state.reports_table, page=page, per_page=per_page,
    )
    pages = math.ceil(total / per_page) if total else 0
    return ReportListResponse(
        reports=rows,
        total=total,
        page=page,
        per_page=per_page,
        pages=pages,
    )
