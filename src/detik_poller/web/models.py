"""Pydantic v2 response models for the status API."""

from __future__ import annotations

from pydantic import BaseModel


class PollRun(BaseModel):
    id: str
    started_at: str
    finished_at: str
    status: str
    stop_reason: str
    pages_fetched: int
    items_forwarded: int
    items_dropped: int
    watermark: int
    error: str | None


class PollRunListResponse(BaseModel):
    runs: list[PollRun]
    total: int
    page: int
    per_page: int
    pages: int


class StatusResponse(BaseModel):
    watermark: int
    watermark_updated_at: str | None
    total_reports: int
    total_users: int
    consecutive_failures: int
    last_run: PollRun | None


class Report(BaseModel):
    contribution_id: int
    created_at: str
    disaster_type: str
    text: str | None
    lang: str
    url: str | None
    image_url: str | None
    title: str | None
    the_geom: str
    stored_at: str


class ReportListResponse(BaseModel):
    reports: list[Report]
    total: int
    page: int
    per_page: int
    pages: int
