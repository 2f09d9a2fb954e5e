"""HTTP sink — posts normalized reports to the CogniCity feed endpoint."""

from __future__ import annotations

import logging

import httpx

from detik_poller.config import Config
from detik_poller.errors import DispatchError
from detik_poller.sinks.base import Sink
from detik_poller.sinks.normalize import NormalizedReport

logger = logging.getLogger(__name__)


class HttpSink(Sink):
    """POST each report, as the feed shaped it, to an ingestion endpoint."""

    def __init__(self, endpoint: str, timeout: float = 30) -> None:
        self._endpoint = endpoint
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "http"

    @classmethod
    def from_config(cls, config: Config) -> HttpSink:
        return cls(config.cognicity_feed_endpoint, timeout=config.request_timeout_seconds)

    def send(self, report: NormalizedReport) -> None:
        try:
            resp = httpx.post(self._endpoint, json=report.payload, timeout=self._timeout)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise DispatchError(
                f"Posting report {report.contribution_id} failed: {exc}",
                contribution_id=report.contribution_id,
            ) from exc
        logger.info("Posted report %d to %s", report.contribution_id, self._endpoint)
