"""Poll orchestrator — walks feed pages and commits the watermark."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

from detik_poller.errors import DetikError, PageLimitError
from detik_poller.feed.fetcher import PageFetcher
from detik_poller.polling.batch import PollBatch
from detik_poller.polling.forwarder import Forwarder
from detik_poller.polling.watermark import WatermarkStore

logger = logging.getLogger(__name__)

STOP_END_OF_DATA = "end_of_data"
STOP_MAX_PAGES = "max_pages"
STOP_ERROR = "error"


@dataclass(frozen=True)
class PollResult:
    """Outcome of one poll cycle."""

    ok: bool
    stop_reason: str
    pages_fetched: int
    items_forwarded: int
    items_dropped: int
    watermark: int
    error: Exception | None = None


def _log_failure(message: str, exc: Exception) -> None:
    if isinstance(exc, DetikError):
        logger.error("%s: %s", message, exc)
    else:
        logger.exception("%s", message)


class PollOrchestrator:
    """Drive one fetch → filter loop per ``poll()`` call.

    At most one cycle may run against a watermark store at a time; callers
    serialize invocations.
    """

    def __init__(
        self,
        fetcher: PageFetcher,
        store: WatermarkStore,
        forwarder: Forwarder,
        historical_load_period_ms: int = 3_600_000,
        *,
        max_pages: int = 100,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._fetcher = fetcher
        self._store = store
        self._forwarder = forwarder
        self._historical_load_period_ms = historical_load_period_ms
        self._max_pages = max_pages
        self._clock = clock

    def poll(self) -> PollResult:
        """Run one poll cycle. Never raises.

        The first failure ends the cycle and is returned in the result.
        Whatever was handled before it is still committed to the watermark.

        Reaching ``max_pages`` also fails the cycle, but commits nothing past
        the starting watermark: the unvisited pages may still hold items
        inside the retention window, so the next cycle walks them again.
        When the store cannot be loaded no page is fetched and the result
        carries watermark 0.
        """
        try:
            last_processed_id = self._store.load()
        except Exception as exc:
            _log_failure("Loading watermark failed", exc)
            return PollResult(
                ok=False,
                stop_reason=STOP_ERROR,
                pages_fetched=0,
                items_forwarded=0,
                items_dropped=0,
                watermark=0,
                error=exc,
            )

        batch = PollBatch(
            last_processed_id,
            self._historical_load_period_ms,
            self._forwarder,
            clock=self._clock,
        )
        page = 0
        error: Exception | None = None
        stop_reason = STOP_END_OF_DATA

        try:
            keep_going = True
            while keep_going:
                if page >= self._max_pages:
                    error = PageLimitError(
                        f"Reached page limit of {self._max_pages} before the batch ended",
                        page=page,
                    )
                    stop_reason = STOP_MAX_PAGES
                    logger.warning(
                        "%s; watermark stays at %d", error, batch.last_processed_id,
                    )
                    break
                page += 1
                items = self._fetcher.fetch_page(page)
                if not items:
                    break
                keep_going = batch.filter_page(items)
                if not keep_going:
                    stop_reason = batch.stop_reason
        except Exception as exc:
            _log_failure(f"Poll cycle failed on page {page}", exc)
            error = exc
            stop_reason = STOP_ERROR
        finally:
            if stop_reason == STOP_MAX_PAGES:
                target = batch.last_processed_id
            else:
                target = max(batch.last_processed_id, batch.highest_batch_id)
            watermark, commit_error = self._commit(target, batch.last_processed_id)

        if commit_error is not None and error is None:
            error = commit_error
            stop_reason = STOP_ERROR

        logger.info(
            "Poll finished (%s): %d page(s), %d forwarded, %d dropped, watermark %d",
            stop_reason, page, batch.items_forwarded, batch.items_dropped, watermark,
        )
        return PollResult(
            ok=error is None,
            stop_reason=stop_reason,
            pages_fetched=page,
            items_forwarded=batch.items_forwarded,
            items_dropped=batch.items_dropped,
            watermark=watermark,
            error=error,
        )

    def _commit(self, value: int, fallback: int) -> tuple[int, Exception | None]:
        """Commit ``value``; on failure return ``fallback`` and the error."""
        try:
            return self._store.commit(value), None
        except Exception as exc:
            _log_failure(f"Committing watermark {value} failed", exc)
            return fallback, exc
