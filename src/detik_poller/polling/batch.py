"""Result filter — the per-page stop rules of one poll batch."""

from __future__ import annotations

import logging
import time
from typing import Callable

from detik_poller.feed.models import FeedItem
from detik_poller.polling.forwarder import Forwarder, ForwardOutcome

logger = logging.getLogger(__name__)

STOP_SEEN = "seen"
STOP_TOO_OLD = "too_old"


class PollBatch:
    """State of one poll cycle: the starting watermark and what was handled.

    ``last_processed_id`` is fixed for the whole batch. ``highest_batch_id``
    only moves past an item once the forwarder returned for it, so a failed
    dispatch never advances the watermark over that item.
    """

    def __init__(
        self,
        last_processed_id: int,
        historical_load_period_ms: int,
        forwarder: Forwarder,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.last_processed_id = last_processed_id
        self.highest_batch_id = last_processed_id
        self.historical_load_period_ms = historical_load_period_ms
        self.items_forwarded = 0
        self.items_dropped = 0
        self.stop_reason: str | None = None
        self._forwarder = forwarder
        self._clock = clock

    def filter_page(self, items: list[FeedItem]) -> bool:
        """Process a page newest-first. Returns True to fetch the next page.

        Stops at the first item already covered by the watermark, then at the
        first item whose last update falls outside the retention window.
        Raises DispatchError from the sink, leaving the rest unprocessed.
        """
        now_ms = self._clock() * 1000
        cutoff_ms = now_ms - self.historical_load_period_ms

        for item in items:
            if item.contribution_id <= self.last_processed_id:
                logger.info(
                    "Contribution %d already processed (watermark %d), stopping",
                    item.contribution_id, self.last_processed_id,
                )
                self.stop_reason = STOP_SEEN
                return False

            if item.update_timestamp * 1000 < cutoff_ms:
                logger.info(
                    "Contribution %d older than maximum configured age of %d seconds, stopping",
                    item.contribution_id, self.historical_load_period_ms // 1000,
                )
                self.stop_reason = STOP_TOO_OLD
                return False

            logger.debug("Processing contribution %d", item.contribution_id)
            outcome = self._forwarder.forward(item)
            if outcome is ForwardOutcome.FORWARDED:
                self.items_forwarded += 1
            else:
                self.items_dropped += 1
            self.highest_batch_id = max(self.highest_batch_id, item.contribution_id)

        return True
