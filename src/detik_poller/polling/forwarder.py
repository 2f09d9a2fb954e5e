"""Item forwarder — drop unlocated items, normalize the rest, dispatch."""

from __future__ import annotations

import enum
import logging

from detik_poller.feed.models import FeedItem
from detik_poller.sinks.base import Sink
from detik_poller.sinks.normalize import normalize_item

logger = logging.getLogger(__name__)


class ForwardOutcome(str, enum.Enum):
    FORWARDED = "forwarded"
    DROPPED_NO_LOCATION = "dropped_no_location"


class Forwarder:
    """Send accepted feed items to a sink.

    Sink failures propagate as DispatchError; there is no retry here.
    """

    def __init__(self, sink: Sink, *, lang: str = "id", disaster_type: str = "flood") -> None:
        self._sink = sink
        self._lang = lang
        self._disaster_type = disaster_type

    def forward(self, item: FeedItem) -> ForwardOutcome:
        if not item.has_location:
            logger.info("Dropping contribution %d: no location", item.contribution_id)
            return ForwardOutcome.DROPPED_NO_LOCATION

        report = normalize_item(item, lang=self._lang, disaster_type=self._disaster_type)
        self._sink.send(report)
        return ForwardOutcome.FORWARDED
