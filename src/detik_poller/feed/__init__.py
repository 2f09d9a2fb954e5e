"""Detik feed access — item model and page fetcher."""

from detik_poller.feed.fetcher import PageFetcher
from detik_poller.feed.models import FeedItem

__all__ = ["FeedItem", "PageFetcher"]
