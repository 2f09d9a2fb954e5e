"""Page fetcher — retrieves one page of Detik contributions."""

from __future__ import annotations

import logging

import httpx

from detik_poller.errors import FetchError, ParseError
from detik_poller.feed.models import FeedItem

logger = logging.getLogger(__name__)


class PageFetcher:
    """Fetch and parse pages of the Detik feed.

    The configured URL usually already carries query parameters (API key,
    filters); the page number is merged into them. No retries: a failed
    fetch ends the poll cycle and the next scheduled cycle tries again.
    """

    def __init__(self, feed_url: str, timeout: float = 30) -> None:
        self._feed_url = feed_url
        self._timeout = timeout

    def fetch_page(self, page: int) -> list[FeedItem]:
        """Return the items on ``page`` (1-based), newest first.

        An empty list means the feed has no more data. Raises FetchError on
        transport failures or non-success statuses and ParseError when the
        body is not the expected JSON shape.
        """
        logger.info("Loading page %d", page)
        try:
            resp = httpx.get(self._feed_url, params={"page": page}, timeout=self._timeout)
            resp.raise_for_status()
        except httpx.HTTPError as exc:
            raise FetchError(f"Error fetching page {page}: {exc}", page=page) from exc

        try:
            body = resp.json()
        except ValueError as exc:
            raise ParseError(f"Error parsing JSON on page {page}: {exc}", page=page) from exc

        if not isinstance(body, dict):
            raise ParseError(f"Page {page} body is not a JSON object", page=page)

        results = body.get("result")
        if results is not None and not isinstance(results, list):
            raise ParseError(f"Page {page} 'result' is not a list", page=page)
        if not results:
            logger.info("No results found on page %d", page)
            return []

        try:
            items = [FeedItem.from_dict(entry) for entry in results]
        except ParseError as exc:
            exc.page = page
            raise

        logger.info("Page %d fetched, %d items", page, len(items))
        return items
