"""Tests for detik_poller.polling.orchestrator — poll cycle and watermark commit."""

from __future__ import annotations

from detik_poller.errors import (
    DispatchError,
    FetchError,
    PageLimitError,
    ParseError,
    WatermarkError,
)
from detik_poller.feed.models import FeedItem
from detik_poller.polling.forwarder import Forwarder
from detik_poller.polling.orchestrator import PollOrchestrator
from detik_poller.polling.watermark import InMemoryWatermarkStore
from detik_poller.sinks.base import Sink

NOW = 1_750_000_000.0
HOUR_MS = 3_600_000


class FakeFetcher:
    """Serves pre-built pages; an Exception in place of a page is raised."""

    def __init__(self, pages) -> None:
        self._pages = pages
        self.requested: list[int] = []

    def fetch_page(self, page: int):
        self.requested.append(page)
        result = self._pages.get(page, [])
        if isinstance(result, Exception):
            raise result
        return result


class RecordingSink(Sink):
    def __init__(self, fail_on=()) -> None:
        self.sent = []
        self._fail_on = set(fail_on)

    @property
    def name(self) -> str:
        return "recording"

    @classmethod
    def from_config(cls, config):
        return cls()

    def send(self, report) -> None:
        if report.contribution_id in self._fail_on:
            raise DispatchError("rejected", contribution_id=report.contribution_id)
        self.sent.append(report.contribution_id)


def _item(contribution_id, age_seconds=0) -> FeedItem:
    return FeedItem(
        contribution_id=contribution_id,
        update_timestamp=NOW - age_seconds,
        longitude=106.8,
        latitude=-6.2,
        raw={"contributionId": contribution_id},
    )


def _orchestrator(pages, store=None, sink=None, period_ms=HOUR_MS, max_pages=100):
    fetcher = FakeFetcher(pages)
    store = store if store is not None else InMemoryWatermarkStore()
    sink = sink if sink is not None else RecordingSink()
    orchestrator = PollOrchestrator(
        fetcher, store, Forwarder(sink), period_ms, max_pages=max_pages, clock=lambda: NOW,
    )
    return orchestrator, fetcher, store, sink


class TestPoll:
    def test_initial_batch_watermark_is_last_processed_id(self):
        store = InMemoryWatermarkStore(1234)
        orchestrator, fetcher, _, _ = _orchestrator({}, store=store)

        result = orchestrator.poll()

        assert result.ok is True
        assert result.stop_reason == "end_of_data"
        assert result.watermark == 1234
        assert fetcher.requested == [1]

    def test_walks_pages_until_end_of_data(self):
        pages = {1: [_item(6), _item(5)], 2: [_item(4), _item(3)]}
        orchestrator, fetcher, store, sink = _orchestrator(pages)

        result = orchestrator.poll()

        assert fetcher.requested == [1, 2, 3]
        assert sink.sent == [6, 5, 4, 3]
        assert result.pages_fetched == 3
        assert result.items_forwarded == 4
        assert store.load() == 6

    def test_stop_condition_prevents_next_page_fetch(self):
        pages = {1: [_item(6), _item(5, age_seconds=7200)], 2: [_item(4)]}
        orchestrator, fetcher, store, _ = _orchestrator(pages)

        result = orchestrator.poll()

        assert fetcher.requested == [1]
        assert result.stop_reason == "too_old"
        assert store.load() == 6

    def test_watermark_committed_from_second_page(self):
        pages = {1: [_item(4), _item(3)], 2: [_item(2), _item(1, age_seconds=7200)]}
        orchestrator, _, store, sink = _orchestrator(pages)

        orchestrator.poll()

        assert sink.sent == [4, 3, 2]
        assert store.load() == 4

    def test_second_cycle_processes_nothing_new(self):
        pages = {1: [_item(3), _item(2), _item(1)]}
        store = InMemoryWatermarkStore()
        sink = RecordingSink()

        _orchestrator(pages, store=store, sink=sink)[0].poll()
        result = _orchestrator(pages, store=store, sink=sink)[0].poll()

        assert sink.sent == [3, 2, 1]
        assert result.items_forwarded == 0
        assert result.stop_reason == "seen"
        assert result.watermark == 3

    def test_second_cycle_picks_up_only_newer_items(self):
        store = InMemoryWatermarkStore()
        sink = RecordingSink()
        _orchestrator({1: [_item(2), _item(1)]}, store=store, sink=sink)[0].poll()

        _orchestrator({1: [_item(4), _item(3), _item(2)]}, store=store, sink=sink)[0].poll()

        assert sink.sent == [2, 1, 4, 3]
        assert store.load() == 4

    def test_watermark_never_decreases_on_empty_cycle(self):
        store = InMemoryWatermarkStore(50)
        orchestrator, _, _, _ = _orchestrator({1: [_item(60, age_seconds=99999)]}, store=store)

        result = orchestrator.poll()

        assert result.items_forwarded == 0
        assert result.watermark == 50

    def test_fetch_error_reported_and_progress_committed(self):
        pages = {1: [_item(6), _item(5)], 2: FetchError("connection reset", page=2)}
        orchestrator, _, store, _ = _orchestrator(pages)

        result = orchestrator.poll()

        assert result.ok is False
        assert result.stop_reason == "error"
        assert isinstance(result.error, FetchError)
        assert result.watermark == 6
        assert store.load() == 6

    def test_parse_error_reported_and_progress_committed(self):
        pages = {1: [_item(9)], 2: ParseError("Error parsing JSON", page=2)}
        orchestrator, fetcher, store, _ = _orchestrator(pages)

        result = orchestrator.poll()

        assert isinstance(result.error, ParseError)
        assert fetcher.requested == [1, 2]
        assert store.load() == 9

    def test_error_on_first_page_keeps_watermark(self):
        store = InMemoryWatermarkStore(40)
        orchestrator, _, _, _ = _orchestrator({1: FetchError("down", page=1)}, store=store)

        result = orchestrator.poll()

        assert result.ok is False
        assert result.watermark == 40

    def test_dispatch_error_aborts_batch(self):
        pages = {1: [_item(9), _item(8), _item(7)], 2: [_item(6)]}
        sink = RecordingSink(fail_on={8})
        orchestrator, fetcher, store, _ = _orchestrator(pages, sink=sink)

        result = orchestrator.poll()

        assert result.ok is False
        assert isinstance(result.error, DispatchError)
        assert sink.sent == [9]
        assert fetcher.requested == [1]
        assert store.load() == 9

    def test_page_limit_fails_cycle_without_advancing_watermark(self):
        pages = {n: [_item(100 - n)] for n in range(1, 7)}
        store = InMemoryWatermarkStore(50)
        orchestrator, fetcher, _, sink = _orchestrator(pages, store=store, max_pages=3)

        result = orchestrator.poll()

        assert fetcher.requested == [1, 2, 3]
        assert sink.sent == [99, 98, 97]
        assert result.ok is False
        assert result.stop_reason == "max_pages"
        assert isinstance(result.error, PageLimitError)
        assert result.watermark == 50
        assert store.load() == 50

    def test_items_past_page_limit_delivered_by_later_cycle(self):
        pages = {n: [_item(100 - n)] for n in range(1, 7)}
        store = InMemoryWatermarkStore()
        sink = RecordingSink()

        first = _orchestrator(pages, store=store, sink=sink, max_pages=3)[0].poll()
        second = _orchestrator(pages, store=store, sink=sink, max_pages=10)[0].poll()

        assert first.ok is False
        assert second.ok is True
        assert second.stop_reason == "end_of_data"
        assert {96, 95, 94} <= set(sink.sent)
        assert store.load() == 99

    def test_unexpected_error_returned_not_raised(self):
        bad = FeedItem(
            contribution_id=7,
            update_timestamp=NOW,
            create_timestamp=1e20,
            longitude=106.8,
            latitude=-6.2,
        )
        pages = {1: [_item(8), bad, _item(6)]}
        orchestrator, fetcher, store, sink = _orchestrator(pages)

        result = orchestrator.poll()

        assert result.ok is False
        assert result.stop_reason == "error"
        assert isinstance(result.error, (OverflowError, OSError, ValueError))
        assert sink.sent == [8]
        assert fetcher.requested == [1]
        assert store.load() == 8


class FailingStore(InMemoryWatermarkStore):
    """In-memory store that raises the given errors on load or commit."""

    def __init__(self, initial=0, load_error=None, commit_error=None) -> None:
        super().__init__(initial)
        self._load_error = load_error
        self._commit_error = commit_error
        self.commits: list[int] = []

    def load(self) -> int:
        if self._load_error is not None:
            raise self._load_error
        return super().load()

    def commit(self, value: int) -> int:
        self.commits.append(value)
        if self._commit_error is not None:
            raise self._commit_error
        return super().commit(value)


class TestStoreFailures:
    def test_load_failure_returns_error_without_fetching(self):
        store = FailingStore(load_error=WatermarkError("database is locked"))
        orchestrator, fetcher, _, sink = _orchestrator({1: [_item(3)]}, store=store)

        result = orchestrator.poll()

        assert result.ok is False
        assert result.stop_reason == "error"
        assert isinstance(result.error, WatermarkError)
        assert result.pages_fetched == 0
        assert fetcher.requested == []
        assert sink.sent == []
        assert store.commits == []

    def test_commit_failure_reported_after_clean_batch(self):
        store = FailingStore(initial=10, commit_error=WatermarkError("disk I/O error"))
        orchestrator, _, _, sink = _orchestrator({1: [_item(12), _item(11)]}, store=store)

        result = orchestrator.poll()

        assert sink.sent == [12, 11]
        assert store.commits == [12]
        assert result.ok is False
        assert result.stop_reason == "error"
        assert isinstance(result.error, WatermarkError)
        assert result.watermark == 10

    def test_first_error_wins_over_commit_failure(self):
        store = FailingStore(commit_error=WatermarkError("disk I/O error"))
        pages = {1: [_item(5)], 2: FetchError("timeout", page=2)}
        orchestrator, _, _, _ = _orchestrator(pages, store=store)

        result = orchestrator.poll()

        assert isinstance(result.error, FetchError)
        assert store.commits == [5]

    def test_unexpected_load_error_returned(self):
        store = FailingStore(load_error=RuntimeError("boom"))
        orchestrator, _, _, _ = _orchestrator({}, store=store)

        result = orchestrator.poll()

        assert result.ok is False
        assert isinstance(result.error, RuntimeError)
