"""Poll cycle — pagination, stop rules, forwarding and watermark."""

from detik_poller.polling.orchestrator import PollOrchestrator, PollResult
from detik_poller.polling.watermark import DatabaseWatermarkStore, InMemoryWatermarkStore

__all__ = [
    "DatabaseWatermarkStore",
    "InMemoryWatermarkStore",
    "PollOrchestrator",
    "PollResult",
]
