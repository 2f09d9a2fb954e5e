"""Sink interface."""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from detik_poller.config import Config
    from detik_poller.sinks.normalize import NormalizedReport


class Sink(ABC):
    """Abstract base class for report sinks.

    A sink accepts one normalized report per call. The rest of the system
    does not know whether reports end up in a database or behind an HTTP
    endpoint.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable sink name."""

    @classmethod
    @abstractmethod
    def from_config(cls, config: Config) -> Sink:
        """Build the sink from application configuration."""

    @abstractmethod
    def send(self, report: NormalizedReport) -> None:
        """Deliver one report. Raises DispatchError on failure."""
