"""Sink registry — maps type strings to sink classes."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from detik_poller.sinks.base import Sink

_REGISTRY: dict[str, type[Sink]] = {}


def register_sink(type_name: str, cls: type[Sink]) -> None:
    """Register a sink class for a given type name."""
    _REGISTRY[type_name] = cls


def get_sink_class(type_name: str) -> type[Sink] | None:
    """Look up a sink class by type name. Returns None if not found."""
    return _REGISTRY.get(type_name)


def registered_types() -> list[str]:
    """Return a sorted list of all registered sink type names."""
    return sorted(_REGISTRY)
