"""Feed item model parsed from Detik JSON contributions."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any

from detik_poller.errors import ParseError


def _dig(data: Any, *path: str) -> Any:
    """Walk nested mappings, returning None as soon as a key is missing."""
    for key in path:
        if not isinstance(data, dict):
            return None
        data = data.get(key)
    return data


def _as_float(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    return float(value)


def _as_timestamp(value: Any) -> float:
    """Epoch seconds that map to a real UTC datetime; NaN and overflow fail."""
    seconds = float(value)
    try:
        datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError) as exc:
        raise ValueError(f"timestamp {value!r} out of range") from exc
    return seconds


@dataclass(frozen=True)
class FeedItem:
    """A single contribution record from the feed."""

    contribution_id: int
    update_timestamp: float
    create_timestamp: float | None = None
    longitude: float = 0.0
    latitude: float = 0.0
    title: str | None = None
    content: str | None = None
    url: str | None = None
    photo: str | None = None
    user_id: str | None = None
    raw: dict = field(default_factory=dict, compare=False, repr=False)

    @property
    def has_location(self) -> bool:
        """Detik places users without a fix at (0, 0)."""
        return not (self.longitude == 0 and self.latitude == 0)

    @classmethod
    def from_dict(cls, data: Any) -> FeedItem:
        """Build a FeedItem from one entry of a page's ``result`` list.

        Raises ParseError when the entry is not an object or lacks the
        contribution id or update time the filter depends on.
        """
        if not isinstance(data, dict):
            raise ParseError(f"Feed item is not an object: {data!r}")

        contribution_id = data.get("contributionId")
        update_sec = _dig(data, "date", "update", "sec")
        if contribution_id is None or update_sec is None:
            raise ParseError(
                f"Feed item missing contributionId or date.update.sec: {data!r}"
            )

        create_sec = _dig(data, "date", "create", "sec")
        user_id = _dig(data, "user", "creator", "id")
        try:
            return cls(
                contribution_id=int(contribution_id),
                update_timestamp=_as_timestamp(update_sec),
                create_timestamp=_as_timestamp(create_sec) if create_sec is not None else None,
                longitude=_as_float(_dig(data, "location", "geospatial", "longitude")),
                latitude=_as_float(_dig(data, "location", "geospatial", "latitude")),
                title=data.get("title"),
                content=data.get("content"),
                url=data.get("url"),
                photo=_dig(data, "files", "photo"),
                user_id=str(user_id) if user_id is not None else None,
                raw=data,
            )
        except (TypeError, ValueError) as exc:
            raise ParseError(f"Feed item has malformed fields: {exc}") from exc
