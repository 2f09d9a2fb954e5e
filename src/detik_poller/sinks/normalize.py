"""Normalization — reshape a FeedItem into the report the sinks accept."""

from __future__ import annotations

import copy
import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone

from detik_poller.feed.models import FeedItem

# Detik double-escapes quotes inside URLs
_ESCAPE_ARTIFACT = "''"


@dataclass(frozen=True)
class NormalizedReport:
    """Canonical representation of a confirmed Detik report."""

    contribution_id: int
    created_at: str
    disaster_type: str
    text: str | None
    lang: str
    url: str | None
    image_url: str | None
    title: str | None
    longitude: float
    latitude: float
    user_hash: str | None
    payload: dict

    @property
    def geometry_wkt(self) -> str:
        return f"POINT({self.longitude} {self.latitude})"


def _strip_escapes(value: str | None) -> str | None:
    if not value:
        return None
    return value.replace(_ESCAPE_ARTIFACT, "")


def hash_user_id(user_id: str | None) -> str | None:
    """Return the SHA-256 hex digest of a Detik user identifier."""
    if not user_id:
        return None
    return hashlib.sha256(user_id.encode("utf-8")).hexdigest()


def normalize_item(
    item: FeedItem,
    *,
    lang: str = "id",
    disaster_type: str = "flood",
) -> NormalizedReport:
    """Apply Detik-specific fixes and stamp the language and disaster type.

    Falls back to the update time when the feed omits a creation time.
    ``payload`` is a copy of the raw contribution with the same fixes
    applied, for sinks that forward the feed shape as-is.
    """
    photo = _strip_escapes(item.photo)
    url = _strip_escapes(item.url)
    created_sec = item.create_timestamp if item.create_timestamp is not None else item.update_timestamp
    created_at = datetime.fromtimestamp(created_sec, tz=timezone.utc).isoformat()

    payload = copy.deepcopy(item.raw)
    files = payload.get("files")
    if not isinstance(files, dict):
        files = {}
        payload["files"] = files
    files["photo"] = photo
    payload["url"] = url
    payload["lang"] = lang
    payload["disaster_type"] = disaster_type

    return NormalizedReport(
        contribution_id=item.contribution_id,
        created_at=created_at,
        disaster_type=disaster_type,
        text=item.content,
        lang=lang,
        url=url,
        image_url=photo,
        title=item.title,
        longitude=item.longitude,
        latitude=item.latitude,
        user_hash=hash_user_id(item.user_id),
        payload=payload,
    )
