"""Storage layer — SQLite access for reports, users, watermark and poll runs."""

from detik_poller.storage.connection import get_connection
from detik_poller.storage.schema import init_db

__all__ = ["get_connection", "init_db"]
