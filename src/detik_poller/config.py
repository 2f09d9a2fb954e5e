"""Configuration loading and validation."""

from __future__ import annotations

import os
import re
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


@dataclass(frozen=True)
class Config:
    """Application configuration. All values sourced from environment variables."""

    # Required
    detik_url: str
    database_path: str

    # Optional: Polling
    historical_load_period_ms: int = 3_600_000
    poll_interval_minutes: int = 5
    max_pages_per_poll: int = 100
    request_timeout_seconds: int = 30

    # Optional: Sink
    sink_type: str = "database"
    cognicity_feed_endpoint: str = ""
    table_detik: str = "detik_reports"
    table_detik_users: str = "detik_users"
    report_language: str = "id"
    disaster_type: str = "flood"

    # Optional: Alerts
    telegram_bot_token: str = ""
    telegram_chat_id: str = ""
    poll_failure_alert_threshold: int = 3

    # Optional: Web
    web_host: str = "0.0.0.0"
    web_port: int = 8080

    # Optional: Application
    log_level: str = "INFO"
    log_format: str = "json"
    app_env: str = "production"

    @property
    def alerts_enabled(self) -> bool:
        return bool(self.telegram_bot_token and self.telegram_chat_id)


_REQUIRED_VARS = [
    "DETIK_URL",
    "DATABASE_PATH",
]

_IDENTIFIER_RE = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _validate_table_name(var: str, value: str) -> str:
    """Table names are interpolated into SQL, so only plain identifiers pass."""
    if not _IDENTIFIER_RE.match(value):
        raise ValueError(f"{var} must be a plain SQL identifier, got '{value}'")
    return value


def load_config(env_path: str | Path | None = None) -> Config:
    """Load configuration from environment variables.

    Loads a .env file if present (for local development), then validates
    that all required variables are set. Raises ValueError listing any
    missing variables, or naming an invalid table name.
    """
    load_dotenv(dotenv_path=env_path)

    missing = [var for var in _REQUIRED_VARS if not os.environ.get(var)]
    if missing:
        raise ValueError(
            f"Missing required environment variables: {', '.join(missing)}"
        )

    sink_type = os.environ.get("SINK_TYPE", "database")
    endpoint = os.environ.get("COGNICITY_FEED_ENDPOINT", "")
    if sink_type == "http" and not endpoint:
        raise ValueError("COGNICITY_FEED_ENDPOINT is required when SINK_TYPE=http")

    return Config(
        # Required
        detik_url=os.environ["DETIK_URL"],
        database_path=os.environ["DATABASE_PATH"],
        # Optional: Polling
        historical_load_period_ms=int(os.environ.get("HISTORICAL_LOAD_PERIOD", "3600000")),
        poll_interval_minutes=int(os.environ.get("POLL_INTERVAL_MINUTES", "5")),
        max_pages_per_poll=int(os.environ.get("MAX_PAGES_PER_POLL", "100")),
        request_timeout_seconds=int(os.environ.get("REQUEST_TIMEOUT_SECONDS", "30")),
        # Optional: Sink
        sink_type=sink_type,
        cognicity_feed_endpoint=endpoint,
        table_detik=_validate_table_name(
            "TABLE_DETIK", os.environ.get("TABLE_DETIK", "detik_reports"),
        ),
        table_detik_users=_validate_table_name(
            "TABLE_DETIK_USERS", os.environ.get("TABLE_DETIK_USERS", "detik_users"),
        ),
        report_language=os.environ.get("REPORT_LANGUAGE", "id"),
        disaster_type=os.environ.get("DISASTER_TYPE", "flood"),
        # Optional: Alerts
        telegram_bot_token=os.environ.get("TELEGRAM_BOT_TOKEN", ""),
        telegram_chat_id=os.environ.get("TELEGRAM_CHAT_ID", ""),
        poll_failure_alert_threshold=int(os.environ.get("POLL_FAILURE_ALERT_THRESHOLD", "3")),
        # Optional: Web
        web_host=os.environ.get("WEB_HOST", "0.0.0.0"),
        web_port=int(os.environ.get("WEB_PORT", "8080")),
        # Optional: Application
        log_level=os.environ.get("LOG_LEVEL", "INFO"),
        log_format=os.environ.get("LOG_FORMAT", "json"),
        app_env=os.environ.get("APP_ENV", "production"),
    )
