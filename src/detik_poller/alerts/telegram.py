"""Telegram Bot API client — operator alerts for failing poll cycles."""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"


@dataclass(frozen=True)
class SendResult:
    """Result of a Telegram sendMessage call."""

    ok: bool
    message_id: int | None = None
    error: str | None = None


def send_message(
    bot_token: str,
    chat_id: str,
    text: str,
    *,
    max_retries: int = 3,
) -> SendResult:
    """Send a plain-text message via the Telegram Bot API.

    Backs off 2^attempt seconds between attempts. Returns a structured
    result and never raises.
    """
    url = f"{TELEGRAM_API_BASE}/bot{bot_token}/sendMessage"
    payload = {"chat_id": chat_id, "text": text}

    last_error = ""
    for attempt in range(max_retries):
        try:
            response = httpx.post(url, json=payload, timeout=30)
            data = response.json()
            if data.get("ok"):
                msg_id = data["result"]["message_id"]
                logger.info("Alert sent: message_id=%d", msg_id)
                return SendResult(ok=True, message_id=msg_id)
            last_error = data.get("description", "Unknown Telegram error")
            logger.warning(
                "Telegram API error (attempt %d/%d): %s",
                attempt + 1, max_retries, last_error,
            )
        except (httpx.HTTPError, ValueError) as exc:
            last_error = str(exc)
            logger.warning(
                "Telegram request failed (attempt %d/%d): %s",
                attempt + 1, max_retries, last_error,
            )

        if attempt < max_retries - 1:
            time.sleep(2 ** attempt)

    return SendResult(ok=False, error=last_error)
