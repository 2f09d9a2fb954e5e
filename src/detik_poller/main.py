"""Application entry points — scheduled service and single-shot poll."""

from __future__ import annotations

import json
import logging
import sys
from contextlib import asynccontextmanager
from datetime import datetime, timezone

import uvicorn
from apscheduler.schedulers.background import BackgroundScheduler
from apscheduler.triggers.interval import IntervalTrigger

from detik_poller.config import Config, load_config
from detik_poller.jobs import run_poll
from detik_poller.storage import init_db
from detik_poller.web.app import create_app

logger = logging.getLogger("detik_poller")


def _setup_logging(log_level: str, log_format: str) -> None:
    """Configure root logger based on config."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    if log_format == "json":
        formatter = logging.Formatter(
            json.dumps(
                {
                    "time": "%(asctime)s",
                    "level": "%(levelname)s",
                    "logger": "%(name)s",
                    "message": "%(message)s",
                }
            )
        )
    else:
        formatter = logging.Formatter("%(asctime)s [%(levelname)s] %(name)s: %(message)s")

    handler = logging.StreamHandler(sys.stderr)
    handler.setFormatter(formatter)

    root = logging.getLogger()
    root.setLevel(level)
    root.addHandler(handler)


def _build_scheduler(config: Config) -> BackgroundScheduler:
    """Create a BackgroundScheduler running the poll job on an interval.

    The first run fires immediately. ``max_instances=1`` keeps poll cycles
    from overlapping on the shared watermark.
    """
    scheduler = BackgroundScheduler()
    scheduler.add_job(
        run_poll,
        trigger=IntervalTrigger(minutes=config.poll_interval_minutes),
        args=[config],
        id="poll",
        name="Detik poll",
        max_instances=1,
        coalesce=True,
        next_run_time=datetime.now(timezone.utc),
    )
    return scheduler


def _startup(config: Config) -> None:
    _setup_logging(config.log_level, config.log_format)
    logger.info(
        "Detik poller starting (env=%s, db=%s, sink=%s)",
        config.app_env,
        config.database_path,
        config.sink_type,
    )
    init_db(config.database_path, config.table_detik, config.table_detik_users)


def main() -> None:
    """Load config, set up logging, and start scheduler + web server."""
    config = load_config()
    _startup(config)

    scheduler = _build_scheduler(config)

    @asynccontextmanager
    async def lifespan(app):
        logger.info("Scheduler starting")
        scheduler.start()
        yield
        logger.info("Scheduler shutting down")
        scheduler.shutdown(wait=False)

    app = create_app(config, lifespan=lifespan)

    uvicorn.run(app, host=config.web_host, port=config.web_port)


def poll_once() -> None:
    """Run a single poll cycle and exit non-zero if it failed."""
    config = load_config()
    _startup(config)

    result = run_poll(config)
    sys.exit(0 if result.ok else 1)


if __name__ == "__main__":
    main()
