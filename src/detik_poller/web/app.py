"""FastAPI application factory for the poller status API."""

from __future__ import annotations

from fastapi import FastAPI

from detik_poller.config import Config
from detik_poller.web.routes import health_router, router


def create_app(config: Config, lifespan=None) -> FastAPI:
    """Build and return a configured FastAPI application."""
    app = FastAPI(title="Detik Poller", docs_url="/api/docs", lifespan=lifespan)
    app.state.database_path = config.database_path
    app.state.reports_table = config.table_detik
    app.state.users_table = config.table_detik_users
    app.include_router(health_router)
    app.include_router(router, prefix="/api/v1")
    return app
