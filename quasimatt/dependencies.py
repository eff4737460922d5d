"""
Dependency wiring for the FastAPI app.
"""

from __future__ import annotations

import logging

from fastapi import Request

from quasimatt.config import Settings, get_settings
from quasimatt.db import DbClient, InMemoryDbClient, PostgresDbClient

logger = logging.getLogger(__name__)


def build_db_client(settings: Settings | None = None) -> DbClient:
    """
    Construct the store client for one application lifetime.
    """
    settings = settings or get_settings()
    if settings.use_in_memory_backends or not settings.database_url:
        logger.warning("DATABASE_URL not set, using in-memory store")
        return InMemoryDbClient()
    return PostgresDbClient(
        settings.database_url,
        pool_size=settings.db_pool_size,
        max_overflow=settings.db_max_overflow,
    )


def get_db_client(request: Request) -> DbClient:
    """Return the store client owned by the running application."""
    return request.app.state.db


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings
