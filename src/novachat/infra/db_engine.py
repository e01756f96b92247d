"""Async SQLAlchemy engine and session factory -- **leaf module**.

``build_db`` is a lifespan dependency: it creates the engine + session
factory, attaches them to ``app.state``, and disposes the engine on
shutdown.  With the in-memory storage backend no engine is created and
both attributes are ``None``.

This module lives *outside* the ``db`` package so that engine plumbing
does not import the store implementation.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI
from sqlalchemy.ext.asyncio import (
    AsyncSession,
    async_sessionmaker,
    create_async_engine,
)

from novachat.configs.config import AppConfig, get_app_config
from novachat.infra.lifespan import get_app
from novachat.infra.telemetry import instrument_sqlalchemy

logger = logging.getLogger(__name__)

STORAGE_BACKEND_DATABASE = "database"

# ---------------------------------------------------------------------------
# Lifespan dependency
# ---------------------------------------------------------------------------


async def build_db(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Create engine + session factory, attach to ``app.state``."""
    if config.storage.backend != STORAGE_BACKEND_DATABASE:
        app.state.engine = None
        app.state.session_factory = None
        yield
        return

    tp = config.third_party
    engine = create_async_engine(
        tp.postgres_uri,
        pool_pre_ping=True,
        pool_size=tp.postgres_pool_size,
        max_overflow=tp.postgres_max_overflow,
    )
    factory: async_sessionmaker[AsyncSession] = async_sessionmaker(
        engine, expire_on_commit=False
    )
    instrument_sqlalchemy(engine)
    app.state.engine = engine
    app.state.session_factory = factory
    logger.info("Database engine created (pool_size=%d)", tp.postgres_pool_size)
    yield
    await engine.dispose()

