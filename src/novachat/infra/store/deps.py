"""Lifespan and per-request dependencies for the session store."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from novachat.configs.config import AppConfig, get_app_config
from novachat.infra.db_engine import STORAGE_BACKEND_DATABASE, build_db
from novachat.infra.lifespan import get_app

from .base import SessionStore
from .memory import InMemorySessionStore

logger = logging.getLogger(__name__)


def create_session_store(app: FastAPI, config: AppConfig) -> SessionStore:
    """Instantiate the store selected by ``storage.backend``."""
    if config.storage.backend == STORAGE_BACKEND_DATABASE:
        from novachat.infra.db.store import SqlSessionStore

        logger.info("Session store: database")
        return SqlSessionStore(
            app.state.session_factory, preview_length=config.api.preview_length
        )

    logger.info(
        "Session store: in-memory (max_sessions=%d, ttl=%s); "
        "history is lost on restart",
        config.storage.max_sessions,
        config.storage.session_ttl,
    )
    return InMemorySessionStore(
        max_sessions=config.storage.max_sessions,
        session_ttl=config.storage.session_ttl,
        preview_length=config.api.preview_length,
    )


async def build_session_store(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
    _db: Annotated[None, Depends(build_db)],
) -> AsyncGenerator[None, None]:
    """Create the session store, attach to ``app.state``; close on shutdown."""
    store = create_session_store(app, config)
    app.state.session_store = store
    yield
    await store.aclose()


def get_session_store(request: Request) -> SessionStore:
    """Return the ``SessionStore`` from ``app.state``."""
    return request.app.state.session_store
