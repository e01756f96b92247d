"""FastAPI application entry point."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

import uvicorn
from fastapi import Depends, FastAPI
from fastapi.middleware.cors import CORSMiddleware

from novachat.api.chat import router as chat_router
from novachat.api.exceptions import register_exception_handlers
from novachat.configs.config import AppConfig, get_app_config
from novachat.core.llm import build_model_client
from novachat.core.service.metrics import setup_metrics
from novachat.infra.concurrency import build_session_locks
from novachat.infra.lifespan import inject
from novachat.infra.logging import setup_logging
from novachat.infra.store import build_session_store
from novachat.infra.telemetry import init_telemetry

logger = logging.getLogger(__name__)


@inject
async def lifespan(
    app: FastAPI,
    _store: Annotated[None, Depends(build_session_store)],
    _locks: Annotated[None, Depends(build_session_locks)],
    _model: Annotated[None, Depends(build_model_client)],
) -> AsyncGenerator[None, None]:
    """Startup/shutdown; each dependency owns its own teardown."""
    logger.info("NovaChat backend started")
    yield
    logger.info("NovaChat backend shutting down")


def get_app(config: AppConfig | None = None) -> FastAPI:
    """Create and configure the FastAPI application."""
    if config is None:
        config = get_app_config()
    setup_logging(config.logging)

    app = FastAPI(
        title="NovaChat",
        description="Chat backend with token-budgeted conversation history",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_middleware(
        CORSMiddleware,
        allow_origins=config.api.cors_origins,
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)
    init_telemetry(app, config.tracing)
    setup_metrics(app, config.tracing)

    @app.get("/health", include_in_schema=False)
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    app.include_router(chat_router)

    return app


app = get_app()


def main() -> None:
    config = get_app_config()
    uvicorn.run(
        "novachat.app:app",
        host=config.api.host,
        port=config.api.port,
        log_config=None,
    )


if __name__ == "__main__":
    main()
