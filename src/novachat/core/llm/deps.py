"""Lifespan and per-request dependencies for the model client."""

import logging
from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI, Request

from novachat.configs.config import AppConfig, get_app_config
from novachat.infra.lifespan import get_app

from .client import GeminiClient

logger = logging.getLogger(__name__)


async def build_model_client(
    app: Annotated[FastAPI, Depends(get_app)],
    config: Annotated[AppConfig, Depends(get_app_config)],
) -> AsyncGenerator[None, None]:
    """Create the ``GeminiClient``, attach to ``app.state``; close on shutdown."""
    if not config.llm.api_key.get_secret_value():
        logger.warning("No model API key configured; chat requests will fail")
    client = GeminiClient(config.llm)
    app.state.model_client = client
    logger.info("Model client ready (model=%s)", config.llm.model_name)
    yield
    await client.aclose()


def get_model_client(request: Request) -> GeminiClient:
    """Return the ``GeminiClient`` from ``app.state``."""
    return request.app.state.model_client
