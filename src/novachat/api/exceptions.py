"""Global exception handlers.

Registered while the app is created: Starlette snapshots the handler
table when it builds the middleware stack, before the lifespan runs.
"""

import logging

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from novachat.core.errors import UpstreamError, ValidationError
from novachat.infra.concurrency import SessionBusy

from .models import ErrorResponse

logger = logging.getLogger(__name__)

UPSTREAM_ERROR_MESSAGE = "Failed to get AI response"
BUSY_RETRY_AFTER_SECONDS = "2"


def _error(status_code: int, message: str, **kwargs) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=ErrorResponse(error=message).model_dump(),
        **kwargs,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Map domain exceptions onto HTTP responses."""

    @app.exception_handler(ValidationError)
    async def handle_validation_error(
        request: Request, exc: ValidationError
    ) -> JSONResponse:
        return _error(400, str(exc))

    @app.exception_handler(UpstreamError)
    async def handle_upstream_error(
        request: Request, exc: UpstreamError
    ) -> JSONResponse:
        # Callers only get the generic message; the cause stays in the log.
        logger.error(
            "Model call failed for %s: %s (status=%s)",
            request.url.path,
            exc,
            exc.status_code,
        )
        return _error(502, UPSTREAM_ERROR_MESSAGE)

    @app.exception_handler(SessionBusy)
    async def handle_session_busy(request: Request, exc: SessionBusy) -> JSONResponse:
        return _error(
            503, str(exc), headers={"Retry-After": BUSY_RETRY_AFTER_SECONDS}
        )
