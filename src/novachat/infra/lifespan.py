"""Dependency injection for the FastAPI lifespan.

FastAPI only resolves ``Depends()`` for request handlers.  ``inject``
runs the same resolver once at startup against a synthetic request, so
long-lived resources (store, locks, model client) are declared as
ordinary yield-dependencies and torn down in reverse order at shutdown.

Approach from https://github.com/fastapi/fastapi/discussions/11742
"""

from contextlib import AsyncExitStack, asynccontextmanager
from functools import partial
from typing import Any, Callable

from fastapi import FastAPI, Request
from fastapi.dependencies.utils import get_dependant, solve_dependencies


def get_app(request: Request) -> FastAPI:
    """Dependency returning the application (usable at startup and per request)."""
    return request.app


def _startup_request(app: FastAPI) -> Request:
    # Minimal HTTP scope; only ``app`` and ``state`` matter to dependencies.
    scope = {
        "type": "http",
        "http_version": "1.1",
        "method": "GET",
        "scheme": "http",
        "path": "/",
        "raw_path": b"/",
        "query_string": b"",
        "root_path": "",
        "headers": [(b"x-request-scope", b"lifespan")],
        "client": ("127.0.0.1", 0),
        "server": ("127.0.0.1", 0),
        "state": app.state,
        "app": app,
    }
    return Request(scope)


def inject(lifespan: Callable[..., Any]) -> Callable[[FastAPI], Any]:
    """Turn an async-generator *lifespan* with ``Depends()`` params into a lifespan.

    ``app.dependency_overrides`` applies, so tests can replace any
    startup dependency (for example Redis) with a stub.
    """

    @asynccontextmanager
    async def run(app: FastAPI):  # type: ignore[misc]
        dependant = get_dependant(path="/", call=partial(lifespan, app))
        async with AsyncExitStack() as exit_stack:
            request = _startup_request(app)
            # Newer FastAPI looks up the exit stacks for yield dependencies here.
            request.scope["fastapi_inner_astack"] = exit_stack
            request.scope["fastapi_function_astack"] = exit_stack
            resolved = await solve_dependencies(
                request=request,
                dependant=dependant,
                async_exit_stack=exit_stack,
                embed_body_fields=False,
                dependency_overrides_provider=app,
            )
            async with asynccontextmanager(lifespan)(app, **resolved.values):
                yield

    return run
