"""Tests for lifespan dependency injection."""

from collections.abc import AsyncGenerator
from typing import Annotated

from fastapi import Depends, FastAPI, Request
from fastapi.testclient import TestClient

from novachat.infra.lifespan import get_app, inject


def _make_app(events: list[str]) -> FastAPI:
    async def build_resource(
        app: Annotated[FastAPI, Depends(get_app)],
    ) -> AsyncGenerator[None, None]:
        events.append("setup")
        app.state.resource = "ready"
        yield
        events.append("teardown")

    async def build_dependent(
        _resource: Annotated[None, Depends(build_resource)],
    ) -> AsyncGenerator[None, None]:
        events.append("dependent-setup")
        yield
        events.append("dependent-teardown")

    @inject
    async def lifespan(
        app: FastAPI,
        _dependent: Annotated[None, Depends(build_dependent)],
    ) -> AsyncGenerator[None, None]:
        yield

    app = FastAPI(lifespan=lifespan)

    @app.get("/resource")
    async def read_resource(request: Request) -> dict[str, str]:
        return {"resource": request.app.state.resource}

    return app


class TestInject:
    def test_yield_dependencies_set_up_and_torn_down_in_order(self):
        events: list[str] = []
        app = _make_app(events)
        with TestClient(app) as client:
            assert client.get("/resource").json() == {"resource": "ready"}
            assert events == ["setup", "dependent-setup"]
        assert events == [
            "setup",
            "dependent-setup",
            "dependent-teardown",
            "teardown",
        ]
