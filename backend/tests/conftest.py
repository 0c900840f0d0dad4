from __future__ import annotations

import pytest
from fastapi import APIRouter, FastAPI, Request
from fastapi.testclient import TestClient
from starlette.middleware.sessions import SessionMiddleware

from ssl_requirement import ALL, PolicyRegistry, SslPolicy, configure, include_ssl_router, reset_settings

REQUIREMENT_POLICY = SslPolicy("ssl_requirement").ssl_required("a", "b").ssl_allowed("c", "show_flash")
EXCEPTION_POLICY = SslPolicy("ssl_exception").ssl_required("a").ssl_exceptions("b").ssl_allowed("d")
ALL_ACTIONS_POLICY = SslPolicy("ssl_all_actions").ssl_exceptions()
ALLOW_ALL_POLICY = SslPolicy("ssl_allow_all").ssl_allowed(ALL)
ALLOW_ALL_AND_REQUIRE_POLICY = ALLOW_ALL_POLICY.extend("ssl_allow_all_and_require").ssl_required("a", "b")


def _run(request: Request, name: str) -> dict:
    """Record the call and consume any flash left by an earlier request."""

    request.app.state.calls.append(request.url.path)
    request.session.pop("flash", None)
    return {"action": name}


def requirement_router() -> APIRouter:
    router = APIRouter(prefix="/ssl_requirement")

    @router.get("/a")
    async def a(request: Request) -> dict:
        return _run(request, "a")

    @router.get("/b")
    async def b(request: Request) -> dict:
        return _run(request, "b")

    @router.get("/c")
    async def c(request: Request) -> dict:
        return _run(request, "c")

    @router.get("/d")
    async def d(request: Request) -> dict:
        return _run(request, "d")

    @router.get("/set_flash")
    async def set_flash(request: Request) -> dict:
        request.session["flash"] = {"foo": "bar"}
        return {"action": "set_flash"}

    @router.get("/show_flash")
    async def show_flash(request: Request) -> dict:
        return {"flash": request.session.get("flash")}

    return router


def exception_router() -> APIRouter:
    router = APIRouter(prefix="/ssl_exception")

    @router.get("/a")
    async def a(request: Request) -> dict:
        return _run(request, "a")

    @router.get("/b")
    async def b(request: Request) -> dict:
        return _run(request, "b")

    @router.get("/c")
    async def c(request: Request) -> dict:
        return _run(request, "c")

    @router.get("/d")
    async def d(request: Request) -> dict:
        return _run(request, "d")

    return router


def all_actions_router() -> APIRouter:
    router = APIRouter(prefix="/ssl_all_actions")

    @router.get("/a")
    async def a(request: Request) -> dict:
        return _run(request, "a")

    return router


def allow_all_router(prefix: str) -> APIRouter:
    router = APIRouter(prefix=prefix)

    @router.get("/a")
    async def a(request: Request) -> dict:
        return _run(request, "a")

    @router.get("/b")
    async def b(request: Request) -> dict:
        return _run(request, "b")

    return router


def build_app(registry: PolicyRegistry) -> FastAPI:
    app = FastAPI()
    app.state.calls = []

    groups = [
        (requirement_router(), REQUIREMENT_POLICY),
        (exception_router(), EXCEPTION_POLICY),
        (all_actions_router(), ALL_ACTIONS_POLICY),
        (allow_all_router("/ssl_allow_all"), ALLOW_ALL_POLICY),
        (allow_all_router("/ssl_allow_all_and_require"), ALLOW_ALL_AND_REQUIRE_POLICY),
    ]
    for router, policy in groups:
        include_ssl_router(app, router, policy, registry=registry)

    @app.get("/health")
    async def health() -> dict:
        return {"status": "ok"}

    app.add_middleware(SessionMiddleware, secret_key="test-secret")
    return app


@pytest.fixture(autouse=True)
def ssl_settings():
    reset_settings()
    settings = configure(
        ssl_host=None,
        non_ssl_host=None,
        ssl_port=443,
        non_ssl_port=80,
        disable_ssl_check=False,
        redirect_status_code=302,
        trust_forwarded_proto=True,
    )
    yield settings
    reset_settings()


@pytest.fixture
def registry() -> PolicyRegistry:
    return PolicyRegistry()


@pytest.fixture
def app(registry: PolicyRegistry) -> FastAPI:
    return build_app(registry)


@pytest.fixture
def client(app: FastAPI) -> TestClient:
    return TestClient(app, follow_redirects=False)
