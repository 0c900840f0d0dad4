"""FastAPI dependencies enforcing the declared SSL policy of the matched route."""
from __future__ import annotations

import logging
from collections.abc import Callable
from typing import Any

from fastapi import Depends, Request
from starlette.responses import RedirectResponse
from starlette.types import Scope

from ssl_requirement.core.config import Settings, get_settings
from ssl_requirement.schemas.request import Redirect, RequestContext
from ssl_requirement.services.decision import DecisionEngine
from ssl_requirement.services.policy import PolicyRegistry, PolicyTable, SslPolicy, get_registry

logger = logging.getLogger(__name__)


class SslRedirect(Exception):
    """Raised from a route dependency to answer the request with a redirect."""

    def __init__(self, decision: Redirect) -> None:
        super().__init__(decision.location)
        self.decision = decision


async def ssl_redirect_handler(request: Request, exc: SslRedirect) -> RedirectResponse:
    return RedirectResponse(url=exc.decision.location, status_code=exc.decision.status_code)


def matched_endpoint(scope: Scope) -> Callable[..., Any] | None:
    """Return the endpoint the router already matched for ``scope``."""

    endpoint = scope.get("endpoint")
    if endpoint is None:
        endpoint = getattr(scope.get("route"), "endpoint", None)
    return endpoint


def ssl_guard(
    registry: PolicyRegistry | None = None,
    settings_provider: Callable[[], Settings] = get_settings,
) -> Callable[[Request], Any]:
    """Build a dependency that redirects when the request protocol breaks the route's policy.

    The dependency runs after routing, so it reads the matched endpoint from the
    scope instead of matching routes itself. Add it to a router or app with
    ``Depends(ssl_guard(...))``; :class:`SslRedirect` must be handled by
    :func:`ssl_redirect_handler` (see :func:`install_ssl_requirement`).
    """

    engine = DecisionEngine(registry, settings_provider)

    async def ensure_proper_protocol(request: Request) -> None:
        # One snapshot per request
        settings = settings_provider()
        action = engine.registry.action_for(matched_endpoint(request.scope))
        context = RequestContext.from_request(
            request, action, trust_forwarded_proto=settings.trust_forwarded_proto
        )

        decision = engine.before_dispatch(context, settings)
        if isinstance(decision, Redirect):
            raise SslRedirect(decision)
        if action is not None:
            logger.debug("SSL policy satisfied for %s over %s", action, context.scheme)

    return ensure_proper_protocol


def install_ssl_requirement(app) -> None:
    """Register the redirect handler on a FastAPI or Starlette app."""

    app.add_exception_handler(SslRedirect, ssl_redirect_handler)


def include_ssl_router(
    app,
    router,
    policy: SslPolicy,
    *,
    registry: PolicyRegistry | None = None,
    settings_provider: Callable[[], Settings] = get_settings,
    **include_options: Any,
) -> PolicyTable:
    """Register ``router`` under ``policy`` and include it in ``app`` behind the SSL guard."""

    registry = registry if registry is not None else get_registry()
    table = registry.register(router, policy)

    if hasattr(app, "add_exception_handler"):
        install_ssl_requirement(app)

    # The guard runs before any other dependency of the included routes
    dependencies = [Depends(ssl_guard(registry, settings_provider))]
    dependencies.extend(include_options.pop("dependencies", None) or [])
    app.include_router(router, dependencies=dependencies, **include_options)
    return table
