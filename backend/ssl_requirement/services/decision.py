"""Decide whether a request may proceed or must switch protocol."""
from __future__ import annotations

import logging
from typing import Callable

from ssl_requirement.core.config import HostOverride, Settings, get_settings
from ssl_requirement.schemas.policy import SslMode
from ssl_requirement.schemas.request import Continue, Decision, Redirect, RedirectTarget, RequestContext
from ssl_requirement.services.policy import PolicyRegistry, get_registry

logger = logging.getLogger(__name__)


def host_has_port(host: str) -> bool:
    if host.startswith("["):
        _, _, rest = host.partition("]")
        return rest.startswith(":") and rest[1:].isdigit()
    if host.count(":") != 1:
        return False
    return host.rpartition(":")[2].isdigit()


def build_redirect_target(
    context: RequestContext,
    scheme: str,
    host_override: HostOverride | None,
    settings: Settings,
) -> RedirectTarget:
    """Build the URL parts for redirecting ``context`` to ``scheme``.

    The request port survives the protocol switch unless it is one of the
    known ports, in which case the URL falls back to the scheme default.
    """

    host = host_override.resolve() if host_override is not None else None
    if host and host_has_port(host):
        return RedirectTarget(scheme=scheme, host=host, path=context.path, query=context.query)

    if not host:
        host = context.host
        if ":" in host:
            host = f"[{host}]"

    port = context.effective_port
    return RedirectTarget(
        scheme=scheme,
        host=host,
        port=None if port in settings.known_ports else port,
        path=context.path,
        query=context.query,
    )


class DecisionEngine:
    """Compare the request protocol with the action's declared SSL mode."""

    def __init__(
        self,
        registry: PolicyRegistry | None = None,
        settings_provider: Callable[[], Settings] = get_settings,
    ) -> None:
        self.registry = registry if registry is not None else get_registry()
        self.settings_provider = settings_provider

    def mode_for(self, context: RequestContext, settings: Settings) -> SslMode | None:
        if context.action is None:
            return None
        return self.registry.mode_for(context.action, settings)

    def before_dispatch(self, context: RequestContext, settings: Settings | None = None) -> Decision:
        if settings is None:
            settings = self.settings_provider()

        mode = self.mode_for(context, settings)
        if mode is None or mode is SslMode.ALLOW:
            return Continue()

        if mode is SslMode.REQUIRE:
            if context.is_secure:
                return Continue()
            target = build_redirect_target(context, "https", settings.ssl_host, settings)
        else:
            if not context.is_secure:
                return Continue()
            target = build_redirect_target(context, "http", settings.non_ssl_host, settings)

        logger.info("Redirecting %s (%s) to %s", context.action, mode.value, target.url)
        return Redirect(target=target, status_code=settings.redirect_status_code)
