"""Per-route SSL requirement for FastAPI and Starlette applications."""
from ssl_requirement.core.config import HostProvider, LiteralHost, Settings, configure, get_settings, reset_settings
from ssl_requirement.core.dependencies import (
    SslRedirect,
    include_ssl_router,
    install_ssl_requirement,
    ssl_guard,
    ssl_redirect_handler,
)
from ssl_requirement.core.errors import SslConfigurationError
from ssl_requirement.schemas import ActionKey, Continue, Redirect, RedirectTarget, RequestContext, SslMode
from ssl_requirement.services import ALL, DecisionEngine, PolicyRegistry, SslPolicy, UrlBuilder, get_registry, url_for

__all__ = [
    "ALL",
    "ActionKey",
    "Continue",
    "DecisionEngine",
    "HostProvider",
    "LiteralHost",
    "PolicyRegistry",
    "Redirect",
    "RedirectTarget",
    "RequestContext",
    "Settings",
    "SslConfigurationError",
    "SslMode",
    "SslPolicy",
    "SslRedirect",
    "UrlBuilder",
    "configure",
    "get_registry",
    "get_settings",
    "include_ssl_router",
    "install_ssl_requirement",
    "reset_settings",
    "ssl_guard",
    "ssl_redirect_handler",
    "url_for",
]
