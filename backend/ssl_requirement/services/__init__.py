"""Policy, decision and URL services."""
from .decision import DecisionEngine, build_redirect_target
from .policy import ALL, PolicyRegistry, PolicyTable, SslPolicy, get_registry
from .urls import UrlBuilder, url_for

__all__ = [
    "ALL",
    "DecisionEngine",
    "PolicyRegistry",
    "PolicyTable",
    "SslPolicy",
    "UrlBuilder",
    "build_redirect_target",
    "get_registry",
    "url_for",
]
