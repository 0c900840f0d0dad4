"""Pydantic schemas exposed for imports."""
from .policy import ActionKey, SslMode
from .request import Continue, Decision, Redirect, RedirectTarget, RequestContext

__all__ = ["ActionKey", "SslMode", "RequestContext", "RedirectTarget", "Continue", "Redirect", "Decision"]
