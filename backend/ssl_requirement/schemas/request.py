"""Per-request snapshots and redirect decisions."""
from __future__ import annotations

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field
from starlette.datastructures import URL
from starlette.requests import Request

from .policy import ActionKey

DEFAULT_PORTS = {"http": 80, "https": 443}


class RequestContext(BaseModel):
    """Immutable view of the parts of a request the redirect decision needs."""

    scheme: Literal["http", "https"]
    host: str
    port: int | None = Field(default=None, ge=1, le=65535)
    path: str = "/"
    query: str = ""
    action: ActionKey | None = None

    model_config = ConfigDict(frozen=True)

    @property
    def is_secure(self) -> bool:
        return self.scheme == "https"

    @property
    def effective_port(self) -> int:
        return self.port if self.port is not None else DEFAULT_PORTS[self.scheme]

    @classmethod
    def from_request(
        cls,
        request: Request,
        action: ActionKey | None = None,
        *,
        trust_forwarded_proto: bool = True,
    ) -> "RequestContext":
        url = request.url
        scheme = url.scheme
        # Check X-Forwarded-Proto header (from reverse proxy) before the scheme
        forwarded = request.headers.get("x-forwarded-proto") if trust_forwarded_proto else None
        if forwarded:
            scheme = forwarded.split(",")[0].strip().lower()
        return cls(
            scheme="https" if scheme in ("https", "wss") else "http",
            host=url.hostname or "",
            port=url.port,
            path=url.path or "/",
            query=url.query,
            action=action,
        )


class RedirectTarget(BaseModel):
    """Destination of a protocol redirect.

    ``host`` may already contain a port when it came from a host override,
    in which case ``port`` is left unset.
    """

    scheme: Literal["http", "https"]
    host: str = Field(..., min_length=1)
    port: int | None = Field(default=None, ge=1, le=65535)
    path: str = "/"
    query: str = ""

    model_config = ConfigDict(frozen=True)

    @property
    def netloc(self) -> str:
        if self.port is None:
            return self.host
        return f"{self.host}:{self.port}"

    @property
    def url(self) -> str:
        return str(URL(scheme=self.scheme, netloc=self.netloc, path=self.path or "/", query=self.query))


class Continue(BaseModel):
    """Let the wrapped handler run."""

    model_config = ConfigDict(frozen=True)


class Redirect(BaseModel):
    """Short-circuit the request with a redirect to ``target``."""

    target: RedirectTarget
    status_code: int = 302

    model_config = ConfigDict(frozen=True)

    @property
    def location(self) -> str:
        return self.target.url


Decision = Continue | Redirect
