"""Process-wide SSL requirement settings."""
from __future__ import annotations

import abc
import threading
from typing import Any, Callable

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .errors import SslConfigurationError

NORMAL_PORTS = frozenset({80, 443})


class HostOverride(abc.ABC):
    """Host used in place of the request host when building a redirect."""

    @abc.abstractmethod
    def resolve(self) -> str:
        raise NotImplementedError


class LiteralHost(HostOverride):
    """A fixed host, optionally carrying its own port (``example.com:8443``)."""

    def __init__(self, value: str) -> None:
        self.value = value

    def resolve(self) -> str:
        return self.value

    def __eq__(self, other: object) -> bool:
        return isinstance(other, LiteralHost) and other.value == self.value

    def __hash__(self) -> int:
        return hash(self.value)

    def __repr__(self) -> str:
        return f"LiteralHost({self.value!r})"


class HostProvider(HostOverride):
    """A zero-argument callable evaluated every time a host is needed."""

    def __init__(self, func: Callable[[], str]) -> None:
        self.func = func

    def resolve(self) -> str:
        # Errors raised by the provider reach the caller untouched.
        return self.func()

    def __repr__(self) -> str:
        return f"HostProvider({self.func!r})"


class Settings(BaseSettings):
    """SSL requirement settings loaded from environment variables or .env.

    Instances are frozen; use :func:`configure` to swap in a new snapshot.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="SSL_REQUIREMENT_",
        extra="ignore",
        frozen=True,
        arbitrary_types_allowed=True,
    )

    ssl_host: HostOverride | None = None
    non_ssl_host: HostOverride | None = None
    ssl_port: int = Field(default=443, ge=1, le=65535)
    non_ssl_port: int = Field(default=80, ge=1, le=65535)
    disable_ssl_check: bool = False

    redirect_status_code: int = Field(default=302, ge=300, le=308)
    trust_forwarded_proto: bool = True

    @property
    def known_ports(self) -> frozenset[int]:
        """Ports that are never written into a redirect URL."""

        return NORMAL_PORTS | {self.ssl_port, self.non_ssl_port}

    @field_validator("ssl_host", "non_ssl_host", mode="before")
    @classmethod
    def _coerce_host(cls, value: Any) -> HostOverride | None:
        if value is None or isinstance(value, HostOverride):
            return value
        if isinstance(value, str):
            value = value.strip()
            return LiteralHost(value) if value else None
        if callable(value):
            return HostProvider(value)
        raise ValueError("host override must be a string or a zero-argument callable")

    @field_validator("redirect_status_code")
    @classmethod
    def _check_redirect_status(cls, value: int) -> int:
        if value in (300, 304, 305, 306):
            raise ValueError(f"{value} is not a redirect status")
        return value


_lock = threading.Lock()
_settings: Settings | None = None


def get_settings() -> Settings:
    """Return the current settings snapshot, loading it on first use."""

    global _settings
    current = _settings
    if current is None:
        with _lock:
            if _settings is None:
                _settings = Settings()
            current = _settings
    return current


def configure(**changes: Any) -> Settings:
    """Validate ``changes`` on top of the current snapshot and swap it in."""

    global _settings
    unknown = set(changes) - set(Settings.model_fields)
    if unknown:
        raise SslConfigurationError(f"Unknown setting(s): {', '.join(sorted(unknown))}")

    with _lock:
        base = _settings if _settings is not None else Settings()
        values = {name: getattr(base, name) for name in Settings.model_fields}
        values.update(changes)
        _settings = Settings(**values)
        return _settings


def reset_settings() -> None:
    """Drop the current snapshot; the next read reloads from the environment."""

    global _settings
    with _lock:
        _settings = None
