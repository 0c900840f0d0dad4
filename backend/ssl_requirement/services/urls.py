"""URL generation aware of the SSL and non-SSL host settings."""
from __future__ import annotations

from typing import Any, Callable

from starlette.datastructures import URL
from starlette.requests import Request

from ssl_requirement.core.config import Settings, get_settings
from ssl_requirement.services.decision import host_has_port


def is_secure_option(value: Any) -> bool:
    """Interpret a ``secure=`` argument: ``True``, ``1`` and ``"true"`` mean HTTPS."""

    if value is True or (isinstance(value, int) and not isinstance(value, bool) and value == 1):
        return True
    return str(value).strip().lower() == "true"


class UrlBuilder:
    """Build links for named routes, or for the current request when no name is given.

    ``secure`` forces the protocol of the generated URL. Full URLs that end up
    on plain HTTP use ``non_ssl_host`` when it is configured, unless a host was
    passed explicitly.
    """

    def __init__(self, settings_provider: Callable[[], Settings] = get_settings) -> None:
        self.settings_provider = settings_provider

    def url_for(
        self,
        request: Request,
        name: str | None = None,
        *,
        only_path: bool = True,
        protocol: str | None = None,
        host: str | None = None,
        secure: Any = None,
        **path_params: Any,
    ) -> str:
        settings = self.settings_provider()

        if secure is not None and not settings.disable_ssl_check:
            if is_secure_option(secure):
                only_path = False
                protocol = "https"
                if settings.ssl_host is not None:
                    host = settings.ssl_host.resolve()
            else:
                protocol = "http"

        url = URL(str(request.url_for(name, **path_params))) if name else request.url
        if only_path:
            return f"{url.path}?{url.query}" if url.query else url.path

        if host is None and settings.non_ssl_host is not None:
            if not (protocol or url.scheme).startswith("https"):
                host = settings.non_ssl_host.resolve()

        if protocol and protocol != url.scheme:
            if url.port in settings.known_ports:
                url = url.replace(port=None)
            url = url.replace(scheme=protocol)
        if host:
            if host_has_port(host):
                url = url.replace(netloc=host)
            else:
                # Same port rule as protocol redirects
                port = None if url.port in settings.known_ports else url.port
                url = url.replace(hostname=host, port=port)
        return str(url)


_builder = UrlBuilder()


def url_for(request: Request, name: str | None = None, **options: Any) -> str:
    """Shortcut for :meth:`UrlBuilder.url_for` with the process-wide settings."""

    return _builder.url_for(request, name, **options)
