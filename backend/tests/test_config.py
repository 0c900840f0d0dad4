from __future__ import annotations

import pytest
from pydantic import ValidationError

from ssl_requirement import HostProvider, LiteralHost, Settings, SslConfigurationError, configure, get_settings, reset_settings


def test_defaults():
    settings = Settings()
    assert settings.ssl_host is None
    assert settings.non_ssl_host is None
    assert settings.ssl_port == 443
    assert settings.non_ssl_port == 80
    assert settings.disable_ssl_check is False
    assert settings.known_ports == frozenset({80, 443})


def test_string_host_becomes_literal():
    settings = configure(ssl_host="  secure.example.com ")
    assert settings.ssl_host == LiteralHost("secure.example.com")
    assert settings.ssl_host.resolve() == "secure.example.com"


def test_empty_host_means_unset():
    assert configure(non_ssl_host="").non_ssl_host is None


def test_callable_host_becomes_provider():
    settings = configure(non_ssl_host=lambda: "cheap.example.com")
    assert isinstance(settings.non_ssl_host, HostProvider)
    assert settings.non_ssl_host.resolve() == "cheap.example.com"


def test_invalid_host_rejected():
    with pytest.raises(ValidationError):
        configure(ssl_host=443)


@pytest.mark.parametrize("status", [200, 304, 404])
def test_redirect_status_must_redirect(status):
    with pytest.raises(ValidationError):
        configure(redirect_status_code=status)


def test_ports_are_validated():
    with pytest.raises(ValidationError):
        configure(ssl_port=0)


def test_known_ports_follow_configuration():
    assert configure(ssl_port=6789, non_ssl_port=4567).known_ports == frozenset({80, 443, 6789, 4567})


def test_snapshots_are_frozen():
    with pytest.raises(ValidationError):
        get_settings().disable_ssl_check = True


def test_configure_swaps_snapshot_and_keeps_other_values():
    before = configure(ssl_host="secure.example.com")
    after = configure(disable_ssl_check=True)

    assert before.disable_ssl_check is False
    assert after.disable_ssl_check is True
    assert after.ssl_host == LiteralHost("secure.example.com")
    assert get_settings() is after


def test_configure_rejects_unknown_names():
    with pytest.raises(SslConfigurationError, match="ssl_hots"):
        configure(ssl_hots="typo.example.com")


def test_environment_is_read_on_reset(monkeypatch):
    monkeypatch.setenv("SSL_REQUIREMENT_SSL_HOST", "env.example.com")
    monkeypatch.setenv("SSL_REQUIREMENT_DISABLE_SSL_CHECK", "true")
    monkeypatch.setenv("SSL_REQUIREMENT_SSL_PORT", "8443")
    reset_settings()

    settings = get_settings()
    assert settings.ssl_host == LiteralHost("env.example.com")
    assert settings.disable_ssl_check is True
    assert settings.ssl_port == 8443
