"""Exceptions raised by the SSL requirement layer."""
from __future__ import annotations


class SslConfigurationError(ValueError):
    """Raised when a policy declaration or runtime setting is inconsistent."""
