"""Exceptions shared across the gateway."""

from __future__ import annotations


class ConfigurationError(RuntimeError):
    """Raised at startup when the process must not start with its configuration."""
