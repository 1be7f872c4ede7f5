"""Exceptions raised by the auction signal package."""

from __future__ import annotations


class ConfigurationError(ValueError):
    """Adapter options could not produce a usable configuration."""
