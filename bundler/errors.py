"""Exceptions raised while assembling bundle configurations."""
from __future__ import annotations


class ConfigurationError(ValueError):
    """The build environment or project settings cannot produce a configuration."""


__all__ = ["ConfigurationError"]
