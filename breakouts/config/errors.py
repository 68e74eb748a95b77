"""Configuration error classes."""

from __future__ import annotations


class ConfigError(Exception):
    """Base exception for configuration errors."""

    pass


class MissingKeyError(ConfigError):
    """Raised when a key has no override and no default."""

    pass


class ValidationError(ConfigError):
    """Raised when a config value fails validation."""

    pass


class UnknownKeyError(ConfigError):
    """Raised when an unknown config key is requested."""

    pass
