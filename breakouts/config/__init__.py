"""
Configuration management for the breakouts engine.

Values resolve from CONFIG_<KEY> environment variables, then explicit
overrides, then schema defaults.

Usage:
    from breakouts.config import ConfigLoader, ConfigError

    # Optional explicit initialization at startup
    ConfigLoader.initialize(overrides={"plenary.holds": 4})

    # Get singleton instance
    config = ConfigLoader.get_instance()

    # Typed accessors
    holds = config.get_int("plenary.holds")
    room = config.get_str("plenary.room")
"""

from __future__ import annotations

from .errors import ConfigError, MissingKeyError, UnknownKeyError, ValidationError
from .loader import ConfigLoader
from .schema import CONFIG_SCHEMA, get_all_required_keys, get_schema_key, validate_key
from .types import ConfigKey, ConfigType

__all__ = [
    # Main loader
    "ConfigLoader",
    # Error classes
    "ConfigError",
    "MissingKeyError",
    "ValidationError",
    "UnknownKeyError",
    # Schema
    "CONFIG_SCHEMA",
    "ConfigKey",
    "ConfigType",
    "get_schema_key",
    "get_all_required_keys",
    "validate_key",
]
