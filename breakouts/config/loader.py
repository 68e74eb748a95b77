"""
ConfigLoader - Unified configuration management.

Resolves configuration from environment variables, explicit overrides and
schema defaults, in that order. Invalid values fail immediately.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Iterator, Mapping
from contextlib import contextmanager
from typing import Any, cast

from .errors import ConfigError, MissingKeyError, UnknownKeyError, ValidationError
from .schema import CONFIG_SCHEMA

logger = logging.getLogger(__name__)


class ConfigLoader:
    """
    Unified configuration loader with fast-fail behavior.

    Usage:
        # Initialize at startup (validates every key)
        ConfigLoader.initialize(overrides={"plenary.holds": 4})

        # Get singleton instance
        loader = ConfigLoader.get_instance()

        # Typed accessors
        holds = loader.get_int("plenary.holds")
        room = loader.get_str("plenary.room")

        # Test substitution
        with ConfigLoader.use(ConfigLoader(overrides={"plenary.room": "Main"})):
            pass
    """

    _instance: ConfigLoader | None = None
    _initialized: bool = False

    def __init__(self, overrides: Mapping[str, Any] | None = None):
        """
        Initialize the config loader.

        Args:
            overrides: Explicit values keyed by dot-notation key. Environment
                variables still take precedence over them.

        Raises:
            UnknownKeyError: If an override names a key that is not in the schema
        """
        self._overrides: dict[str, Any] = dict(overrides or {})
        for key in self._overrides:
            if key not in CONFIG_SCHEMA:
                raise UnknownKeyError(f"Unknown config key: '{key}'")

    @classmethod
    def initialize(
        cls,
        overrides: Mapping[str, Any] | None = None,
        validate_on_init: bool = True,
    ) -> ConfigLoader:
        """
        Initialize the singleton ConfigLoader.

        Args:
            overrides: Explicit values keyed by dot-notation key
            validate_on_init: If True, resolves and validates every schema key

        Returns:
            The initialized ConfigLoader instance

        Raises:
            ConfigError: If any key resolves to an invalid value
        """
        if cls._initialized:
            logger.debug("ConfigLoader already initialized, returning existing instance")
            return cls._instance  # type: ignore

        instance = cls(overrides=overrides)

        if validate_on_init:
            instance.validate_all()

        cls._instance = instance
        cls._initialized = True
        logger.debug("ConfigLoader initialized")
        return instance

    @classmethod
    def get_instance(cls) -> ConfigLoader:
        """
        Get the singleton instance, initializing it with defaults if needed.

        Returns:
            The ConfigLoader instance
        """
        if not cls._initialized or cls._instance is None:
            logger.debug("ConfigLoader auto-initializing (no explicit initialize() call)")
            return cls.initialize(validate_on_init=False)
        return cls._instance

    @classmethod
    def reset(cls) -> None:
        """Reset singleton state. For testing only."""
        cls._instance = None
        cls._initialized = False

    @classmethod
    @contextmanager
    def use(cls, loader: ConfigLoader) -> Iterator[None]:
        """
        Temporarily replace the singleton with a custom loader.

        Args:
            loader: The loader to use temporarily.
        """
        original = cls._instance
        original_initialized = cls._initialized
        cls._instance = loader
        cls._initialized = True
        try:
            yield
        finally:
            cls._instance = original
            cls._initialized = original_initialized

    def validate_all(self) -> None:
        """
        Resolve every schema key and collect all problems.

        Raises:
            ConfigError: If any key is missing or invalid
        """
        problems: list[str] = []
        for key in CONFIG_SCHEMA:
            try:
                self.get(key)
            except (MissingKeyError, ValidationError) as e:
                problems.append(str(e))

        if problems:
            raise ConfigError("Configuration validation failed.\n" + "\n".join(problems))

        logger.debug(f"Validated {len(CONFIG_SCHEMA)} config keys")

    def _get_env_key(self, key: str) -> str:
        """Convert dot notation to environment variable name."""
        # plenary.holds -> CONFIG_PLENARY_HOLDS
        return "CONFIG_" + key.upper().replace(".", "_")

    def get(self, key: str) -> Any:
        """
        Get a configuration value.

        Args:
            key: Configuration key (e.g., "plenary.room")

        Returns:
            The typed configuration value

        Raises:
            UnknownKeyError: If key is not in schema
            MissingKeyError: If key has no value and no default
            ValidationError: If value fails conversion or validation
        """
        if key not in CONFIG_SCHEMA:
            raise UnknownKeyError(f"Unknown config key: '{key}'")

        schema = CONFIG_SCHEMA[key]

        env_key = self._get_env_key(key)
        env_value = os.environ.get(env_key)
        if env_value is not None:
            source = f"Environment variable {env_key}"
            raw_value = env_value
        elif key in self._overrides:
            source = f"Config key '{key}'"
            raw_value = self._overrides[key]
        elif schema.default is not None:
            return schema.default
        else:
            raise MissingKeyError(f"Config key '{key}' has no value and no default")

        try:
            typed_value = schema.config_type.convert(raw_value)
        except (ValueError, TypeError) as e:
            raise ValidationError(f"{source} has invalid type: {e}") from e

        error = schema.validate(typed_value)
        if error:
            raise ValidationError(f"{source}: {error}")

        return typed_value

    def get_int(self, key: str, default: int | None = None) -> int:
        """Get an integer config value."""
        try:
            return cast(int, self.get(key))
        except (MissingKeyError, UnknownKeyError):
            if default is not None:
                return default
            raise

    def get_bool(self, key: str, default: bool | None = None) -> bool:
        """Get a boolean config value."""
        try:
            return cast(bool, self.get(key))
        except (MissingKeyError, UnknownKeyError):
            if default is not None:
                return default
            raise

    def get_str(self, key: str, default: str | None = None) -> str:
        """Get a string config value."""
        try:
            return cast(str, self.get(key))
        except (MissingKeyError, UnknownKeyError):
            if default is not None:
                return default
            raise

