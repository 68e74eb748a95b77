"""Configuration schema registry.

Defines all valid configuration keys with their types, defaults and
validation rules. Unknown keys are rejected by the loader.
"""

from __future__ import annotations

from typing import Any

from .types import ConfigKey, ConfigType

# =============================================================================
# CONFIGURATION SCHEMA REGISTRY
#
# Every key carries a default. Environment variables (CONFIG_<KEY>) and
# explicit overrides take precedence over it. Project metadata (plenary room,
# plenary holds) takes precedence over configuration.
# =============================================================================

CONFIG_SCHEMA: dict[str, ConfigKey] = {
    # =========================================================================
    # PLENARY
    # =========================================================================
    "plenary.room": ConfigKey(
        key="plenary.room",
        config_type=ConfigType.STRING,
        default="Plenary",
        description="Name of the room that hosts plenary sessions",
        validator=lambda value: bool(value.strip()),
    ),
    "plenary.holds": ConfigKey(
        key="plenary.holds",
        config_type=ConfigType.INT,
        default=5,
        description="Maximum number of sessions sharing one plenary slot",
        min_value=1,
    ),
    # =========================================================================
    # ROOMS
    # =========================================================================
    "room.default_capacity": ConfigKey(
        key="room.default_capacity",
        config_type=ConfigType.INT,
        default=30,
        description="Capacity assumed for rooms that do not declare one",
        min_value=1,
    ),
    # =========================================================================
    # SLOTS - project precondition checks
    # =========================================================================
    "slot.min_duration": ConfigKey(
        key="slot.min_duration",
        config_type=ConfigType.INT,
        default=30,
        description="Shortest acceptable slot duration in minutes",
        min_value=1,
    ),
    "slot.max_duration": ConfigKey(
        key="slot.max_duration",
        config_type=ConfigType.INT,
        default=120,
        description="Longest acceptable slot duration in minutes",
        min_value=1,
    ),
    # =========================================================================
    # SCHEDULER
    # =========================================================================
    "scheduler.log_dir": ConfigKey(
        key="scheduler.log_dir",
        config_type=ConfigType.STRING,
        default="logs/scheduler",
        description="Directory where relaxation logs are saved",
    ),
    "scheduler.debug": ConfigKey(
        key="scheduler.debug",
        config_type=ConfigType.BOOL,
        default=False,
        description="Log every relaxation step and assignment at DEBUG level",
    ),
}


def get_schema_key(key: str) -> ConfigKey | None:
    """
    Get the schema definition for a config key.

    Args:
        key: The dot-notation config key

    Returns:
        ConfigKey if found, None otherwise
    """
    return CONFIG_SCHEMA.get(key)


def get_all_required_keys() -> list[str]:
    """Get list of all keys that have no default."""
    return [key for key, schema in CONFIG_SCHEMA.items() if schema.required]


def validate_key(key: str, value: Any) -> str | None:
    """
    Validate a value for a specific key.

    Args:
        key: The dot-notation config key
        value: The value to validate

    Returns:
        None if valid, error message if invalid or unknown key
    """
    schema = CONFIG_SCHEMA.get(key)
    if schema is None:
        return f"Unknown config key: '{key}'"
    return schema.validate(value)
