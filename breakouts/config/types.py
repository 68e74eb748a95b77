"""Configuration key definitions for the scheduling engine."""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

TRUE_STRINGS = ("true", "1", "yes", "on")


class ConfigType(Enum):
    """Value types a scheduling key can hold."""

    INT = "int"
    BOOL = "bool"
    STRING = "string"

    def convert(self, raw: Any) -> Any:
        """
        Convert a raw value (typically an environment string) to this type.

        Raises:
            ValueError, TypeError: If the value cannot be converted
        """
        if self is ConfigType.INT:
            if isinstance(raw, bool):
                raise TypeError(f"expected an integer, got {raw!r}")
            return int(raw)
        if self is ConfigType.BOOL:
            if isinstance(raw, str):
                return raw.strip().lower() in TRUE_STRINGS
            return bool(raw)
        return str(raw)


@dataclass(frozen=True)
class ConfigKey:
    """
    A scheduling configuration key.

    Attributes:
        key: Dot-notation name, e.g. "plenary.holds"
        config_type: Type values are converted to
        default: Value used when neither the environment nor an override sets the key
        description: What the key controls
        min_value: Lower bound for INT keys (room capacities, slot durations, plenary holds)
        max_value: Upper bound for INT keys
        validator: Extra check on the converted value, e.g. a non-blank room name
    """

    key: str
    config_type: ConfigType
    default: Any = None
    description: str = ""
    min_value: int | None = None
    max_value: int | None = None
    validator: Callable[[Any], bool] | None = None

    @property
    def required(self) -> bool:
        return self.default is None

    def validate(self, value: Any) -> str | None:
        """Return an error message for an out-of-range or rejected value, None otherwise."""
        if self.config_type is ConfigType.INT:
            if self.min_value is not None and value < self.min_value:
                return f"Value {value} below minimum {self.min_value}"
            if self.max_value is not None and value > self.max_value:
                return f"Value {value} above maximum {self.max_value}"
        if self.validator is not None and not self.validator(value):
            return f"Value {value!r} rejected for {self.key}"
        return None
