"""
Seeded pseudo-random generator used to shuffle sessions.

Multiply-with-carry generator (George Marsaglia) with 32-bit signed integer
arithmetic, so that a given seed always yields the same sequence.
"""

from __future__ import annotations

import random
import zlib
from typing import Any, TypeVar

T = TypeVar("T")

MZ_INIT = 123456789
MAX_SEED = 0xFFFFFFFF


def to_int32(value: int) -> int:
    """Wrap an integer to a signed 32-bit integer."""
    return ((value & 0xFFFFFFFF) ^ 0x80000000) - 0x80000000


def normalize_seed(seed: int | str | None) -> int | None:
    """
    Turn a user-provided seed into an integer seed.

    Numeric strings are used as integers, other strings are hashed with
    CRC-32. Zero is mapped to 1. None stays None (random seed).
    """
    if seed is None:
        return None
    if isinstance(seed, str):
        text = seed.strip()
        value = int(text) if text.isdigit() else zlib.crc32(text.encode("utf-8"))
    else:
        value = int(seed)
    value &= MAX_SEED
    return value or 1


class Srand:
    """Multiply-with-carry PRNG. Only `mw` depends on the seed; `mz` is fixed."""

    def __init__(self, seed: int | str | None = None) -> None:
        self._seed = 0
        self._mz = MZ_INIT
        self._mw = 0
        value = normalize_seed(seed)
        if value is None:
            self.randomize()
        else:
            self.seed(value)

    @property
    def current_seed(self) -> int:
        return self._seed

    def seed(self, value: int) -> int:
        self._mz = MZ_INIT
        self._mw = self._seed = value
        return value

    def randomize(self) -> int:
        """Pick a fresh random seed in 1..0xFFFFFFFF."""
        return self.seed(random.randint(1, MAX_SEED))

    def get_state(self) -> dict[str, int]:
        return {"seed": self._seed, "mz": self._mz, "mw": self._mw}

    def set_state(self, state: dict[str, Any]) -> None:
        if not all(isinstance(state.get(key), int) for key in ("seed", "mz", "mw")):
            raise ValueError("Invalid state")
        self._seed, self._mz, self._mw = state["seed"], state["mz"], state["mw"]

    def random(self) -> float:
        """Pseudo-random float in [0, 1)."""
        # 16 low bits times a constant, plus the 16 high bits
        mz = to_int32((self._mz & 0xFFFF) * 36969 + (to_int32(self._mz) >> 16))
        mw = to_int32((self._mw & 0xFFFF) * 18000 + (to_int32(self._mw) >> 16))
        self._mz, self._mw = mz, mw
        x = to_int32(to_int32(mz << 16) + mw) / 0x100000000
        return 0.5 + x

    def int_in_range(self, low: int, high: int) -> int:
        """Pseudo-random integer between low and high inclusive."""
        return low + int(self.random() * (high - low + 1))

    def choice(self, items: list[T]) -> T:
        if not items:
            raise IndexError("Cannot choose from an empty list")
        return items[self.int_in_range(0, len(items) - 1)]

    def shuffle(self, items: list[T]) -> list[T]:
        """Fisher-Yates shuffle in place. Returns the list."""
        for i in range(len(items) - 1, 0, -1):
            j = self.int_in_range(0, i)
            items[i], items[j] = items[j], items[i]
        return items
