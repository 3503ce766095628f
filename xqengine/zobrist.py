"""Three-part Zobrist hash keys and their random generation."""

from __future__ import annotations

import random
from dataclasses import dataclass

_U32 = 0xFFFFFFFF


@dataclass(frozen=True)
class ZobristKey:
    """A primary key and two secondary check keys, each 32 bits."""

    primary: int = 0
    secondary0: int = 0
    secondary1: int = 0

    def __post_init__(self) -> None:
        for value in (self.primary, self.secondary0, self.secondary1):
            if not 0 <= value <= _U32:
                raise ValueError(f"key part must be an unsigned 32-bit value, got {value}")

    def __xor__(self, other: object) -> "ZobristKey":
        if not isinstance(other, ZobristKey):
            return NotImplemented
        return ZobristKey(
            self.primary ^ other.primary,
            self.secondary0 ^ other.secondary0,
            self.secondary1 ^ other.secondary1,
        )


def random_u31(rng: random.Random) -> int:
    """A uniform random integer in [0, 2**31)."""
    return rng.randrange(1 << 31)


def random_key(rng: random.Random) -> ZobristKey:
    """A key whose three parts are independent random_u31 values."""
    primary = random_u31(rng)
    secondary0 = random_u31(rng)
    secondary1 = random_u31(rng)
    return ZobristKey(primary, secondary0, secondary1)