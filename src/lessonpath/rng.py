"""Reproducible pseudo-random numbers keyed by arbitrary strings."""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_FNV_OFFSET = 2166136261
_FNV_PRIME = 16777619


def hash_seed(seed: str) -> int:
    """Hash a seed string to an unsigned 32-bit integer (FNV-1a over UTF-16 code units).

    UTF-16 units keep hashes identical to clients that index strings by UTF-16
    code unit, so the same lesson id shuffles the same way everywhere.
    """
    data = seed.encode("utf-16-le")
    value = _FNV_OFFSET
    for index in range(0, len(data), 2):
        value ^= data[index] | (data[index + 1] << 8)
        value = (value * _FNV_PRIME) & _MASK32
    return value


def _imul(left: int, right: int) -> int:
    return (left * right) & _MASK32


class SeededGenerator:
    """mulberry32 generator; each call returns the next float in [0, 1)."""

    __slots__ = ("_state",)

    def __init__(self, state: int) -> None:
        self._state = state & _MASK32

    def __call__(self) -> float:
        self._state = (self._state + 0x6D2B79F5) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / 4294967296

    def below(self, bound: int) -> int:
        """Return an integer in [0, bound)."""
        return int(self() * bound)


def seeded_generator(seed: str) -> SeededGenerator:
    """Create an independent generator whose sequence depends only on `seed`."""
    return SeededGenerator(hash_seed(seed))


def seeded_shuffle(items: Sequence[T], seed: str) -> list[T]:
    """Return a Fisher-Yates shuffled copy of `items` driven by `seed`."""
    rng = seeded_generator(seed)
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rng.below(i + 1)
        out[i], out[j] = out[j], out[i]
    return out
