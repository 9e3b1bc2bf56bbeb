"""
Alea pseudo-random generator (Johannes Baagøe).

String-seeded and platform independent, so a sampled point set can be
reproduced exactly from its seed on any machine.
"""

from typing import Sequence, TypeVar

T = TypeVar("T")

_TWO_POW_32 = 0x100000000
_TWO_POW_MINUS_32 = 2.3283064365386963e-10


class _Mash:
    """Hash that turns arbitrary seed data into floats in [0, 1)."""

    def __init__(self):
        self.n = 0xEFC8249D

    def __call__(self, data) -> float:
        n = self.n
        for char in str(data):
            n += ord(char)
            h = 0.02519603282416938 * n
            n = int(h) & 0xFFFFFFFF
            h -= n
            h *= n
            n = int(h) & 0xFFFFFFFF
            h -= n
            n += h * _TWO_POW_32
        self.n = n
        return (int(n) & 0xFFFFFFFF) * _TWO_POW_MINUS_32


class AleaPRNG:
    """Alea generator state. ``random()`` returns floats in [0, 1)."""

    def __init__(self, seed):
        """Initialize from a string, a number, or an iterable of either."""
        self.call_count = 0

        if hasattr(seed, "__iter__") and not isinstance(seed, str):
            parts = list(seed)
        else:
            parts = [seed]

        mash = _Mash()
        self.s0 = mash(" ")
        self.s1 = mash(" ")
        self.s2 = mash(" ")
        self.c = 1

        for part in parts:
            self.s0 = (self.s0 - mash(part)) % 1.0
            self.s1 = (self.s1 - mash(part)) % 1.0
            self.s2 = (self.s2 - mash(part)) % 1.0

    def random(self) -> float:
        """Next float in [0, 1)."""
        self.call_count += 1
        t = 2091639 * self.s0 + self.c * _TWO_POW_MINUS_32
        self.s0 = self.s1
        self.s1 = self.s2
        self.c = int(t)
        self.s2 = t - self.c
        return self.s2

    def uniform(self, low: float, high: float) -> float:
        """Float in [low, high)."""
        return low + (high - low) * self.random()

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high], both ends inclusive."""
        if high < low:
            raise ValueError(f"Empty range for randint({low}, {high})")
        return low + int(self.random() * (high - low + 1))

    def choice(self, seq: Sequence[T]) -> T:
        """Choose a random element from a non-empty sequence."""
        if not seq:
            raise IndexError("Cannot choose from an empty sequence")
        return seq[int(self.random() * len(seq))]
