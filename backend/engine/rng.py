"""
Random sources for the dice engine.

CryptoRNG draws from the OS CSPRNG (secrets / os.urandom) and is the default
for every dice strategy. SeededRNG has the same contract but is deterministic,
for tests and reproducible demos. Strategies take the source as a constructor
argument; nothing here is module-global.
"""

import random
import secrets
from abc import ABC, abstractmethod

from backend.engine.errors import DiceConfigError, RandomSourceUnavailableError

# Raw draws are 32-bit unsigned integers
RAW_RANGE = 2 ** 32


class RNG(ABC):
    """float01() in [0, 1) and int_below(n) in [0, n), both uniform."""

    @abstractmethod
    def next_u32(self) -> int:
        """Return a uniform integer in [0, 2**32)."""

    def float01(self) -> float:
        # 1.0 is unreachable: the largest raw value is 2**32 - 1
        return self.next_u32() / RAW_RANGE

    def int_below(self, n: int) -> int:
        """
        Uniform integer in [0, n) with no modulo bias.

        Raw values at or above the largest multiple of n that fits in 2**32
        are rejected and redrawn.
        """
        if isinstance(n, bool) or not isinstance(n, int) or n <= 0:
            raise DiceConfigError(f"int_below(n): n must be a positive integer, got {n!r}")
        if n > RAW_RANGE:
            raise DiceConfigError(f"int_below(n): n must be <= 2**32, got {n}")
        limit = (RAW_RANGE // n) * n
        x = self.next_u32()
        while x >= limit:
            x = self.next_u32()
        return x % n


class CryptoRNG(RNG):
    """Cryptographically strong source. Fails fast if the host has none."""

    def __init__(self):
        # Probe once so a missing source surfaces at construction, not mid-roll
        self._read(1)

    @staticmethod
    def _read(nbytes: int) -> bytes:
        try:
            return secrets.token_bytes(nbytes)
        except NotImplementedError as e:
            raise RandomSourceUnavailableError(
                "No cryptographically strong random source available on this host"
            ) from e

    def next_u32(self) -> int:
        return int.from_bytes(self._read(4), "big")


class SeededRNG(RNG):
    """Deterministic source driven by random.Random(seed)."""

    def __init__(self, seed: int | None = None):
        self._seed = seed
        self._rng = random.Random(seed)

    @property
    def seed(self) -> int | None:
        return self._seed

    def next_u32(self) -> int:
        return self._rng.getrandbits(32)
