"""
Vose alias table for O(1) discrete sampling.
Build cost O(n), sample cost O(1).
"""

import math

from backend.engine.errors import DiceConfigError
from backend.engine.rng import RNG


class Alias:
    """Alias table over indices 0..n-1, rebuilt in place by build()."""

    def __init__(self, weights: list[float], rng: RNG):
        self.rng = rng
        self._q: list[float] = []
        self._alias: list[int] = []
        self.build(weights)

    @property
    def n(self) -> int:
        return len(self._q)

    @property
    def probabilities(self) -> list[float]:
        """Per-bucket keep probability q[i]."""
        return list(self._q)

    @property
    def aliases(self) -> list[int]:
        """Per-bucket alias index J[i]."""
        return list(self._alias)

    def build(self, weights: list[float]) -> None:
        """
        Rebuild the table for a new weight vector (normalized here).

        Raises DiceConfigError for an empty vector, negative or non-finite
        weights, or a non-positive total. The old table is kept on failure.
        """
        n = len(weights)
        if n == 0:
            raise DiceConfigError("Alias.build: empty weight vector")
        for w in weights:
            try:
                finite = math.isfinite(w)
            except OverflowError:
                finite = False
            if not finite or w < 0:
                raise DiceConfigError("Alias.build: weights must be finite floats and >= 0")
        total = math.fsum(weights)
        if not total > 0:
            raise DiceConfigError("Alias.build: weights must sum to > 0")

        scaled = [w / total * n for w in weights]
        q = [0.0] * n
        alias = list(range(n))
        small = [i for i, x in enumerate(scaled) if x < 1]
        large = [i for i, x in enumerate(scaled) if x >= 1]

        while small and large:
            lo = small.pop()
            hi = large.pop()
            q[lo] = scaled[lo]
            alias[lo] = hi
            # hi donates the mass lo was missing
            scaled[hi] = scaled[hi] - (1 - scaled[lo])
            if scaled[hi] < 1:
                small.append(hi)
            else:
                large.append(hi)

        # Leftovers are full buckets; anything else is floating-point residue
        for i in large:
            q[i] = 1.0
        for i in small:
            q[i] = 1.0

        self._q = q
        self._alias = alias

    def sample_index(self) -> int:
        """Draw an index 0..n-1 according to the current table."""
        i = self.rng.int_below(self.n)
        return i if self.rng.float01() < self._q[i] else self._alias[i]
