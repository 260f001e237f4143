"""
Shared fixtures. The API tests get a throwaway SQLite file: DATABASE_URL must
be set before backend.api.database is first imported.
"""

import os
import tempfile

os.environ["DATABASE_URL"] = f"sqlite:///{os.path.join(tempfile.mkdtemp(), 'test_dice.db')}"

import pytest

from backend.engine.errors import RandomSourceUnavailableError
from backend.engine.rng import RNG, SeededRNG


class ScriptedRNG(RNG):
    """Returns the given raw 32-bit values in order."""

    def __init__(self, values: list[int]):
        self.values = list(values)
        self.consumed = 0

    def next_u32(self) -> int:
        value = self.values[self.consumed]
        self.consumed += 1
        return value


class RecordingRNG(SeededRNG):
    """Seeded source that remembers every bound passed to int_below."""

    def __init__(self, seed: int):
        super().__init__(seed)
        self.bounds: list[int] = []

    def int_below(self, n: int) -> int:
        self.bounds.append(n)
        return super().int_below(n)


class BrokenRNG(RNG):
    """A source whose host lost its entropy."""

    def next_u32(self) -> int:
        raise RandomSourceUnavailableError("entropy source gone")


@pytest.fixture
def seeded():
    return SeededRNG(20240611)


@pytest.fixture
def scripted_rng():
    return ScriptedRNG


@pytest.fixture
def recording_rng():
    return RecordingRNG


@pytest.fixture
def broken_rng():
    return BrokenRNG()


def chi_square(observed: list[int], probabilities: list[float]) -> float:
    total = sum(observed)
    return sum((o - total * p) ** 2 / (total * p) for o, p in zip(observed, probabilities))


@pytest.fixture
def chi2():
    return chi_square
