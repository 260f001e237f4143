"""
Random source: bounded integers without modulo bias, floats in [0, 1), and a
clear failure when the host has no strong source.
"""

import pytest

from backend.engine.errors import DiceConfigError, RandomSourceUnavailableError
from backend.engine.rng import RAW_RANGE, CryptoRNG, SeededRNG


@pytest.mark.parametrize("n", [0, -1, 1.5, True, "6", None])
def test_int_below_rejects_non_positive_integers(n):
    with pytest.raises(DiceConfigError):
        SeededRNG(1).int_below(n)


def test_int_below_redraws_values_past_largest_multiple(scripted_rng):
    # 2**32 // 3 * 3 == 2**32 - 1, so the top raw value is rejected
    rng = scripted_rng([RAW_RANGE - 1, 5])
    assert rng.int_below(3) == 2
    assert rng.consumed == 2


def test_int_below_keeps_values_under_limit(scripted_rng):
    rng = scripted_rng([RAW_RANGE - 2])
    assert rng.int_below(3) == (RAW_RANGE - 2) % 3
    assert rng.consumed == 1


def test_float01_bounds(scripted_rng):
    rng = scripted_rng([0, RAW_RANGE - 1])
    assert rng.float01() == 0.0
    assert rng.float01() < 1.0


@pytest.mark.parametrize("n", [3, 7, 11])
def test_int_below_is_unbiased_when_n_does_not_divide_range(n, chi2):
    rng = SeededRNG(n * 101)
    draws = 40_000
    counts = [0] * n
    for _ in range(draws):
        counts[rng.int_below(n)] += 1
    # 99.9% critical values for df = n - 1
    critical = {3: 13.82, 7: 22.46, 11: 29.59}[n]
    assert chi2(counts, [1 / n] * n) < critical


def test_seeded_rng_is_reproducible():
    a, b = SeededRNG(42), SeededRNG(42)
    assert [a.int_below(36) for _ in range(50)] == [b.int_below(36) for _ in range(50)]
    assert a.seed == 42


def test_crypto_rng_draws_in_range():
    rng = CryptoRNG()
    for _ in range(500):
        assert 0 <= rng.int_below(6) < 6
        assert 0.0 <= rng.float01() < 1.0


def test_crypto_rng_without_strong_source(monkeypatch):
    def no_entropy(nbytes=None):
        raise NotImplementedError("no urandom")

    monkeypatch.setattr("backend.engine.rng.secrets.token_bytes", no_entropy)
    with pytest.raises(RandomSourceUnavailableError):
        CryptoRNG()
