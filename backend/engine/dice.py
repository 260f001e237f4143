"""
Dice strategies for two-dice sums 2..12.

RealDice       - two independent d6 per roll, plus manually entered sums.
AdaptiveDice   - multiplicative-weights correction around the true law.
ShuffleBagDice - finite bag drawn without replacement, exact per bag.

Model used by AdaptiveDice. With target p_s = [1,2,3,4,5,6,5,4,3,2,1]/36 and
counts c_s(t) after t rolls:
    e_s <- (1 - beta) * e_s + beta * (c_s(t)/t - p_s)     for every s
    w_s ~ p_s * exp(-eta * e_s)                           (Hedge)
    q_s = (1 - epsilon) * w_s / sum(w) + epsilon * p_s    (floor mix)
The next sum is drawn from q through an alias table.

All strategies validate before mutating: a failed roll or undo leaves the
history (and error vector or bag) as it was.
"""

import math

from backend.engine import BAG_UNIT, DEFAULT_BETA, DEFAULT_EPSILON, DEFAULT_ETA, DIE_FACES
from backend.engine.alias import Alias
from backend.engine.errors import DiceConfigError, UndoUnavailableError
from backend.engine.outcomes import (
    OUTCOMES,
    TARGET_P,
    TWO_DICE_COUNTS,
    ensure_outcome,
    ensure_outcome_list,
    outcome_index,
)
from backend.engine.rng import RNG, CryptoRNG
from backend.engine.state import (
    AdaptiveDiceState,
    RealLifeDiceState,
    ShuffleBagDiceState,
    ensure_int,
    validate_adaptive_params,
    validate_bag_size,
)


class RealDice:
    """Two fair d6 per roll; no algorithmic state beyond the history."""

    def __init__(self, rolls: list[int] | None = None, rng: RNG | None = None):
        self._rolls = ensure_outcome_list(rolls) if rolls is not None else []
        self.rng = rng if rng is not None else CryptoRNG()

    @classmethod
    def from_state(cls, state: RealLifeDiceState, rng: RNG | None = None) -> "RealDice":
        return cls(rolls=state.rolls, rng=rng)

    @property
    def rolls(self) -> list[int]:
        return list(self._rolls)

    def roll(self) -> int:
        d1 = self.rng.int_below(DIE_FACES) + 1
        d2 = self.rng.int_below(DIE_FACES) + 1
        outcome = ensure_outcome(d1 + d2)
        self._rolls.append(outcome)
        return outcome

    def add_roll(self, outcome: int) -> None:
        """Record a sum rolled with physical dice."""
        self._rolls.append(ensure_outcome(outcome))

    def undo(self) -> None:
        if not self._rolls:
            raise UndoUnavailableError("Cannot undo: no rolls have been made")
        self._rolls.pop()

    def to_state(self) -> RealLifeDiceState:
        return RealLifeDiceState(rolls=list(self._rolls))


class AdaptiveDice:
    """
    Sums whose probabilities lean against recent outliers while staying
    close to the true two-dice distribution.

    The EMA error vector and q are caches of the roll history. Construction
    and undo rebuild them by replaying the history from an empty state; roll
    applies the same update step once, so both paths agree bit for bit.
    """

    def __init__(
        self,
        beta: float | None = None,
        eta: float | None = None,
        epsilon: float | None = None,
        rolls: list[int] | None = None,
        rng: RNG | None = None,
    ):
        self.beta, self.eta, self.epsilon = validate_adaptive_params(
            DEFAULT_BETA if beta is None else beta,
            DEFAULT_ETA if eta is None else eta,
            DEFAULT_EPSILON if epsilon is None else epsilon,
        )
        # None means "default"; kept as None in to_state() so the default stays tunable
        self._configured = (
            None if beta is None else self.beta,
            None if eta is None else self.eta,
            None if epsilon is None else self.epsilon,
        )
        self._rolls = ensure_outcome_list(rolls) if rolls is not None else []
        self.rng = rng if rng is not None else CryptoRNG()

        self._counts: list[int] = []
        self._errors: list[float] = []
        self._q: list[float] = []
        self._replay()
        self.alias = Alias(self._q, self.rng)

    @classmethod
    def from_state(cls, state: AdaptiveDiceState, rng: RNG | None = None) -> "AdaptiveDice":
        """Rebuild from history; parameters left unset fall back to the defaults."""
        return cls(beta=state.beta, eta=state.eta, epsilon=state.epsilon, rolls=state.rolls, rng=rng)

    @property
    def rolls(self) -> list[int]:
        return list(self._rolls)

    @property
    def q(self) -> list[float]:
        """Distribution the next roll is drawn from (index = sum - 2)."""
        return list(self._q)

    @property
    def errors(self) -> list[float]:
        return list(self._errors)

    def _update_errors(self, errors: list[float], counts: list[int], t: int) -> None:
        # Every share moves when t grows, not only the sum just rolled
        for k in range(len(errors)):
            empirical = counts[k] / t
            errors[k] = (1 - self.beta) * errors[k] + self.beta * (empirical - TARGET_P[k])

    def _compute_weights(self, errors: list[float]) -> list[float]:
        # Shifted by the smallest error so exp() cannot overflow; normalizing cancels it
        e_min = min(errors)
        w = [p * math.exp(-self.eta * (e - e_min)) for p, e in zip(TARGET_P, errors)]
        w_sum = math.fsum(w)
        if not (w_sum > 0 and math.isfinite(w_sum)):
            w = list(TARGET_P)
        else:
            w = [x / w_sum for x in w]

        q = [(1 - self.epsilon) * wk + self.epsilon * pk for wk, pk in zip(w, TARGET_P)]
        q_sum = math.fsum(q)
        return [x / q_sum for x in q]

    def _replay(self) -> None:
        counts = [0] * len(OUTCOMES)
        errors = [0.0] * len(OUTCOMES)
        for t, outcome in enumerate(self._rolls, start=1):
            counts[outcome_index(outcome)] += 1
            self._update_errors(errors, counts, t)
        self._counts = counts
        self._errors = errors
        self._q = self._compute_weights(errors) if self._rolls else list(TARGET_P)

    def roll(self) -> int:
        idx = self.alias.sample_index()
        outcome = OUTCOMES[idx]
        self._rolls.append(outcome)
        self._counts[idx] += 1
        self._update_errors(self._errors, self._counts, len(self._rolls))
        self._q = self._compute_weights(self._errors)
        self.alias.build(self._q)
        return outcome

    def undo(self) -> None:
        """Drop the last roll and rebuild errors and q from the remaining history."""
        if not self._rolls:
            raise UndoUnavailableError("Cannot undo: no rolls have been made")
        self._rolls.pop()
        self._replay()
        self.alias.build(self._q)

    def to_state(self) -> AdaptiveDiceState:
        beta, eta, epsilon = self._configured
        return AdaptiveDiceState(rolls=list(self._rolls), beta=beta, eta=eta, epsilon=epsilon)


class ShuffleBagDice:
    """
    Draws sums from a shuffled bag holding each sum multiplicity * (bag_size / 36)
    times, so every full bag matches the true distribution exactly.

    Bags are appended, never discarded: the stored bag is the full sequence of
    every bag opened so far and the pointer counts how many sums were drawn.
    Undo therefore steps back across bag boundaries and only fails before
    the first draw.
    """

    def __init__(
        self,
        bag_size: int = BAG_UNIT,
        bag: list[int] | None = None,
        bag_ptr: int = 0,
        rng: RNG | None = None,
    ):
        self.bag_size = validate_bag_size(bag_size)
        self._bag = ensure_outcome_list(bag, "bag") if bag is not None else []
        self._ptr = ensure_int(bag_ptr, "bagPtr")
        self._validate_bag()
        self.rng = rng if rng is not None else CryptoRNG()

    @classmethod
    def from_state(cls, state: ShuffleBagDiceState, rng: RNG | None = None) -> "ShuffleBagDice":
        return cls(bag_size=state.bag_size, bag=state.bag, bag_ptr=state.bag_ptr, rng=rng)

    @property
    def scale(self) -> int:
        return self.bag_size // BAG_UNIT

    @property
    def rolls(self) -> list[int]:
        return self._bag[:self._ptr]

    @property
    def bag_ptr(self) -> int:
        return self._ptr

    @property
    def bag(self) -> list[int]:
        return list(self._bag)

    @property
    def position_in_bag(self) -> int:
        """Draws taken from the bag currently being consumed."""
        if self._ptr == 0:
            return 0
        return (self._ptr - 1) % self.bag_size + 1

    def _validate_bag(self) -> None:
        if len(self._bag) % self.bag_size != 0:
            raise DiceConfigError(
                f"bag length {len(self._bag)} is not a whole number of bags of {self.bag_size}")
        if not (0 <= self._ptr <= len(self._bag)):
            raise DiceConfigError(f"bagPtr must be in [0, {len(self._bag)}], got {self._ptr}")
        expected = [c * self.scale for c in TWO_DICE_COUNTS]
        for start in range(0, len(self._bag), self.bag_size):
            counts = [0] * len(OUTCOMES)
            for outcome in self._bag[start:start + self.bag_size]:
                counts[outcome_index(outcome)] += 1
            if counts != expected:
                raise DiceConfigError(
                    f"bag segment starting at {start} does not match the two-dice distribution")

    def _fresh_bag(self) -> list[int]:
        bag = []
        for outcome, count in zip(OUTCOMES, TWO_DICE_COUNTS):
            bag.extend([outcome] * (count * self.scale))
        # Fisher-Yates
        for i in range(len(bag) - 1, 0, -1):
            j = self.rng.int_below(i + 1)
            bag[i], bag[j] = bag[j], bag[i]
        return bag

    def roll(self) -> int:
        """Draw one sum; opens a new shuffled bag when the current one is used up."""
        if self._ptr >= len(self._bag):
            self._bag.extend(self._fresh_bag())
        outcome = self._bag[self._ptr]
        self._ptr += 1
        return outcome

    def undo(self) -> None:
        """Put the last drawn sum back; the next roll returns it again."""
        if self._ptr == 0:
            raise UndoUnavailableError("Cannot undo: at start of bag")
        self._ptr -= 1

    def to_state(self) -> ShuffleBagDiceState:
        return ShuffleBagDiceState(bag_size=self.bag_size, bag=list(self._bag), bag_ptr=self._ptr)


def pair(outcome: int, rng: RNG | None = None) -> tuple[int, int]:
    """
    Face values (d1, d2) for a sum, uniform among the feasible pairs.
    Cosmetic only; sampling never goes through here.
    """
    outcome = ensure_outcome(outcome)
    rng = rng if rng is not None else CryptoRNG()
    min_d1 = max(1, outcome - DIE_FACES)
    max_d1 = min(DIE_FACES, outcome - 1)
    d1 = min_d1 + rng.int_below(max_d1 - min_d1 + 1)
    return d1, outcome - d1
