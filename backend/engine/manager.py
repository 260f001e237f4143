"""
Single dispatch point from a serialized dice state to its strategy, plus the
functional roll/undo API and DiceManager.

The set of modes is closed: get_dice matches every mode explicitly and
anything else is a configuration error.
"""

from typing import Any

from backend.engine.dice import AdaptiveDice, RealDice, ShuffleBagDice
from backend.engine.errors import DiceConfigError
from backend.engine.rng import RNG
from backend.engine.state import (
    MODE_ADAPTIVE,
    MODE_REAL_LIFE,
    MODE_SHUFFLE_BAG,
    AdaptiveDiceState,
    DiceState,
    RealLifeDiceState,
    ShuffleBagDiceState,
    dice_state_from_dict,
)

Dice = RealDice | AdaptiveDice | ShuffleBagDice


def _as_state(state: DiceState | dict[str, Any]) -> DiceState:
    if isinstance(state, dict):
        return dice_state_from_dict(state)
    return state


def get_dice(state: DiceState | dict[str, Any], rng: RNG | None = None) -> Dice:
    """Rebuild the strategy for a state record (adaptive replays its history)."""
    state = _as_state(state)
    if isinstance(state, RealLifeDiceState):
        return RealDice.from_state(state, rng)
    if isinstance(state, AdaptiveDiceState):
        return AdaptiveDice.from_state(state, rng)
    if isinstance(state, ShuffleBagDiceState):
        return ShuffleBagDice.from_state(state, rng)
    raise DiceConfigError(f"Unknown dice state: {state!r}")


def new_dice_state(
    mode: str,
    beta: float | None = None,
    eta: float | None = None,
    epsilon: float | None = None,
    bag_size: int | None = None,
) -> DiceState:
    """Empty, validated state for a mode. Parameters that do not apply to the mode are rejected."""
    if mode == MODE_REAL_LIFE:
        _reject_params(mode, beta=beta, eta=eta, epsilon=epsilon, bag_size=bag_size)
        state: DiceState = RealLifeDiceState()
    elif mode == MODE_ADAPTIVE:
        _reject_params(mode, bag_size=bag_size)
        state = AdaptiveDiceState(beta=beta, eta=eta, epsilon=epsilon)
    elif mode == MODE_SHUFFLE_BAG:
        _reject_params(mode, beta=beta, eta=eta, epsilon=epsilon)
        state = ShuffleBagDiceState() if bag_size is None else ShuffleBagDiceState(bag_size=bag_size)
    else:
        raise DiceConfigError(f"Unknown dice mode: {mode!r}")
    # Round-trip through the dict form so the same validation as restore applies
    state = dice_state_from_dict(state.to_dict())
    get_dice(state)
    return state


def switch_mode(
    state: DiceState | dict[str, Any],
    mode: str,
    beta: float | None = None,
    eta: float | None = None,
    epsilon: float | None = None,
    bag_size: int | None = None,
) -> DiceState:
    """
    Same roll history under a different mode. Adaptive replays it into its
    error vector. A shuffle bag cannot hold an arbitrary history, so switching
    to shuffle-bag is only allowed before the first roll.
    """
    history = rolls(state)
    fresh = new_dice_state(mode, beta=beta, eta=eta, epsilon=epsilon, bag_size=bag_size)
    if isinstance(fresh, ShuffleBagDiceState):
        if history:
            raise DiceConfigError("Cannot switch to shuffle-bag mode after rolls have been made")
        return fresh
    fresh.rolls = history
    get_dice(fresh)
    return fresh


def _reject_params(mode: str, **params: Any) -> None:
    given = sorted(name for name, value in params.items() if value is not None)
    if given:
        raise DiceConfigError(f"{', '.join(given)} not supported in {mode} mode")


def roll(state: DiceState | dict[str, Any], rng: RNG | None = None) -> tuple[DiceState, int]:
    """Roll once; returns (new_state, outcome). The input record is not modified."""
    dice = get_dice(state, rng)
    outcome = dice.roll()
    return dice.to_state(), outcome


def undo(state: DiceState | dict[str, Any], rng: RNG | None = None) -> DiceState:
    dice = get_dice(state, rng)
    dice.undo()
    return dice.to_state()


def rolls(state: DiceState | dict[str, Any]) -> list[int]:
    return list(_as_state(state).rolls)


class DiceManager:
    """
    Method-style wrapper around a dice state record.

    Holds one live strategy so repeated rolls do not replay the history each
    time; state always reflects the strategy after the last operation.
    """

    def __init__(self, state: DiceState | dict[str, Any], rng: RNG | None = None):
        self._dice = get_dice(state, rng)
        self._state = self._dice.to_state()

    @classmethod
    def from_state(cls, state: DiceState | dict[str, Any], rng: RNG | None = None) -> "DiceManager":
        return cls(state, rng)

    @property
    def state(self) -> DiceState:
        return self._state

    @property
    def dice(self) -> Dice:
        return self._dice

    @property
    def mode(self) -> str:
        return self._state.mode

    @property
    def rolls(self) -> list[int]:
        return self._dice.rolls

    def roll(self) -> tuple[DiceState, int]:
        outcome = self._dice.roll()
        self._state = self._dice.to_state()
        return self._state, outcome

    def undo(self) -> DiceState:
        self._dice.undo()
        self._state = self._dice.to_state()
        return self._state

    def add_roll(self, outcome: int) -> DiceState:
        """Record a physically rolled sum (real-life mode only)."""
        if not isinstance(self._dice, RealDice):
            raise DiceConfigError("add_roll is only supported in real-life dice mode")
        self._dice.add_roll(outcome)
        self._state = self._dice.to_state()
        return self._state
