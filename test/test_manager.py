"""
Strategy dispatch, functional API, DiceManager, real-life dice and face pairs.
"""

from collections import Counter

import pytest

from backend.engine.dice import AdaptiveDice, RealDice, ShuffleBagDice, pair
from backend.engine.errors import DiceConfigError, UndoUnavailableError
from backend.engine.manager import (
    DiceManager,
    get_dice,
    new_dice_state,
    roll,
    rolls,
    switch_mode,
    undo,
)
from backend.engine.outcomes import OUTCOMES, TARGET_P
from backend.engine.rng import SeededRNG
from backend.engine.state import AdaptiveDiceState, RealLifeDiceState, ShuffleBagDiceState


# ===== Dispatch =====

@pytest.mark.parametrize("data,cls", [
    ({"mode": "real-life", "rolls": [2, 12]}, RealDice),
    ({"mode": "adaptive", "rolls": [7], "beta": 0.2}, AdaptiveDice),
    ({"mode": "shuffle-bag", "bagSize": 72}, ShuffleBagDice),
])
def test_get_dice_dispatches_on_mode(data, cls):
    dice = get_dice(data, SeededRNG(0))
    assert isinstance(dice, cls)


@pytest.mark.parametrize("data", [
    {"mode": "loaded"},
    {"rolls": [7]},
    {"mode": None},
    "real-life",
])
def test_unknown_or_missing_mode_is_fatal(data):
    with pytest.raises(DiceConfigError):
        get_dice(data, SeededRNG(0))


def test_get_dice_rejects_foreign_objects():
    with pytest.raises(DiceConfigError):
        get_dice(object(), SeededRNG(0))


# ===== Functional API =====

def test_functional_roll_does_not_touch_input():
    state = RealLifeDiceState(rolls=[6])
    new_state, outcome = roll(state, SeededRNG(1))
    assert state.rolls == [6]
    assert new_state.rolls == [6, outcome]
    assert rolls(new_state) == [6, outcome]


def test_functional_undo_and_rolls_on_dicts():
    state = undo({"mode": "adaptive", "rolls": [5, 9]}, SeededRNG(1))
    assert isinstance(state, AdaptiveDiceState)
    assert state.rolls == [5]
    assert rolls({"mode": "real-life", "rolls": [3, 4]}) == [3, 4]


@pytest.mark.parametrize("mode", ["real-life", "adaptive", "shuffle-bag"])
def test_functional_undo_on_empty_history(mode):
    with pytest.raises(UndoUnavailableError):
        undo(new_dice_state(mode), SeededRNG(0))


# ===== DiceManager =====

@pytest.mark.parametrize("mode", ["real-life", "adaptive", "shuffle-bag"])
def test_manager_roll_undo_cycle(mode):
    manager = DiceManager(new_dice_state(mode), SeededRNG(5))
    outcomes = [manager.roll()[1] for _ in range(10)]
    assert manager.rolls == outcomes
    assert manager.mode == mode
    state = manager.undo()
    assert state.rolls == outcomes[:-1]
    assert manager.state is state


def test_manager_state_restores_to_same_rolls():
    manager = DiceManager.from_state(new_dice_state("shuffle-bag"), SeededRNG(5))
    for _ in range(50):
        manager.roll()
    again = DiceManager(manager.state.to_dict(), SeededRNG(0))
    assert again.rolls == manager.rolls


def test_add_roll_in_real_life_mode():
    manager = DiceManager(new_dice_state("real-life"), SeededRNG(0))
    state = manager.add_roll(8)
    assert state.rolls == [8]


@pytest.mark.parametrize("value", [1, 13, 7.0, True, "7"])
def test_add_roll_rejects_invalid_sums(value):
    manager = DiceManager(new_dice_state("real-life"), SeededRNG(0))
    with pytest.raises(DiceConfigError):
        manager.add_roll(value)
    assert manager.rolls == []


@pytest.mark.parametrize("mode", ["adaptive", "shuffle-bag"])
def test_add_roll_only_in_real_life_mode(mode):
    manager = DiceManager(new_dice_state(mode), SeededRNG(0))
    with pytest.raises(DiceConfigError):
        manager.add_roll(7)


# ===== Real-life dice =====

def test_real_dice_roll_range_and_law():
    dice = RealDice(rng=SeededRNG(36))
    n = 36_000
    counts = Counter(dice.roll() for _ in range(n))
    assert set(counts) <= set(OUTCOMES)
    for outcome, p in zip(OUTCOMES, TARGET_P):
        assert abs(counts[outcome] / n - p) < 0.01


def test_real_dice_undo():
    dice = RealDice(rolls=[4, 10], rng=SeededRNG(0))
    dice.undo()
    dice.undo()
    with pytest.raises(UndoUnavailableError):
        dice.undo()


# ===== Face pairs =====

@pytest.mark.parametrize("outcome", OUTCOMES)
def test_pair_is_consistent_with_sum(outcome):
    rng = SeededRNG(outcome)
    for _ in range(200):
        d1, d2 = pair(outcome, rng)
        assert 1 <= d1 <= 6 and 1 <= d2 <= 6
        assert d1 + d2 == outcome


def test_pair_is_uniform_over_feasible_faces():
    rng = SeededRNG(3)
    counts = Counter(pair(7, rng) for _ in range(6000))
    assert set(counts) == {(d, 7 - d) for d in range(1, 7)}
    assert all(850 < c < 1150 for c in counts.values())

    counts = Counter(pair(3, rng) for _ in range(2000))
    assert set(counts) == {(1, 2), (2, 1)}
    assert all(850 < c < 1150 for c in counts.values())


def test_pair_for_extremes_is_fixed():
    rng = SeededRNG(0)
    assert pair(2, rng) == (1, 1)
    assert pair(12, rng) == (6, 6)


@pytest.mark.parametrize("value", [1, 13, "7"])
def test_pair_rejects_invalid_sum(value):
    with pytest.raises(DiceConfigError):
        pair(value, SeededRNG(0))


# ===== Fresh states and mode switching =====

def test_new_dice_state_per_mode():
    assert new_dice_state("real-life") == RealLifeDiceState()
    assert new_dice_state("adaptive", beta=0.3).beta == 0.3
    assert new_dice_state("shuffle-bag", bag_size=72) == ShuffleBagDiceState(bag_size=72)


@pytest.mark.parametrize("mode,params", [
    ("real-life", {"beta": 0.3}),
    ("adaptive", {"bag_size": 36}),
    ("shuffle-bag", {"eta": 5}),
    ("adaptive", {"beta": 0}),
    ("shuffle-bag", {"bag_size": 10}),
    ("shuffle-bag", {"bag_size": -36}),
    ("weighted", {}),
])
def test_new_dice_state_rejects_bad_configuration(mode, params):
    with pytest.raises(DiceConfigError):
        new_dice_state(mode, **params)


def test_switch_mode_keeps_history():
    state = switch_mode({"mode": "real-life", "rolls": [7, 7, 7]}, "adaptive", eta=10)
    assert isinstance(state, AdaptiveDiceState)
    assert state.rolls == [7, 7, 7]
    assert state.eta == 10


def test_switch_to_shuffle_bag_only_before_first_roll():
    with pytest.raises(DiceConfigError):
        switch_mode({"mode": "real-life", "rolls": [7]}, "shuffle-bag")
    state = switch_mode({"mode": "adaptive", "rolls": []}, "shuffle-bag", bag_size=72)
    assert state == ShuffleBagDiceState(bag_size=72)
