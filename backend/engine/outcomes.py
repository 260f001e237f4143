"""
Dice outcome domain: the eleven two-dice sums and their true distribution.
"""

from typing import Any

from backend.engine import BAG_UNIT
from backend.engine.errors import DiceConfigError

OUTCOMES: tuple[int, ...] = tuple(range(2, 13))

# Two-dice (fair) multiplicities for sums 2..12, total 36
OUTCOME_COUNTS: dict[int, int] = {
    2: 1,
    3: 2,
    4: 3,
    5: 4,
    6: 5,
    7: 6,
    8: 5,
    9: 4,
    10: 3,
    11: 2,
    12: 1,
}

# Index-aligned views (index = outcome - 2)
TWO_DICE_COUNTS: tuple[int, ...] = tuple(OUTCOME_COUNTS[o] for o in OUTCOMES)
TARGET_P: tuple[float, ...] = tuple(c / BAG_UNIT for c in TWO_DICE_COUNTS)


def is_outcome(value: Any) -> bool:
    """True for an int in 2..12 (bools are not dice sums)."""
    return isinstance(value, int) and not isinstance(value, bool) and value in OUTCOME_COUNTS


def ensure_outcome(value: Any) -> int:
    """Return value if it is a valid outcome, else raise DiceConfigError."""
    if is_outcome(value):
        return value
    raise DiceConfigError(f"Value {value!r} is not a valid dice outcome (2-12)")


def outcome_index(outcome: int) -> int:
    return ensure_outcome(outcome) - OUTCOMES[0]


def ensure_outcome_list(value: Any, field_name: str = "rolls") -> list[int]:
    """Validate a list of outcomes from a serialized record; returns a fresh list."""
    if not isinstance(value, list):
        raise DiceConfigError(f"{field_name} must be a list of outcomes")
    return [ensure_outcome(v) for v in value]


def roll_counts(rolls: list[int]) -> dict[int, int]:
    """How often each sum was rolled (every sum present, zero if never seen)."""
    counts = {outcome: 0 for outcome in OUTCOMES}
    for roll in rolls:
        counts[ensure_outcome(roll)] += 1
    return counts


def expected_counts(total_rolls: int) -> dict[int, float]:
    """Expected count per sum after total_rolls fair rolls."""
    if total_rolls < 0:
        raise DiceConfigError("total_rolls must be >= 0")
    return {
        outcome: total_rolls * OUTCOME_COUNTS[outcome] / BAG_UNIT
        for outcome in OUTCOMES
    }
