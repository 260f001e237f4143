"""
Serializable dice state records.
One dataclass per dice mode; to_dict/from_dict use the camelCase JSON shape
the tracker stores and exports. Parsing is strict: anything structurally
wrong raises DiceConfigError instead of being coerced.
"""

import math
from dataclasses import dataclass, field
from typing import Any, ClassVar

from backend.engine import BAG_UNIT
from backend.engine.errors import DiceConfigError
from backend.engine.outcomes import ensure_outcome_list

MODE_REAL_LIFE = "real-life"
MODE_ADAPTIVE = "adaptive"
MODE_SHUFFLE_BAG = "shuffle-bag"
DICE_MODES = (MODE_REAL_LIFE, MODE_ADAPTIVE, MODE_SHUFFLE_BAG)


def ensure_real(value: Any, name: str) -> float:
    """Finite int/float (bools rejected), returned as float."""
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise DiceConfigError(f"{name} must be a number, got {value!r}")
    try:
        number = float(value)
    except OverflowError:
        raise DiceConfigError(f"{name} is too large to be a real number") from None
    if not math.isfinite(number):
        raise DiceConfigError(f"{name} must be finite, got {value!r}")
    return number


def ensure_int(value: Any, name: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise DiceConfigError(f"{name} must be an integer, got {value!r}")
    return value


def validate_adaptive_params(beta: Any, eta: Any, epsilon: Any) -> tuple[float, float, float]:
    """Check beta in (0,1], eta >= 0, epsilon in [0,1]. Never clamps."""
    beta = ensure_real(beta, "beta")
    eta = ensure_real(eta, "eta")
    epsilon = ensure_real(epsilon, "epsilon")
    if not (0 < beta <= 1):
        raise DiceConfigError(f"beta must be in (0,1], got {beta}")
    if not (eta >= 0):
        raise DiceConfigError(f"eta must be >= 0, got {eta}")
    if not (0 <= epsilon <= 1):
        raise DiceConfigError(f"epsilon must be in [0,1], got {epsilon}")
    return beta, eta, epsilon


def validate_bag_size(value: Any) -> int:
    bag_size = ensure_int(value, "bagSize")
    if bag_size <= 0:
        raise DiceConfigError(f"bagSize must be a positive integer, got {bag_size}")
    if bag_size % BAG_UNIT != 0:
        raise DiceConfigError(
            f"bagSize must be a multiple of {BAG_UNIT} to preserve exact proportions, got {bag_size}")
    return bag_size


@dataclass
class RealLifeDiceState:
    """Plain two-d6 rolls (or sums typed in from physical dice)."""
    mode: ClassVar[str] = MODE_REAL_LIFE
    rolls: list[int] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"mode": self.mode, "rolls": list(self.rolls)}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "RealLifeDiceState":
        return cls(rolls=_rolls_from(data))


@dataclass
class AdaptiveDiceState:
    """
    Adaptive dice: history plus tunables.
    A parameter left as None means "use the engine default"; it is never
    filled in from derived state.
    """
    mode: ClassVar[str] = MODE_ADAPTIVE
    rolls: list[int] = field(default_factory=list)
    beta: float | None = None
    eta: float | None = None
    epsilon: float | None = None

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {"mode": self.mode, "rolls": list(self.rolls)}
        for name in ("beta", "eta", "epsilon"):
            value = getattr(self, name)
            if value is not None:
                out[name] = value
        return out

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AdaptiveDiceState":
        params = {}
        for name in ("beta", "eta", "epsilon"):
            value = data.get(name)
            params[name] = ensure_real(value, name) if value is not None else None
        return cls(rolls=_rolls_from(data), **params)


@dataclass
class ShuffleBagDiceState:
    """
    Shuffle-bag dice: every outcome ever placed in a bag, in draw order, plus
    how many have been drawn. The roll history is bag[:bag_ptr].
    """
    mode: ClassVar[str] = MODE_SHUFFLE_BAG
    bag_size: int = BAG_UNIT
    bag: list[int] = field(default_factory=list)
    bag_ptr: int = 0

    @property
    def rolls(self) -> list[int]:
        return self.bag[:self.bag_ptr]

    def to_dict(self) -> dict[str, Any]:
        return {
            "mode": self.mode,
            "bagSize": self.bag_size,
            "bag": list(self.bag),
            "bagPtr": self.bag_ptr,
            "rolls": self.rolls,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ShuffleBagDiceState":
        bag_size = validate_bag_size(data.get("bagSize", BAG_UNIT))
        bag = ensure_outcome_list(data.get("bag", []), "bag")
        bag_ptr = ensure_int(data.get("bagPtr", 0), "bagPtr")
        if not (0 <= bag_ptr <= len(bag)):
            raise DiceConfigError(f"bagPtr must be in [0, {len(bag)}], got {bag_ptr}")
        if data.get("rolls") is not None and _rolls_from(data) != bag[:bag_ptr]:
            raise DiceConfigError("rolls must equal bag[:bagPtr] for shuffle-bag dice")
        return cls(bag_size=bag_size, bag=bag, bag_ptr=bag_ptr)


DiceState = RealLifeDiceState | AdaptiveDiceState | ShuffleBagDiceState


def _rolls_from(data: dict[str, Any]) -> list[int]:
    rolls = data.get("rolls")
    if rolls is None:
        return []
    return ensure_outcome_list(rolls, "rolls")


def dice_state_from_dict(data: Any) -> DiceState:
    """Parse a serialized dice record. Unknown or missing mode is an error."""
    if not isinstance(data, dict):
        raise DiceConfigError("Dice state must be an object")
    mode = data.get("mode")
    if mode is None:
        raise DiceConfigError("Dice state is missing its mode")
    if mode == MODE_REAL_LIFE:
        return RealLifeDiceState.from_dict(data)
    if mode == MODE_ADAPTIVE:
        return AdaptiveDiceState.from_dict(data)
    if mode == MODE_SHUFFLE_BAG:
        return ShuffleBagDiceState.from_dict(data)
    raise DiceConfigError(f"Unknown dice mode: {mode!r}")
