"""
Migrates saved tracker files to the current dice state shape.

Older saves kept the roll list at the top level of the tracker state
(State.rolls) and had no diceState at all; older shuffle-bag records stored
the whole bag under "rolls" next to bagPtr. The engine only accepts the
current shape, so everything is rewritten here before parsing.
"""

from typing import Any

from backend.engine.errors import DiceConfigError
from backend.engine.state import MODE_REAL_LIFE, MODE_SHUFFLE_BAG


def _migrate_dice_state(dice_state: dict[str, Any]) -> dict[str, Any]:
    dice_state = dict(dice_state)
    # Legacy shuffle-bag: rolls held the full bag, bagPtr the number drawn
    if dice_state.get("mode") == MODE_SHUFFLE_BAG and "bag" not in dice_state and "rolls" in dice_state:
        dice_state["bag"] = dice_state.pop("rolls")
    return dice_state


def migrate_state(raw: Any) -> dict[str, Any]:
    """
    Return the current-shape dice state dict from a saved file.

    Accepts a full tracker state ({"diceState": ..., "rolls": ..., ...}) or a
    bare dice state ({"mode": ...}). Other tracker fields are ignored.
    """
    if not isinstance(raw, dict):
        raise DiceConfigError("Saved state must be a JSON object")

    # Bare dice record
    if "mode" in raw and "diceState" not in raw:
        return _migrate_dice_state(raw)

    dice_state = raw.get("diceState")
    if dice_state is None:
        # Save from before dice modes existed
        dice_state = {"mode": MODE_REAL_LIFE}
    elif not isinstance(dice_state, dict):
        raise DiceConfigError("diceState must be an object")

    # Rolls in the old location move under diceState
    if raw.get("rolls") is not None and dice_state.get("rolls") is None:
        dice_state = {**dice_state, "rolls": raw["rolls"]}

    return _migrate_dice_state(dice_state)
