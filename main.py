"""
Main entry point for the Catan dice engine.
Rolls each dice mode side by side and prints observed vs expected counts.
Usage: python main.py [rolls] [seed]
"""

import sys

from backend.engine.errors import UndoUnavailableError
from backend.engine.manager import DiceManager, new_dice_state
from backend.engine.outcomes import OUTCOMES, expected_counts, roll_counts
from backend.engine.rng import CryptoRNG, SeededRNG
from backend.engine.state import DICE_MODES


def print_histogram(title: str, rolls: list[int]) -> None:
    observed = roll_counts(rolls)
    expected = expected_counts(len(rolls))
    print(f"\n[{title}] {len(rolls)} rolls")
    print(f"  {'sum':>3} {'seen':>5} {'expected':>9}  deviation")
    for outcome in OUTCOMES:
        diff = observed[outcome] - expected[outcome]
        print(f"  {outcome:>3} {observed[outcome]:>5} {expected[outcome]:>9.1f}  {diff:+.1f}")
    worst = max(abs(observed[o] - expected[o]) for o in OUTCOMES)
    print(f"  largest deviation: {worst:.1f}")


def main():
    n_rolls = int(sys.argv[1]) if len(sys.argv) > 1 else 72
    seed = int(sys.argv[2]) if len(sys.argv) > 2 else None

    print("Catan Dice Engine - real-life vs adaptive vs shuffle-bag")
    print("=" * 60)

    for mode in DICE_MODES:
        rng = SeededRNG(seed) if seed is not None else CryptoRNG()
        manager = DiceManager(new_dice_state(mode), rng)
        for _ in range(n_rolls):
            manager.roll()
        print_histogram(mode, manager.rolls)

        # Undo round trip: the restored state rolls on from the same history
        before = manager.rolls
        manager.roll()
        manager.undo()
        restored = DiceManager(manager.state.to_dict(), rng)
        ok = restored.rolls == before
        print(f"  roll + undo + restore keeps history: {'✓' if ok else '✗'}")

    print("\n[UNDO ON EMPTY HISTORY]")
    try:
        DiceManager(new_dice_state("adaptive")).undo()
    except UndoUnavailableError as e:
        print(f"✓ Refused: {e}")


if __name__ == "__main__":
    main()
