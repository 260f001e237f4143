#!/usr/bin/env python3
"""
Interactive CLI for trying the dice engine at the table.
Run: python test/play_cli.py [mode]
"""

import json
import sys

from backend.engine.dice import pair
from backend.engine.errors import DiceError, UndoUnavailableError
from backend.engine.manager import DiceManager, new_dice_state
from backend.engine.outcomes import OUTCOMES, expected_counts, roll_counts
from backend.engine.state import DICE_MODES, MODE_REAL_LIFE


def clear_screen():
    print("\n" * 2)


def print_header(manager):
    """Print mode and roll count."""
    print("=" * 60)
    print(f"  MODE: {manager.mode.upper()} | Rolls: {len(manager.rolls)}")
    print("=" * 60)


def print_last_rolls(manager, count: int = 12):
    recent = manager.rolls[-count:]
    if recent:
        print(f"Last rolls: {' '.join(str(r) for r in recent)}")
    else:
        print("No rolls yet")


def print_stats(manager):
    rolls = manager.rolls
    observed = roll_counts(rolls)
    expected = expected_counts(len(rolls))
    print(f"\n{'Sum':<5}{'Seen':>6}{'Expected':>10}")
    for outcome in OUTCOMES:
        bar = "#" * observed[outcome]
        print(f"{outcome:<5}{observed[outcome]:>6}{expected[outcome]:>10.1f}  {bar}")


def prompt_mode():
    print("Dice modes:")
    for i, mode in enumerate(DICE_MODES, 1):
        print(f"  [{i}] {mode}")
    choice = input("Mode (Enter for real-life): ").strip()
    if not choice:
        return MODE_REAL_LIFE
    try:
        return DICE_MODES[int(choice) - 1]
    except (ValueError, IndexError):
        return choice if choice in DICE_MODES else MODE_REAL_LIFE


def prompt_add_roll(manager):
    raw = input("Sum rolled (2-12): ").strip()
    try:
        manager.add_roll(int(raw))
        print(f"✓ Recorded {raw}")
    except ValueError as e:
        print(f"Invalid roll: {e}")


def main_loop():
    """Main dice loop."""
    print("\n" + "=" * 60)
    print("  CATAN DICE")
    print("  CLI Test Interface")
    print("=" * 60)

    mode = sys.argv[1] if len(sys.argv) > 1 else prompt_mode()
    manager = DiceManager(new_dice_state(mode))

    while True:
        clear_screen()
        print_header(manager)
        print_last_rolls(manager)

        print("\n--- Actions ---")
        menu = [("r", "Roll")]
        if manager.mode == MODE_REAL_LIFE:
            menu.append(("a", "Add a physical roll"))
        menu.append(("u", "Undo last roll"))
        menu.append(("?", "Show stats"))
        menu.append(("s", "Save dice state"))
        menu.append(("q", "Quit"))
        for key, desc in menu:
            print(f"  [{key}] {desc}")

        choice = input("\nAction: ").strip().lower()

        try:
            if choice == "q":
                print("Thanks for playing!")
                break
            elif choice == "r":
                _, outcome = manager.roll()
                d1, d2 = pair(outcome, manager.dice.rng)
                print(f"\n  🎲 {d1} + {d2} = {outcome}")
            elif choice == "a" and manager.mode == MODE_REAL_LIFE:
                prompt_add_roll(manager)
            elif choice == "u":
                manager.undo()
                print("✓ Undone")
            elif choice == "?":
                print_stats(manager)
            elif choice == "s":
                filename = input("Save filename (default: dice.json): ").strip() or "dice.json"
                with open(filename, "w") as f:
                    json.dump({"diceState": manager.state.to_dict()}, f)
                print(f"Dice state saved to {filename}")
            else:
                continue
        except UndoUnavailableError as e:
            print(f"\nNothing to undo: {e}")
        except DiceError as e:
            print(f"\nError: {e}")
        input("Press Enter to continue...")


if __name__ == "__main__":
    try:
        main_loop()
    except KeyboardInterrupt:
        print("\n\nInterrupted. Goodbye!")
        sys.exit(0)
