#!/usr/bin/env python3
"""
Switch a stored game to a different dice mode, keeping its roll history.
Usage (from repo root):
  python -m backend.scripts.set_dice_mode <game_id_or_name> <mode> [bag_size]
Example: python -m backend.scripts.set_dice_mode "Friday game" adaptive
Modes: real-life, adaptive, shuffle-bag (shuffle-bag only before the first roll).
"""
import json
import sys
import os

# Run from repo root so backend is importable
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__)))))

from backend.api.database import SessionLocal, get_db_file_path
from backend.api.models import Game as GameModel
from backend.config import DEFAULT_BAG_SIZE, MAX_BAG_SIZE
from backend.engine.errors import DiceError
from backend.engine.manager import switch_mode
from backend.engine.state import MODE_SHUFFLE_BAG


def main():
    if len(sys.argv) < 3:
        print("Usage: python -m backend.scripts.set_dice_mode <game_id_or_name> <mode> [bag_size]")
        print("Example: python -m backend.scripts.set_dice_mode test_game0 adaptive")
        sys.exit(1)
    game_id_or_name = sys.argv[1]
    mode = sys.argv[2].strip()
    bag_size = None
    if len(sys.argv) > 3:
        try:
            bag_size = int(sys.argv[3])
        except ValueError:
            print(f"bag_size must be an integer, got {sys.argv[3]!r}", file=sys.stderr)
            sys.exit(1)
    if mode == MODE_SHUFFLE_BAG:
        bag_size = bag_size if bag_size is not None else DEFAULT_BAG_SIZE
        if bag_size > MAX_BAG_SIZE:
            print(f"bag_size must be at most {MAX_BAG_SIZE}, got {bag_size}", file=sys.stderr)
            sys.exit(1)

    db = SessionLocal()
    try:
        row = db.query(GameModel).filter(
            (GameModel.id == game_id_or_name) | (GameModel.name == game_id_or_name)
        ).first()
        if not row:
            print(f"No game found with id or name: {game_id_or_name}")
            sys.exit(2)
        try:
            raw = json.loads(row.dice_state) if isinstance(row.dice_state, str) else row.dice_state
            state = switch_mode(raw, mode, bag_size=bag_size)
        except (json.JSONDecodeError, TypeError, DiceError) as e:
            print(f"Error: {e}", file=sys.stderr)
            sys.exit(1)
        row.set_dice_state(state)
        db.commit()
        db_path = get_db_file_path()
        print(f"Updated game id={row.id} name={row.name} -> mode={state.mode} ({len(state.rolls)} rolls)")
        if db_path:
            print(f"DB file: {db_path}")
    finally:
        db.close()


if __name__ == "__main__":
    main()
