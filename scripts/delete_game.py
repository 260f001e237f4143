#!/usr/bin/env python3
"""
Delete a stored game by id or name.
Usage: python scripts/delete_game.py <game_id_or_name>
From repo root with PYTHONPATH=. or: python -m scripts.delete_game <game_id_or_name>
"""
import sys
import os

# Allow running from repo root or backend
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from backend.api.database import SessionLocal
from backend.api.models import Game


def main() -> None:
    if len(sys.argv) < 2:
        print("Usage: python scripts/delete_game.py <game_id_or_name>", file=sys.stderr)
        sys.exit(1)
    key = sys.argv[1].strip()
    if not key:
        print("Error: provide a game id or name.", file=sys.stderr)
        sys.exit(1)

    db = SessionLocal()
    try:
        games = db.query(Game).filter((Game.id == key) | (Game.name == key)).all()
        if not games:
            print(f"No game found with id or name: {key!r}")
            return
        if len(games) > 1:
            print(f"{len(games)} games are named {key!r}; delete by id instead:", file=sys.stderr)
            for game in games:
                print(f"  {game.id}", file=sys.stderr)
            sys.exit(1)
        game = games[0]
        db.delete(game)
        db.commit()
        print(f"Deleted game {game.name!r} ({game.id}).")
    except Exception as e:
        db.rollback()
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    finally:
        db.close()


if __name__ == "__main__":
    main()
