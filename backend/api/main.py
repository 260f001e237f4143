"""
FastAPI backend for the Catan dice tracker.
Provides REST endpoints to create games and roll, undo, inspect, export and
import their dice state.
"""

import json
import threading
import uuid
from contextlib import contextmanager
from datetime import datetime
from typing import Any

from fastapi import Depends, FastAPI, HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from pydantic import BaseModel
from sqlalchemy.orm import Session

from .database import get_db, init_db
from .migration import migrate_state
from .models import Game as GameModel

from backend.config import CORS_ORIGINS, DEFAULT_BAG_SIZE, DEFAULT_DICE_MODE, MAX_BAG_SIZE
from backend.engine import DEFAULT_BETA, DEFAULT_EPSILON, DEFAULT_ETA
from backend.engine.dice import pair
from backend.engine.errors import DiceConfigError, RandomSourceUnavailableError, UndoUnavailableError
from backend.engine.manager import DiceManager, new_dice_state
from backend.engine.outcomes import expected_counts, roll_counts
from backend.engine.state import DICE_MODES, MODE_SHUFFLE_BAG, DiceState, ShuffleBagDiceState, dice_state_from_dict

app = FastAPI(
    title="Catan Dice Tracker API",
    description="Backend API for the Catan dice tracker - fair, adaptive and shuffle-bag dice",
    version="1.0.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["*"],
)


@app.middleware("http")
async def log_requests(request, call_next):
    """Log method and path so 500s can be traced to the failing endpoint."""
    method = getattr(request, "method", "?")
    url = getattr(request, "url", None)
    path = url.path if url else "?"
    try:
        response = await call_next(request)
        if response.status_code >= 500:
            print(f"[{response.status_code}] {method} {path}", flush=True)
        return response
    except Exception:
        print(f"[500] {method} {path} (exception)", flush=True)
        raise


@app.exception_handler(Exception)
async def unhandled_exception_handler(request, exc):
    """Return 500 with CORS headers and full traceback so the frontend can read the error."""
    import traceback
    tb = traceback.format_exc()
    traceback.print_exc()
    origin = request.headers.get("origin")
    allow_origin = origin if origin in CORS_ORIGINS else CORS_ORIGINS[0]
    return JSONResponse(
        status_code=500,
        content={"detail": str(exc), "traceback": tb},
        headers={
            "Access-Control-Allow-Origin": allow_origin,
            "Access-Control-Allow-Credentials": "true",
        },
    )


# ===== Pydantic Models =====

class CreateGameRequest(BaseModel):
    name: str
    """One of GET /modes. Omitted = backend.config.DEFAULT_DICE_MODE."""
    mode: str | None = None
    beta: float | None = None
    eta: float | None = None
    epsilon: float | None = None
    bag_size: int | None = None


class AddRollRequest(BaseModel):
    outcome: int


class ImportGameRequest(BaseModel):
    name: str
    """Contents of an exported file (full tracker state or a bare dice state)."""
    data: dict[str, Any]


# ===== Helper Functions =====

_game_locks: dict[str, threading.Lock] = {}
_game_locks_guard = threading.Lock()


@contextmanager
def game_lock(game_id: str):
    """Serialize load, mutate and save of one game across request threads."""
    with _game_locks_guard:
        lock = _game_locks.setdefault(game_id, threading.Lock())
    with lock:
        yield


def dice_error_to_http(exc: Exception) -> HTTPException:
    """Map engine errors to status codes; undo-unavailable is a conflict, not a bad request."""
    if isinstance(exc, UndoUnavailableError):
        return HTTPException(status_code=409, detail=str(exc))
    if isinstance(exc, RandomSourceUnavailableError):
        return HTTPException(status_code=503, detail=str(exc))
    return HTTPException(status_code=400, detail=str(exc))


def get_game_row(game_id: str, db: Session, for_update: bool = False) -> GameModel:
    query = db.query(GameModel).filter(GameModel.id == game_id)
    if for_update:
        # Row lock on Postgres; SQLite ignores it and relies on game_lock
        query = query.with_for_update()
    row = query.first()
    if not row:
        raise HTTPException(status_code=404, detail=f"Game {game_id} not found")
    return row


def load_dice_state(row: GameModel) -> DiceState:
    """Parse the stored dice state; corrupt rows are treated as not found."""
    try:
        raw = json.loads(row.dice_state) if isinstance(row.dice_state, str) else row.dice_state
        return dice_state_from_dict(raw)
    except (TypeError, json.JSONDecodeError, DiceConfigError):
        raise HTTPException(status_code=404, detail=f"Game {row.id} not found")


def load_manager(row: GameModel) -> DiceManager:
    state = load_dice_state(row)
    try:
        check_bag_size(state)
        return DiceManager(state)
    except DiceConfigError:
        raise HTTPException(status_code=404, detail=f"Game {row.id} not found")
    except RandomSourceUnavailableError as e:
        raise dice_error_to_http(e)


def save_dice_state(row: GameModel, state: DiceState, db: Session) -> None:
    row.set_dice_state(state)
    db.commit()


def check_bag_size(state: DiceState) -> None:
    if isinstance(state, ShuffleBagDiceState) and state.bag_size > MAX_BAG_SIZE:
        raise DiceConfigError(f"bagSize must be at most {MAX_BAG_SIZE}, got {state.bag_size}")


def state_for_response(state: DiceState) -> dict[str, Any]:
    """Dice state dict plus the roll count for the UI."""
    out = state.to_dict()
    out["rolls"] = list(state.rolls)
    out["roll_count"] = len(state.rolls)
    return out


def game_summary(row: GameModel) -> dict[str, Any]:
    return {
        "id": row.id,
        "name": row.name,
        "mode": row.mode,
        "created_at": row.created_at.isoformat() if row.created_at else None,
        "updated_at": row.updated_at.isoformat() if row.updated_at else None,
    }


def create_game_row(name: str, state: DiceState, db: Session) -> GameModel:
    row = GameModel(id=str(uuid.uuid4()), name=name)
    row.set_dice_state(state)
    db.add(row)
    db.commit()
    return row


def export_filename(now: datetime | None = None) -> str:
    now = now or datetime.now()
    return f"catan_data_{now.day}.{now.month}.{now.year}.json"


@app.on_event("startup")
def on_startup():
    init_db()


# ===== API Endpoints =====

@app.get("/")
def root():
    return {"message": "Catan Dice Tracker API", "version": "1.0.0"}


@app.get("/modes")
def get_modes():
    """Dice modes and their default parameters."""
    return {
        "default_mode": DEFAULT_DICE_MODE,
        "modes": list(DICE_MODES),
        "defaults": {
            "adaptive": {"beta": DEFAULT_BETA, "eta": DEFAULT_ETA, "epsilon": DEFAULT_EPSILON},
            "shuffle-bag": {"bag_size": DEFAULT_BAG_SIZE, "max_bag_size": MAX_BAG_SIZE},
        },
    }


# ----- Games (create, list, import, delete) -----

@app.post("/games/create")
def create_game(request: CreateGameRequest, db: Session = Depends(get_db)):
    """Create a game with an empty roll history in the chosen dice mode."""
    mode = request.mode if request.mode is not None else DEFAULT_DICE_MODE
    bag_size = request.bag_size
    if bag_size is None and mode == MODE_SHUFFLE_BAG:
        bag_size = DEFAULT_BAG_SIZE
    try:
        state = new_dice_state(
            mode,
            beta=request.beta,
            eta=request.eta,
            epsilon=request.epsilon,
            bag_size=bag_size,
        )
        check_bag_size(state)
    except (DiceConfigError, RandomSourceUnavailableError) as e:
        raise dice_error_to_http(e)
    row = create_game_row(request.name, state, db)
    return {"game_id": row.id, "name": row.name, "state": state_for_response(state)}


@app.get("/games")
def list_games(db: Session = Depends(get_db)):
    rows = db.query(GameModel).order_by(GameModel.created_at.desc()).all()
    return {"games": [game_summary(r) for r in rows]}


@app.post("/games/import")
def import_game(request: ImportGameRequest, db: Session = Depends(get_db)):
    """Create a game from an exported file, migrating older save shapes first."""
    try:
        state = dice_state_from_dict(migrate_state(request.data))
        check_bag_size(state)
        # Restoring validates bag composition and adaptive parameters
        DiceManager(state)
    except (DiceConfigError, RandomSourceUnavailableError) as e:
        raise dice_error_to_http(e)
    row = create_game_row(request.name, state, db)
    return {"game_id": row.id, "name": row.name, "state": state_for_response(state)}


@app.get("/games/{game_id}")
def get_game_state(game_id: str, db: Session = Depends(get_db)):
    row = get_game_row(game_id, db)
    state = load_dice_state(row)
    return {**game_summary(row), "state": state_for_response(state)}


@app.delete("/games/{game_id}")
def delete_game(game_id: str, db: Session = Depends(get_db)):
    with game_lock(game_id):
        row = get_game_row(game_id, db, for_update=True)
        db.delete(row)
        db.commit()
    with _game_locks_guard:
        _game_locks.pop(game_id, None)
    return {"message": f"Game {game_id} deleted"}


# ----- Dice -----

@app.post("/games/{game_id}/roll")
def do_roll(game_id: str, db: Session = Depends(get_db)):
    """Roll once in the game's mode. dice is a cosmetic face pair matching the sum."""
    with game_lock(game_id):
        row = get_game_row(game_id, db, for_update=True)
        manager = load_manager(row)
        try:
            state, outcome = manager.roll()
            d1, d2 = pair(outcome, manager.dice.rng)
        except (DiceConfigError, RandomSourceUnavailableError) as e:
            raise dice_error_to_http(e)
        save_dice_state(row, state, db)
    return {"outcome": outcome, "dice": [d1, d2], "state": state_for_response(state)}


@app.post("/games/{game_id}/undo")
def do_undo(game_id: str, db: Session = Depends(get_db)):
    """Undo the last roll. 409 when there is nothing to undo."""
    with game_lock(game_id):
        row = get_game_row(game_id, db, for_update=True)
        manager = load_manager(row)
        try:
            state = manager.undo()
        except (UndoUnavailableError, DiceConfigError) as e:
            raise dice_error_to_http(e)
        save_dice_state(row, state, db)
    return {"state": state_for_response(state)}


@app.post("/games/{game_id}/add-roll")
def do_add_roll(game_id: str, request: AddRollRequest, db: Session = Depends(get_db)):
    """Record a sum rolled with physical dice (real-life mode only)."""
    with game_lock(game_id):
        row = get_game_row(game_id, db, for_update=True)
        manager = load_manager(row)
        try:
            state = manager.add_roll(request.outcome)
        except DiceConfigError as e:
            raise dice_error_to_http(e)
        save_dice_state(row, state, db)
    return {"state": state_for_response(state)}


@app.get("/games/{game_id}/stats")
def get_stats(game_id: str, db: Session = Depends(get_db)):
    """Observed vs expected count per sum."""
    row = get_game_row(game_id, db)
    rolls = load_dice_state(row).rolls
    observed = roll_counts(rolls)
    expected = expected_counts(len(rolls))
    return {
        "total_rolls": len(rolls),
        "counts": {str(k): v for k, v in observed.items()},
        "expected": {str(k): v for k, v in expected.items()},
    }


@app.get("/games/{game_id}/export")
def export_game(game_id: str, db: Session = Depends(get_db)):
    """Download the dice state as a JSON file that POST /games/import accepts."""
    row = get_game_row(game_id, db)
    state = load_dice_state(row)
    return JSONResponse(
        content={"diceState": state.to_dict()},
        headers={"Content-Disposition": f'attachment; filename="{export_filename()}"'},
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=8000)
