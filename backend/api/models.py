"""
SQLAlchemy models for tracked games.
"""

import json
from datetime import datetime
from sqlalchemy import Column, String, DateTime, Text

from .database import Base

from backend.engine.state import MODE_SHUFFLE_BAG, DiceState


class Game(Base):
    __tablename__ = "games"

    id = Column(String(36), primary_key=True)  # uuid
    name = Column(String(128), nullable=False)  # user-defined game name
    mode = Column(String(32), nullable=False, default="real-life")  # real-life | adaptive | shuffle-bag
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
    dice_state = Column(Text, nullable=False)  # JSON string of the serialized dice state

    def set_dice_state(self, state: DiceState) -> None:
        """Store a dice state. Shuffle-bag rows skip rolls; they are bag[:bagPtr]."""
        data = state.to_dict()
        if state.mode == MODE_SHUFFLE_BAG:
            data.pop("rolls", None)
        self.dice_state = json.dumps(data)
        self.mode = state.mode
