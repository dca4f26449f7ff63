from __future__ import annotations

import uuid
from datetime import datetime

from pydantic import BaseModel, Field

from ..rulesets.chess.models import Board, Color, GameStatus
from ..rulesets.chess.rules import initial_board
from .enums import GameMode


class GameSession(BaseModel):
    """Authoritative state of one game; the server owns the canonical board."""

    id: str = Field(default_factory=lambda: uuid.uuid4().hex)
    mode: GameMode = GameMode.BOT
    players: dict[Color, str] = Field(default_factory=dict)  # color -> user id
    bot_color: Color | None = None
    board: Board = Field(default_factory=initial_board)
    turn: Color = "white"
    status: GameStatus = "ongoing"
    winner: Color | None = None
    moves: list[str] = Field(default_factory=list)  # notation, oldest first
    created_at: str = Field(default_factory=lambda: datetime.now().isoformat())

    @property
    def ply(self) -> int:
        return len(self.moves)

    @property
    def is_over(self) -> bool:
        return self.status != "ongoing"
