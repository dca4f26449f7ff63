from __future__ import annotations
from typing import Dict, Optional
from chessarena.models.enums import GameMode
from chessarena.models.session import GameSession
from .models import Board, Color
from .rules import game_status, initial_board, opposite


def quickstart(
    board: Optional[Board] = None,
    *,
    mode: GameMode = GameMode.BOT,
    bot_color: Color = "black",
    turn: Color = "white",
    players: Optional[Dict[Color, str]] = None,
) -> GameSession:
    """Create a game session in the standard layout; pass a custom board to override."""
    if board is None:
        board = initial_board()
    status = game_status(board, turn)
    return GameSession(
        mode=mode,
        bot_color=bot_color if mode == GameMode.BOT else None,
        board=board,
        status=status,
        winner=opposite(turn) if status == "checkmate" else None,
        turn=turn,
        players=players or {},
    )
