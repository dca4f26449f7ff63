from __future__ import annotations
from typing import Any, Dict, Literal, Optional, Union
from pydantic import BaseModel, field_validator
from chessarena.core.primitives import Explanation
from chessarena.games.chess.notation import board_from_glyphs, parse_square
from .models import Board, Color, Position
from .rules import explain_move


class MovePayload(BaseModel):
    type: Literal["move"] = "move"
    src: Position
    dst: Position
    player_id: Optional[str] = None

    @field_validator("src", "dst", mode="before")
    @classmethod
    def _algebraic(cls, v: Any) -> Any:
        return parse_square(v) if isinstance(v, str) else v


class RemoteMovePayload(MovePayload):
    """A move relayed from a peer together with the board and turn it claims to produce."""
    board: Board
    current_player: Color

    @field_validator("board", mode="before")
    @classmethod
    def _glyph_grid(cls, v: Any) -> Any:
        # the web client sends rows of glyph strings
        if not isinstance(v, list) or not all(isinstance(row, list) for row in v):
            return v
        if any(isinstance(sq, str) for row in v for sq in row):
            return board_from_glyphs(v)
        return v


def parse(raw: Dict[str, Any]) -> Union[MovePayload, RemoteMovePayload]:
    if raw.get("type") != "move":
        raise ValueError("Unknown chess action")
    if "board" in raw:
        return RemoteMovePayload.model_validate(raw)
    return MovePayload.model_validate(raw)


def evaluate(board: Board, raw: Dict[str, Any]) -> Explanation:
    p = parse(raw); return explain_move(board, p.src, p.dst)

