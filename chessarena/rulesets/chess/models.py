from __future__ import annotations
from typing import List, Optional, Literal, Tuple
from pydantic import BaseModel

Color = Literal["white","black"]
PieceType = Literal["pawn","rook","knight","bishop","queen","king"]
GameStatus = Literal["ongoing","checkmate","stalemate"]

Position = Tuple[int, int]  # (row, col); row 0 is black's back rank


class Piece(BaseModel):
    type: PieceType
    color: Color


Board = List[List[Optional[Piece]]]


class Move(BaseModel):
    src: Position
    dst: Position
    piece: Piece


def empty_board() -> Board:
    return [[None]*8 for _ in range(8)]


def in_bounds(p: Position) -> bool: return 0 <= p[0] < 8 and 0 <= p[1] < 8
