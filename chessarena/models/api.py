from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from ..rulesets.chess.models import Color, Position
from .enums import MoveLogResult


class MoveLogEntry(BaseModel):
    ts: datetime = Field(default_factory=datetime.now)
    session_id: str
    ply: int
    side: Color
    src: Position | None = None
    dst: Position | None = None
    notation: str | None = None
    result: MoveLogResult = MoveLogResult.APPLIED
    message: str | None = None
