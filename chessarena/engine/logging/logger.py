from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from ...models.session import GameSession
    from ...rulesets.chess.actions import MovePayload

from ...events import MoveEvent, event_bus
from ...models.enums import MoveLogResult
from ...rulesets.chess.rules import opposite


def log_event(
    sess: GameSession,
    payload: MovePayload,
    result: MoveLogResult,
    message: str | None = None,
    notation: str | None = None,
) -> None:
    """Emit a MoveEvent for the move just attempted on `sess`.

    For applied moves pass the session *after* the move; ply and side then
    describe the move itself, not the next one.
    """
    applied = result == MoveLogResult.APPLIED
    ply = sess.ply - 1 if applied else sess.ply
    side = opposite(sess.turn) if applied else sess.turn
    event_bus.emit(
        MoveEvent(
            session_id=sess.id,
            ply=ply,
            side=side,
            src=tuple(payload.src),
            dst=tuple(payload.dst),
            result=result,
            notation=notation,
            message=message,
        )
    )


def log_applied(sess: GameSession, payload: MovePayload, notation: str) -> None:
    log_event(sess, payload, MoveLogResult.APPLIED, notation=notation)


def log_illegal(sess: GameSession, payload: MovePayload, explanation: str) -> None:
    log_event(sess, payload, MoveLogResult.ILLEGAL, explanation)


def log_desync(sess: GameSession, payload: MovePayload, explanation: str) -> None:
    log_event(sess, payload, MoveLogResult.DESYNC, explanation)


def log_error(sess: GameSession, payload: MovePayload, error: Exception) -> None:
    log_event(sess, payload, MoveLogResult.ERROR, str(error))
