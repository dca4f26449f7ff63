from __future__ import annotations

from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from ..models.session import GameSession
    from ..rulesets.chess.models import Position

from ..core.primitives import Explanation
from ..games.chess.notation import move_notation, to_fen
from ..rulesets.chess import actions as acts
from ..rulesets.chess import rules
from ..rulesets.chess.actions import MovePayload, RemoteMovePayload
from ..rulesets.chess.models import Move, in_bounds
from .logging.logger import log_applied, log_desync, log_error, log_illegal


class DesyncError(ValueError):
    """A peer's move or claimed board does not match the authoritative session."""


class ChessEngine:
    """Validates moves against the session's canonical board and applies them.

    Every move, local, remote or bot, goes through the same rule predicate.
    Sessions are never mutated; `apply` returns an updated copy.
    """

    def evaluate(self, sess: GameSession, payload: MovePayload) -> Explanation:
        if sess.is_over:
            return Explanation(
                ok=False,
                steps=[{"check": "game_ongoing", "ok": False}],
                outcome={"reason": "game over"},
            )
        steps: list[dict[str, Any]] = [{"check": "game_ongoing", "ok": True}]
        src = tuple(payload.src)
        piece = sess.board[src[0]][src[1]] if in_bounds(src) else None
        owner = sess.players.get(sess.turn)
        turn_ok = (piece is None or piece.color == sess.turn) and (
            payload.player_id is None or owner is None or owner == payload.player_id
        )
        steps.append({"check": "turn", "ok": turn_ok})
        if not turn_ok:
            return Explanation(ok=False, steps=steps, outcome={"reason": "not your turn"})
        ex = rules.explain_move(sess.board, src, payload.dst)
        ex.steps = steps + ex.steps
        return ex

    def _advance(self, sess: GameSession, payload: MovePayload) -> tuple[GameSession, str]:
        src, dst = tuple(payload.src), tuple(payload.dst)
        mv = Move(src=src, dst=dst, piece=sess.board[src[0]][src[1]])
        notation = move_notation(sess.board, mv)
        new = sess.model_copy(deep=True)
        new.board = rules.apply_move(sess.board, src, dst)
        new.moves.append(notation)
        new.turn = rules.opposite(sess.turn)
        new.status = rules.game_status(new.board, new.turn)
        new.winner = sess.turn if new.status == "checkmate" else None
        return new, notation

    def apply(self, sess: GameSession, payload: MovePayload) -> GameSession:
        new, notation = self._advance(sess, payload)
        log_applied(new, payload, notation)
        return new

    def process_move(self, sess: GameSession, payload: MovePayload):
        ev = self.evaluate(sess, payload)
        if not ev.ok:
            log_illegal(sess, payload, ev.outcome.get("reason", "illegal"))
            return ev, None
        try:
            new_sess = self.apply(sess, payload)
            return ev, new_sess
        except Exception as e:
            log_error(sess, payload, e)
            raise

    def apply_remote(self, sess: GameSession, payload: RemoteMovePayload) -> GameSession:
        """Re-validate a move relayed by a peer before accepting its board.

        Raises DesyncError (session untouched) when the move is illegal here or
        the peer's resulting board / next player differ from ours.
        """
        ev = self.evaluate(sess, payload)
        if not ev.ok:
            why = f"remote move rejected: {ev.outcome.get('reason')}"
            log_desync(sess, payload, why)
            raise DesyncError(why)
        new, notation = self._advance(sess, payload)
        if payload.board != new.board:
            log_desync(sess, payload, "remote board differs")
            raise DesyncError("remote board differs")
        if payload.current_player != new.turn:
            log_desync(sess, payload, "remote turn differs")
            raise DesyncError("remote turn differs")
        log_applied(new, payload, notation)
        return new

    def handle(self, sess: GameSession, raw: dict[str, Any]):
        """Dispatch a raw move dict: relayed moves carry the peer's board."""
        p = acts.parse(raw)
        if isinstance(p, RemoteMovePayload):
            after = self.apply_remote(sess, p)
            return Explanation(ok=True, steps=[{"check": "remote_board_matches", "ok": True}],
                               outcome={"notation": after.moves[-1]}), after
        return self.process_move(sess, p)

    def legal_moves(self, sess: GameSession, src: Position) -> list[Position]:
        src = tuple(src)
        if sess.is_over or not in_bounds(src):
            return []
        piece = sess.board[src[0]][src[1]]
        if piece is None or piece.color != sess.turn:
            return []
        return rules.get_possible_moves_for_piece(sess.board, src)

    def summarize(self, sess: GameSession) -> dict[str, Any]:
        king = rules.find_king(sess.board, sess.turn)
        in_check = king is not None and rules.is_king_in_check(sess.board, king, sess.turn)
        return {
            "status": sess.status,
            "winner": sess.winner,
            "turn": sess.turn,
            "in_check": in_check,
            "ply": sess.ply,
            "fen": to_fen(sess.board, sess.turn, sess.ply // 2 + 1),
        }
