from __future__ import annotations

import asyncio
import logging
import os
from typing import TYPE_CHECKING

from ..models.enums import GameMode
from ..rulesets.chess import rules
from ..rulesets.chess.actions import MovePayload
from . import store as registry

if TYPE_CHECKING:  # typing-only imports
    import random

    from ..models.session import GameSession
    from .core import ChessEngine
    from .store import SessionStore

BOT_DELAY_SECONDS = float(os.getenv("BOT_DELAY_SECONDS", "1.0"))

logger = logging.getLogger(__name__)


def bot_to_move(sess: GameSession) -> bool:
    return (
        sess.mode == GameMode.BOT
        and sess.bot_color == sess.turn
        and not sess.is_over
    )


def bot_autoplay(
    engine: ChessEngine, sess: GameSession, *, rng: random.Random | None = None
) -> tuple[int, GameSession]:
    """Apply the bot's move if it is the bot's turn.

    Contract:
    - Inputs: engine (has process_move(sess, payload)); session; optional rng with choice()
    - Behavior: picks a capture-biased random move and sends it through the same validation as a human move.
    - Output: (number of moves applied, 0 or 1; updated session).
    """
    if not bot_to_move(sess):
        return 0, sess
    picked = rules.make_bot_move(sess.board, sess.turn, rng)
    if picked is None:
        return 0, sess
    _, after = engine.process_move(sess, MovePayload(src=picked.src, dst=picked.dst))
    if after is None:
        return 0, sess
    return 1, after


class BotTurnScheduler:
    """Runs the bot's reply after a cosmetic delay, one pending turn per session.

    The session is re-read from the store when the delay expires; the turn is
    dropped if the game moved on (ply changed), ended, or was removed. Pending
    turns can be cancelled when the game ends or the view goes away.
    """

    def __init__(
        self,
        engine: ChessEngine,
        store: SessionStore | None = None,
        *,
        delay: float | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.engine = engine
        self.store = registry.store if store is None else store
        self.delay = BOT_DELAY_SECONDS if delay is None else delay
        self.rng = rng
        self._tasks: dict[str, asyncio.Task] = {}

    def schedule(self, sid: str, expected_ply: int) -> asyncio.Task:
        """Schedule the bot turn; replaces any turn already pending for `sid`."""
        self.cancel(sid)
        task = asyncio.get_running_loop().create_task(self._run(sid, expected_ply))
        self._tasks[sid] = task
        task.add_done_callback(lambda t, sid=sid: self._forget(sid, t))
        return task

    def pending(self, sid: str) -> bool:
        t = self._tasks.get(sid)
        return t is not None and not t.done()

    def cancel(self, sid: str) -> bool:
        t = self._tasks.pop(sid, None)
        if t is None or t.done():
            return False
        t.cancel()
        logger.info("bot turn cancelled for session %s", sid)
        return True

    def cancel_all(self) -> int:
        return sum(self.cancel(sid) for sid in list(self._tasks))

    def _forget(self, sid: str, task: asyncio.Task) -> None:
        if self._tasks.get(sid) is task:
            del self._tasks[sid]
        if not task.cancelled() and task.exception() is not None:
            logger.error("bot turn failed for session %s", sid, exc_info=task.exception())

    async def _run(self, sid: str, expected_ply: int) -> GameSession | None:
        await asyncio.sleep(self.delay)
        sess = await self.store.get(sid)
        if sess is None:
            logger.info("bot turn skipped: session %s not found", sid)
            return None
        if sess.ply != expected_ply or not bot_to_move(sess):
            logger.info("bot turn skipped: session %s is stale (ply %d, expected %d)", sid, sess.ply, expected_ply)
            return None
        applied, after = bot_autoplay(self.engine, sess, rng=self.rng)
        if not applied:
            return None
        await self.store.set(after)
        return after
