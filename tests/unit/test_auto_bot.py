import asyncio
import logging
import random

import pytest

from chessarena.engine.auto_bot import BotTurnScheduler, bot_autoplay, bot_to_move
from chessarena.engine import store as registry
from chessarena.engine.store import MemorySessionStore
from chessarena.games.chess.notation import board_from_fen
from chessarena.models.enums import GameMode
from chessarena.rulesets.chess.actions import MovePayload
from chessarena.rulesets.chess.factory import quickstart
from tests.positions import OPEN_CENTER


def _after_human_move(engine):
    _, s = engine.process_move(quickstart(), MovePayload(src="e2", dst="e4"))
    return s


def test_bot_autoplay_moves_only_on_its_turn(engine, rng):
    s = quickstart()
    assert not bot_to_move(s)
    assert bot_autoplay(engine, s, rng=rng) == (0, s)

    s = _after_human_move(engine)
    applied, after = bot_autoplay(engine, s, rng=rng)
    assert applied == 1
    assert after.turn == "white" and after.ply == 2
    assert after.moves[-1][0] in "♟♜♞♝♛♚"


def test_bot_autoplay_prefers_captures(engine, rng):
    s = quickstart(board_from_fen(OPEN_CENTER), bot_color="white")
    applied, after = bot_autoplay(engine, s, rng=rng)
    assert applied == 1 and after.moves == ["♙e4xd5"]


def test_no_bot_in_friend_games(engine, rng):
    s = quickstart(mode=GameMode.FRIEND, turn="black")
    assert bot_autoplay(engine, s, rng=rng)[0] == 0


@pytest.mark.timeout(10)
def test_scheduler_applies_bot_move_after_delay(engine):
    async def main():
        store = MemorySessionStore()
        s = _after_human_move(engine)
        await store.set(s)
        sched = BotTurnScheduler(engine, store, delay=0.01, rng=random.Random(3))
        task = sched.schedule(s.id, s.ply)
        assert sched.pending(s.id)
        result = await task
        assert not sched.pending(s.id)
        return s, result, await store.get(s.id)

    before, result, stored = asyncio.run(main())
    assert result is not None and stored is result
    assert stored.ply == before.ply + 1 and stored.turn == "white"


@pytest.mark.timeout(10)
def test_scheduler_skips_stale_or_missing_sessions(engine):
    async def main():
        store = MemorySessionStore()
        s = _after_human_move(engine)
        await store.set(s)
        sched = BotTurnScheduler(engine, store, delay=0)
        stale = await sched.schedule(s.id, s.ply - 1)
        missing = await sched.schedule("nope", 0)
        return s, stale, missing, await store.get(s.id)

    before, stale, missing, stored = asyncio.run(main())
    assert stale is None and missing is None
    assert stored is before


@pytest.mark.timeout(10)
def test_scheduler_cancel(engine):
    async def main():
        store = MemorySessionStore()
        s = _after_human_move(engine)
        await store.set(s)
        sched = BotTurnScheduler(engine, store, delay=30)
        task = sched.schedule(s.id, s.ply)
        await asyncio.sleep(0)
        assert sched.cancel(s.id)
        with pytest.raises(asyncio.CancelledError):
            await task
        assert not sched.cancel(s.id)
        return s, await store.get(s.id)

    before, stored = asyncio.run(main())
    assert stored is before


@pytest.mark.timeout(10)
def test_rescheduling_replaces_pending_turn(engine):
    async def main():
        store = MemorySessionStore()
        s = _after_human_move(engine)
        await store.set(s)
        sched = BotTurnScheduler(engine, store, delay=30)
        first = sched.schedule(s.id, s.ply)
        sched.schedule(s.id, s.ply)
        await asyncio.sleep(0)
        assert first.cancelled()
        assert sched.cancel_all() == 1
        assert not sched.pending(s.id)

    asyncio.run(main())


class BrokenStore(MemorySessionStore):
    async def get(self, sid):
        raise ConnectionError("store unavailable")


@pytest.mark.timeout(10)
def test_scheduler_defaults_to_module_registry(engine, monkeypatch):
    shared = MemorySessionStore()
    monkeypatch.setattr(registry, "store", shared)

    async def main():
        s = _after_human_move(engine)
        await shared.set(s)
        sched = BotTurnScheduler(engine, delay=0, rng=random.Random(3))
        assert sched.store is shared
        return s, await sched.schedule(s.id, s.ply), await shared.get(s.id)

    before, result, stored = asyncio.run(main())
    assert stored is result and stored.ply == before.ply + 1


@pytest.mark.timeout(10)
def test_failed_bot_turn_is_logged(engine, caplog):
    async def main():
        sched = BotTurnScheduler(engine, BrokenStore(), delay=0)
        task = sched.schedule("g1", 1)
        with pytest.raises(ConnectionError):
            await task
        await asyncio.sleep(0)  # let the done callback run
        assert not sched.pending("g1")

    with caplog.at_level(logging.ERROR, logger="chessarena.engine.auto_bot"):
        asyncio.run(main())
    failed = [r for r in caplog.records if "bot turn failed" in r.getMessage()]
    assert len(failed) == 1
    assert isinstance(failed[0].exc_info[1], ConnectionError)
