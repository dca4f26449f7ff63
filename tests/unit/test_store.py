import asyncio

from chessarena import storage
from chessarena.engine.store import MemorySessionStore
from chessarena.models.api import MoveLogEntry
from chessarena.models.session import GameSession
from chessarena.rulesets.chess.factory import quickstart


def test_memory_store_evicts_least_recently_used():
    async def main():
        store = MemorySessionStore(max_sessions=2)
        a, b, c = quickstart(), quickstart(), quickstart()
        await store.set(a)
        await store.set(b)
        assert await store.get(a.id) is a  # a is now the most recent
        await store.set(c)
        return a, b, c, await store.all()

    a, b, c, remaining = asyncio.run(main())
    assert set(remaining) == {a.id, c.id}


def test_memory_store_without_touch_on_read():
    async def main():
        store = MemorySessionStore(max_sessions=1, evict_on_get=False)
        a, b = quickstart(), quickstart()
        await store.set(a)
        await store.get(a.id)
        await store.set(b)
        return await store.get(a.id), await store.get(b.id)

    got_a, got_b = asyncio.run(main())
    assert got_a is None and got_b is not None


def test_memory_store_delete():
    async def main():
        store = MemorySessionStore()
        s = quickstart()
        await store.set(s)
        return await store.delete(s.id), await store.delete(s.id), await store.get(s.id)

    assert asyncio.run(main()) == (True, False, None)


def test_session_json_round_trip_keeps_board():
    s = quickstart()
    back = GameSession.model_validate_json(s.model_dump_json())
    assert back == s


def test_move_log_trims_and_skips_malformed_entries():
    log = storage.MemoryMoveLog(max_len=3)
    for ply in range(4):
        log.append("g1", MoveLogEntry(session_id="g1", ply=ply, side="white").model_dump_json())
    log.append("g1", "{not json")
    entries = storage.read_entries("g1", limit=10, log=log)
    assert [e.ply for e in entries] == [2, 3]
    log.clear("g1")
    assert log.list("g1") == []
