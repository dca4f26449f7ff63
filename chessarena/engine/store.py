from __future__ import annotations
import os
import time
import asyncio
from collections import OrderedDict
from typing import Dict, Optional, Protocol

import redis.asyncio as redis

from chessarena.models.session import GameSession

REDIS_URL = os.getenv("REDIS_URL")
MAX_SESSIONS = int(os.getenv("MAX_SESSIONS", "50"))
EVICT_ON_GET = os.getenv("EVICT_ON_GET", "true").lower() != "false"


class SessionStore(Protocol):
    async def get(self, sid: str) -> Optional[GameSession]: ...
    async def set(self, s: GameSession) -> None: ...
    async def delete(self, sid: str) -> bool: ...
    async def all(self) -> Dict[str, GameSession]: ...


class MemorySessionStore:
    """In-process registry with an asyncio.Lock for safety within a single worker.

    Holds at most `max_sessions` games; the least recently used are evicted.
    """
    def __init__(self, max_sessions: int = MAX_SESSIONS, evict_on_get: bool = EVICT_ON_GET) -> None:
        self._data: "OrderedDict[str, GameSession]" = OrderedDict()
        self._lock = asyncio.Lock()
        self.max_sessions = max_sessions
        self.evict_on_get = evict_on_get

    async def get(self, sid: str) -> Optional[GameSession]:
        async with self._lock:
            s = self._data.get(sid)
            if s is not None and self.evict_on_get:
                self._data.move_to_end(sid)  # makes policy LRU
            return s

    async def set(self, s: GameSession) -> None:
        async with self._lock:
            self._data[s.id] = s
            self._data.move_to_end(s.id)
            while len(self._data) > self.max_sessions:
                self._data.popitem(last=False)

    async def delete(self, sid: str) -> bool:
        async with self._lock:
            return self._data.pop(sid, None) is not None

    async def all(self) -> Dict[str, GameSession]:
        async with self._lock:
            return dict(self._data)


class RedisSessionStore:
    """Cross-worker registry using Redis. Set REDIS_URL to enable.

    Payloads live at <prefix><sid>; a sorted set indexes them by last touch.
    """
    def __init__(self, url: str, max_sessions: int = MAX_SESSIONS, evict_on_get: bool = EVICT_ON_GET) -> None:
        self._r = redis.from_url(url, encoding="utf-8", decode_responses=True)
        self._prefix = "chess:sessions:"
        self._index = "chess:sessions-index"
        self.max_sessions = max_sessions
        self.evict_on_get = evict_on_get

    def _key(self, sid: str) -> str:
        return f"{self._prefix}{sid}"

    async def _touch(self, sid: str) -> None:
        await self._r.zadd(self._index, {sid: time.time()})

    async def _enforce_cap(self) -> None:
        count = await self._r.zcard(self._index)
        if count <= self.max_sessions:
            return
        # ZPOPMIN returns [(sid, score), ...] oldest first
        evicted = await self._r.zpopmin(self._index, count - self.max_sessions)
        if evicted:
            await self._r.delete(*[self._key(sid) for sid, _ in evicted])

    async def get(self, sid: str) -> Optional[GameSession]:
        data = await self._r.get(self._key(sid))
        if data is None:
            await self._r.zrem(self._index, sid)  # stale index entry
            return None
        if self.evict_on_get:
            await self._touch(sid)
        return GameSession.model_validate_json(data)

    async def set(self, s: GameSession) -> None:
        await self._r.set(self._key(s.id), s.model_dump_json())
        await self._touch(s.id)
        await self._enforce_cap()

    async def delete(self, sid: str) -> bool:
        removed = await self._r.delete(self._key(sid))
        await self._r.zrem(self._index, sid)
        return bool(removed)

    async def all(self) -> Dict[str, GameSession]:
        sids = await self._r.zrevrange(self._index, 0, -1)
        out: Dict[str, GameSession] = {}
        for sid in sids:
            data = await self._r.get(self._key(sid))
            if data:
                s = GameSession.model_validate_json(data)
                out[s.id] = s
        return out


store: SessionStore = RedisSessionStore(REDIS_URL) if REDIS_URL else MemorySessionStore()
