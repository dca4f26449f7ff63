from __future__ import annotations
import os
from typing import Dict, List, Optional, Protocol

from pydantic import TypeAdapter, ValidationError
from redis import Redis

from .models.api import MoveLogEntry

REDIS_URL = os.getenv("REDIS_URL")
MOVE_LOG_MAX = int(os.getenv("MOVE_LOG_MAX", "1000"))  # per session, oldest dropped


class MoveLog(Protocol):
    def append(self, sid: str, raw: str) -> None: ...
    def list(self, sid: str, limit: int = 50) -> List[str]: ...
    def clear(self, sid: str) -> None: ...


class MemoryMoveLog:
    def __init__(self, max_len: int = MOVE_LOG_MAX) -> None:
        self._data: Dict[str, List[str]] = {}
        self.max_len = max_len

    def append(self, sid: str, raw: str) -> None:
        lst = self._data.setdefault(sid, [])
        lst.append(raw)
        del lst[:-self.max_len]

    def list(self, sid: str, limit: int = 50) -> List[str]:
        return self._data.get(sid, [])[-limit:]

    def clear(self, sid: str) -> None:
        self._data.pop(sid, None)


class RedisMoveLog:
    """Move log as one Redis list per session: <prefix>:<sid>."""
    def __init__(self, client: Redis, key_prefix: str = "chess:log", max_len: int = MOVE_LOG_MAX) -> None:
        self.client = client
        self.key_prefix = key_prefix.rstrip(":")
        self.max_len = max_len

    def _key(self, sid: str) -> str:
        return f"{self.key_prefix}:{sid}"

    def append(self, sid: str, raw: str) -> None:
        pipe = self.client.pipeline()
        pipe.rpush(self._key(sid), raw)
        pipe.ltrim(self._key(sid), -self.max_len, -1)
        pipe.execute()

    def list(self, sid: str, limit: int = 50) -> List[str]:
        return self.client.lrange(self._key(sid), -limit, -1)

    def clear(self, sid: str) -> None:
        self.client.delete(self._key(sid))


logs: MoveLog = (
    RedisMoveLog(Redis.from_url(REDIS_URL, decode_responses=True)) if REDIS_URL else MemoryMoveLog()
)


def read_entries(sid: str, limit: int = 50, log: Optional[MoveLog] = None) -> List[MoveLogEntry]:
    ta = TypeAdapter(MoveLogEntry)
    entries: List[MoveLogEntry] = []
    for s in (log or logs).list(sid, limit):
        try:
            entries.append(ta.validate_json(s))
        except ValidationError:
            # Skip malformed entries rather than failing the whole read
            continue
    return entries
