# Shared fixtures for the rule engine, session and bot tests.

import random

import pytest

from chessarena import storage
from chessarena.engine.core import ChessEngine
from chessarena.logging_listeners import register_listeners, unregister_listeners
from chessarena.rulesets.chess.models import empty_board


@pytest.fixture()
def board():
    return empty_board()


@pytest.fixture()
def rng() -> random.Random:
    return random.Random(1234)


@pytest.fixture()
def engine() -> ChessEngine:
    return ChessEngine()


@pytest.fixture()
def move_log(monkeypatch: pytest.MonkeyPatch):
    """Isolated in-memory move log wired to the event bus for one test."""
    log = storage.MemoryMoveLog()
    monkeypatch.setattr(storage, "logs", log)
    register_listeners()
    yield log
    unregister_listeners()
