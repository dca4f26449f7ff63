from enum import Enum


class GameMode(str, Enum):
    BOT = "bot"
    FRIEND = "friend"
    RANDOM = "random"


class MoveLogResult(str, Enum):
    APPLIED = "applied"
    ILLEGAL = "illegal"
    DESYNC = "desync"
    ERROR = "error"
