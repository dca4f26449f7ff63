from __future__ import annotations

from . import storage
from .events import MoveEvent, event_bus
from .models.api import MoveLogEntry


def _on_move_event(ev: MoveEvent) -> None:
    # Convert event to MoveLogEntry JSON for persistence
    entry = MoveLogEntry(
        session_id=ev.session_id,
        ply=ev.ply,
        side=ev.side,
        src=ev.src,
        dst=ev.dst,
        notation=ev.notation,
        result=ev.result,
        message=ev.message,
    )
    storage.logs.append(ev.session_id, entry.model_dump_json())


def register_listeners() -> None:
    event_bus.subscribe(MoveEvent, _on_move_event)


def unregister_listeners() -> None:
    event_bus.unsubscribe(MoveEvent, _on_move_event)
