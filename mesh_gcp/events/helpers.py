from __future__ import annotations

from typing import Any, Optional

from .types import Event, EventCategory, EventType


def emit_state_watermark(emitter, watermarks, *, watermark: int, previous: Optional[int] = None) -> None:
    """Persist a new watermark, through the bus when one is wired."""
    if emitter is not None:
        emitter.emit(
            Event(
                category=EventCategory.STATE,
                type=EventType.STATE_WATERMARK,
                payload={"watermark": watermark, "previous": previous},
            )
        )
    else:
        watermarks.set_watermark(watermark)


def emit_event(emitter, category: EventCategory, type_: EventType, **payload: Any) -> None:
    if emitter is not None:
        emitter.emit(Event(category=category, type=type_, payload=payload))


def emit_log(
    emitter,
    *,
    level: str,
    msg: str,
    logger=None,
    **payload: Any,
) -> None:
    record = {"level": level.upper(), "msg": msg, **payload}
    if emitter is not None:
        emitter.emit(Event(category=EventCategory.LOG, type=EventType.LOG, payload=record))
    elif logger is not None:
        logger.log(level.upper(), msg, **payload)
