from __future__ import annotations

from typing import Iterable

from mesh_gcp.common import PrintLogger, RUN_ID, next_event_seq

from .types import Event, EventCategory, EventType, Subscriber

_WARN_TYPES = {EventType.ACCESS_ABANDONED}
_ERROR_TYPES = {EventType.LOOP_ITERATION_FAILURE}


class StructuredLogSubscriber(Subscriber):
    """Mirrors bus events into the PrintLogger as structured records."""

    def __init__(self, logger: PrintLogger, job_name: str, *, emit_structured: bool = True) -> None:
        self.logger = logger
        self.job_name = job_name
        self.emit_structured = emit_structured

    def interests(self) -> Iterable[EventCategory]:
        return []

    def on_event(self, event: Event) -> None:
        payload = dict(event.payload)
        if event.type == EventType.LOG:
            level = str(payload.pop("level", "INFO"))
            msg = str(payload.pop("msg", "log"))
            self.logger.log(level, msg, **payload)
            return
        level = "INFO"
        if event.type in _WARN_TYPES:
            level = "WARN"
        elif event.type in _ERROR_TYPES:
            level = "ERROR"
        record = {
            "ts_event": event.timestamp.astimezone().isoformat(timespec="milliseconds"),
            "category": event.category.value,
            "connector": self.job_name,
            "run": RUN_ID,
            "seq": next_event_seq(),
            **payload,
        }
        if self.emit_structured:
            self.logger.event(event.type.value, level=level, **record)
        else:
            self.logger.log(level, event.type.value, **record)
