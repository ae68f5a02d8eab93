from __future__ import annotations

from typing import Iterable

from .types import Event, EventCategory, EventType, Subscriber
from ..state import WatermarkStore


class StateEventSubscriber(Subscriber):
    """Writes watermark events through to the WatermarkStore."""

    def __init__(self, watermarks: WatermarkStore) -> None:
        self.watermarks = watermarks

    def interests(self) -> Iterable[EventCategory]:
        return (EventCategory.STATE,)

    def on_event(self, event: Event) -> None:
        if event.type == EventType.STATE_WATERMARK:
            self.watermarks.set_watermark(int(event.payload["watermark"]))
