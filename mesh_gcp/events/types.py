from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Iterable


class EventCategory(str, Enum):
    STATE = "state"
    SYNC = "sync"
    ACCESS = "access"
    LOOP = "loop"
    LOG = "log"


class EventType(str, Enum):
    STATE_WATERMARK = "state.watermark"
    SYNC_RUN_START = "sync.run.start"
    SYNC_ASSET_REPORTED = "sync.asset.reported"
    SYNC_RUN_END = "sync.run.end"
    ACCESS_GRANTED = "access.granted"
    ACCESS_REVOKED = "access.revoked"
    ACCESS_ABANDONED = "access.abandoned"
    LOOP_ITERATION_FAILURE = "loop.iteration.failure"
    LOG = "log"


@dataclass
class Event:
    category: EventCategory
    type: EventType
    payload: Dict[str, Any]
    timestamp: datetime = field(default_factory=lambda: datetime.now(timezone.utc))


class Subscriber:
    """Base subscriber; override interests and on_event."""

    def interests(self) -> Iterable[EventCategory]:
        return []

    def on_event(self, event: Event) -> None:
        raise NotImplementedError
