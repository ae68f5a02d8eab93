from .bus import Emitter
from .helpers import emit_event, emit_log, emit_state_watermark
from .state import StateEventSubscriber
from .subscribers import StructuredLogSubscriber
from .types import Event, EventCategory, EventType, Subscriber

__all__ = [
    "Emitter",
    "Event",
    "EventCategory",
    "EventType",
    "StateEventSubscriber",
    "StructuredLogSubscriber",
    "Subscriber",
    "emit_event",
    "emit_log",
    "emit_state_watermark",
]
