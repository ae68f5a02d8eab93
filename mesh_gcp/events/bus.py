from __future__ import annotations

from threading import RLock
from typing import List

from .types import Event, Subscriber


class Emitter:
    """Thread-safe event emitter with per-subscriber category filtering.

    Subscribers run synchronously on the emitting thread; their exceptions
    propagate to the emitter's caller.
    """

    def __init__(self) -> None:
        self._subscribers: List[Subscriber] = []
        self._lock = RLock()

    def subscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers.append(subscriber)

    def unsubscribe(self, subscriber: Subscriber) -> None:
        with self._lock:
            self._subscribers = [s for s in self._subscribers if s is not subscriber]

    def emit(self, event: Event) -> None:
        with self._lock:
            subscribers = list(self._subscribers)
        for sub in subscribers:
            interests = set(sub.interests())
            if not interests or event.category in interests:
                sub.on_event(event)
