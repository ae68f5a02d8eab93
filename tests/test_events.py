"""Event bus tests for state and log subscribers."""

import unittest
from unittest.mock import MagicMock

from mesh_gcp.events import (
    Emitter,
    Event,
    EventCategory,
    EventType,
    StateEventSubscriber,
    StructuredLogSubscriber,
    Subscriber,
    emit_event,
    emit_log,
    emit_state_watermark,
)
from mesh_gcp.state import InMemoryStateStore, WatermarkStore


class RecordingSubscriber(Subscriber):
    def __init__(self, *categories):
        self.categories = categories
        self.events = []

    def interests(self):
        return self.categories

    def on_event(self, event):
        self.events.append(event)


class EventBusTest(unittest.TestCase):
    def test_state_subscriber_handles_watermark(self):
        bus = Emitter()
        watermarks = WatermarkStore(InMemoryStateStore("demo"))
        bus.subscribe(StateEventSubscriber(watermarks))

        bus.emit(
            Event(
                category=EventCategory.STATE,
                type=EventType.STATE_WATERMARK,
                payload={"watermark": 1700000000000, "previous": 0},
            )
        )
        bus.emit(
            Event(
                category=EventCategory.STATE,
                type=EventType.STATE_WATERMARK,
                payload={"watermark": 5, "previous": 1700000000000},
            )
        )

        self.assertEqual(watermarks.get_last_watermark(), 1700000000000)

    def test_category_filtering(self):
        bus = Emitter()
        sync_only = RecordingSubscriber(EventCategory.SYNC)
        everything = RecordingSubscriber()
        bus.subscribe(sync_only)
        bus.subscribe(everything)

        emit_event(bus, EventCategory.SYNC, EventType.SYNC_RUN_START, watermark=0)
        emit_event(bus, EventCategory.ACCESS, EventType.ACCESS_GRANTED, access_id="a1")

        self.assertEqual([e.type for e in sync_only.events], [EventType.SYNC_RUN_START])
        self.assertEqual(len(everything.events), 2)
        self.assertEqual(everything.events[1].payload, {"access_id": "a1"})

    def test_unsubscribe(self):
        bus = Emitter()
        sub = RecordingSubscriber()
        bus.subscribe(sub)
        bus.unsubscribe(sub)
        emit_event(bus, EventCategory.SYNC, EventType.SYNC_RUN_END)
        self.assertEqual(sub.events, [])

    def test_watermark_written_directly_without_emitter(self):
        watermarks = WatermarkStore(InMemoryStateStore("demo"))
        emit_state_watermark(None, watermarks, watermark=42, previous=0)
        self.assertEqual(watermarks.get_last_watermark(), 42)

    def test_emit_event_without_emitter_is_noop(self):
        emit_event(None, EventCategory.SYNC, EventType.SYNC_RUN_START)

    def test_log_events_reach_logger(self):
        logger = MagicMock()
        bus = Emitter()
        bus.subscribe(StructuredLogSubscriber(logger, job_name="mesh-gcp"))

        emit_log(bus, level="warn", msg="nothing_to_run", only="assets")

        logger.log.assert_called_once_with("WARN", "nothing_to_run", only="assets")

    def test_emit_log_falls_back_to_logger(self):
        logger = MagicMock()
        emit_log(None, level="info", msg="connector_start", logger=logger, once=True)
        logger.log.assert_called_once_with("INFO", "connector_start", once=True)

    def test_structured_levels(self):
        logger = MagicMock()
        bus = Emitter()
        bus.subscribe(StructuredLogSubscriber(logger, job_name="mesh-gcp"))

        emit_event(bus, EventCategory.ACCESS, EventType.ACCESS_ABANDONED, access_id="a1", reason="no provider")
        emit_event(bus, EventCategory.LOOP, EventType.LOOP_ITERATION_FAILURE, loop="sync")
        emit_event(bus, EventCategory.ACCESS, EventType.ACCESS_GRANTED, access_id="a2")

        levels = [c.kwargs["level"] for c in logger.event.call_args_list]
        names = [c.args[0] for c in logger.event.call_args_list]
        self.assertEqual(levels, ["WARN", "ERROR", "INFO"])
        self.assertEqual(names, ["access.abandoned", "loop.iteration.failure", "access.granted"])
        self.assertEqual(logger.event.call_args_list[0].kwargs["reason"], "no provider")

    def test_subscriber_errors_propagate(self):
        class Broken(Subscriber):
            def on_event(self, event):
                raise RuntimeError("boom")

        bus = Emitter()
        bus.subscribe(Broken())
        with self.assertRaises(RuntimeError):
            emit_event(bus, EventCategory.SYNC, EventType.SYNC_RUN_END)


if __name__ == "__main__":  # pragma: no cover
    unittest.main()
