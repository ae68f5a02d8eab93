from __future__ import annotations

import threading
import traceback
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from dataclasses import dataclass, field
from typing import Any, Callable, List, Optional

from .common import PrintLogger
from .config import ConnectorConfig
from .events import EventCategory, EventType, emit_event


class WorkerPoolFullError(RuntimeError):
    """Raised when a submission exceeds the pool's workers plus queue capacity."""


class WorkerPool:
    """Fixed-size thread pool with a bounded backlog."""

    def __init__(self, max_workers: int, queue_capacity: int, name_prefix: str = "mesh-gcp-worker") -> None:
        if max_workers < 1:
            raise ValueError("max_workers must be positive")
        self.max_workers = max_workers
        self.queue_capacity = max(0, queue_capacity)
        self._executor = ThreadPoolExecutor(max_workers=max_workers, thread_name_prefix=name_prefix)
        self._slots = threading.BoundedSemaphore(max_workers + self.queue_capacity)

    def submit(self, fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Future:
        if not self._slots.acquire(blocking=False):
            raise WorkerPoolFullError(
                f"worker pool saturated ({self.max_workers} workers, {self.queue_capacity} queued)"
            )
        try:
            future = self._executor.submit(fn, *args, **kwargs)
        except BaseException:
            self._slots.release()
            raise
        future.add_done_callback(lambda _: self._slots.release())
        return future

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)


class SupervisedTask:
    """Long-lived task with a cooperative stop token and a future handle."""

    def __init__(self, name: str, target: Callable[[threading.Event], None], logger: PrintLogger) -> None:
        self.name = name
        self.target = target
        self.logger = logger
        self._stop = threading.Event()
        self.future: Optional[Future] = None

    @property
    def stop_requested(self) -> bool:
        return self._stop.is_set()

    @property
    def running(self) -> bool:
        return self.future is not None and not self.future.done()

    def start(self, pool: WorkerPool) -> "SupervisedTask":
        if self.future is not None:
            raise RuntimeError(f"task {self.name} already started")
        self.future = pool.submit(self._run)
        return self

    def _run(self) -> None:
        self.logger.info("task_start", task=self.name)
        try:
            self.target(self._stop)
        except Exception as exc:
            self.logger.error("task_crashed", task=self.name, error=str(exc), error_type=type(exc).__name__)
            raise
        finally:
            self.logger.info("task_end", task=self.name)

    def stop(self, timeout: Optional[float] = None) -> bool:
        """Signal the task and wait; True when it finished within ``timeout``."""
        self._stop.set()
        if self.future is None:
            return True
        try:
            self.future.result(timeout=timeout)
        except FutureTimeoutError:
            self.logger.warn("task_stop_timeout", task=self.name, timeout=timeout)
            return False
        except Exception:
            # already logged by _run
            return True
        return True


class SyncLoop:
    """Runs the sync engine now and then every ``interval`` seconds."""

    def __init__(self, engine, sink, interval_sec: int, logger: PrintLogger, emitter=None) -> None:
        self.engine = engine
        self.sink = sink
        self.interval = max(1, int(interval_sec))
        self.logger = logger
        self.emitter = emitter

    def run_once(self):
        try:
            return self.engine.run(self.sink)
        except Exception as exc:
            self.logger.error(
                "sync_run_failed",
                error=str(exc),
                error_type=type(exc).__name__,
                stacktrace=traceback.format_exc(),
            )
            emit_event(
                self.emitter,
                EventCategory.LOOP,
                EventType.LOOP_ITERATION_FAILURE,
                loop="sync",
                error=str(exc),
                error_type=type(exc).__name__,
            )
            return None

    def __call__(self, stop: threading.Event) -> None:
        while not stop.is_set():
            self.run_once()
            if stop.wait(self.interval):
                break


class EventLoop:
    """Polls platform events and hands them one at a time to the handler.

    An event is acknowledged only after the handler returned. A failure ends
    the iteration with the cursor still before the failed event.
    """

    def __init__(self, poller, handler, interval_sec: int, logger: PrintLogger, emitter=None) -> None:
        self.poller = poller
        self.handler = handler
        self.interval = max(1, int(interval_sec))
        self.logger = logger
        self.emitter = emitter

    def run_once(self, stop: Optional[threading.Event] = None) -> int:
        try:
            events = self.poller.poll()
        except Exception as exc:
            self._failed("event_poll_failed", exc)
            return 0
        handled = 0
        for event in events:
            if stop is not None and stop.is_set():
                break
            try:
                self.handler.handle(event)
            except Exception as exc:
                # cursor stays on the failed event; the next tick replays it
                self._failed("event_handling_failed", exc, event_id=event.id, event_type=event.type)
                break
            self.poller.acknowledge(event)
            handled += 1
        return handled

    def __call__(self, stop: threading.Event) -> None:
        while not stop.is_set():
            self.run_once(stop)
            if stop.wait(self.interval):
                break

    def _failed(self, msg: str, exc: Exception, **kv: Any) -> None:
        self.logger.error(msg, error=str(exc), error_type=type(exc).__name__, stacktrace=traceback.format_exc(), **kv)
        emit_event(
            self.emitter,
            EventCategory.LOOP,
            EventType.LOOP_ITERATION_FAILURE,
            loop="events",
            error=str(exc),
            error_type=type(exc).__name__,
            **kv,
        )


@dataclass
class ConnectorContext:
    """Constructed dependencies of one connector process."""

    config: ConnectorConfig
    logger: PrintLogger
    emitter: Any
    pool: WorkerPool
    sync_loop: Optional[SyncLoop] = None
    event_loop: Optional[EventLoop] = None
    closeables: List[Any] = field(default_factory=list)
    tasks: List[SupervisedTask] = field(default_factory=list)

    def start(self) -> List[SupervisedTask]:
        if self.sync_loop is not None:
            self.tasks.append(SupervisedTask("assets-sync", self.sync_loop, self.logger).start(self.pool))
        if self.event_loop is not None:
            self.tasks.append(SupervisedTask("access-events", self.event_loop, self.logger).start(self.pool))
        return list(self.tasks)

    def run_once(self) -> None:
        if self.sync_loop is not None:
            self.sync_loop.run_once()
        if self.event_loop is not None:
            self.event_loop.run_once()

    def stop(self, timeout: Optional[float] = 30.0) -> bool:
        finished = all([task.stop(timeout) for task in self.tasks])
        self.pool.shutdown(wait=finished)
        for closeable in self.closeables:
            close = getattr(closeable, "close", None)
            if callable(close):
                close()
        return finished
