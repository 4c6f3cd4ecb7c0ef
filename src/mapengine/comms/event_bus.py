"""EventBus — pub/sub for dashboard events.

The DashboardController publishes here after every recompute so that
outer surfaces (HTTP streaming, loggers, tests) can follow what the
map and chart are showing without reaching into controller state.

Event types:
    snapshot     — a new AggregateSnapshot was computed
    visibility   — a dataset was shown or hidden
    layer_ready  — a dataset or overlay finished loading (or failed)
"""

from __future__ import annotations

import queue
import threading

SNAPSHOT = "snapshot"
VISIBILITY = "visibility"
LAYER_READY = "layer_ready"


class EventBus:
    """Pub/sub with bounded per-subscriber queues and optional type filters."""

    def __init__(self, maxsize: int = 100) -> None:
        self._lock = threading.Lock()
        self._maxsize = maxsize
        self._subscribers: list[tuple[queue.Queue, str | None]] = []

    def subscribe(self, event_type: str | None = None) -> queue.Queue:
        """Subscribe to events, optionally only those of ``event_type``."""
        q: queue.Queue = queue.Queue(maxsize=self._maxsize)
        with self._lock:
            self._subscribers.append((q, event_type))
        return q

    def unsubscribe(self, q: queue.Queue) -> None:
        with self._lock:
            self._subscribers = [(s, f) for s, f in self._subscribers if s is not q]

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def publish(self, event_type: str, data: dict | None = None) -> None:
        msg = {"type": event_type}
        if data is not None:
            msg["data"] = data
        with self._lock:
            targets = [q for q, f in self._subscribers if f is None or f == event_type]
        for q in targets:
            _put_latest(q, msg)


def _put_latest(q: queue.Queue, msg: dict) -> None:
    """Enqueue ``msg``, dropping the oldest entry if the queue is full."""
    try:
        q.put_nowait(msg)
        return
    except queue.Full:
        pass
    try:
        q.get_nowait()
    except queue.Empty:
        pass
    try:
        q.put_nowait(msg)
    except queue.Full:
        pass
