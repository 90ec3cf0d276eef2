"""
Ordered single-producer / single-consumer event channel.

The producer (signal engine) calls put(); a consumer thread drains an
unbounded queue and hands every event to each subscribed sink in emission
order. close() enqueues a sentinel: sinks get close() after the last event.
The producer never blocks on a slow sink.
"""

from __future__ import annotations
import logging
import queue
import threading
from typing import List, Optional, Protocol

from kalman_trader.core.errors import TradingError
from kalman_trader.core.types import Event

logger = logging.getLogger("kalman_trader.channel")

_CLOSE = object()


class EventSink(Protocol):
    def accept(self, event: Event) -> None: ...

    def close(self) -> None: ...


class EventChannel:
    def __init__(self, name: str = "events"):
        self.name = name
        self._queue: "queue.Queue[object]" = queue.Queue()
        self._sinks: List[EventSink] = []
        self._thread: Optional[threading.Thread] = None
        self._closed = False
        self.delivered = 0

    def subscribe(self, sink: EventSink) -> None:
        if self._thread is not None:
            raise TradingError("subscribe before start()")
        self._sinks.append(sink)

    def start(self) -> "EventChannel":
        if self._thread is None:
            self._thread = threading.Thread(target=self._consume, name=f"{self.name}-consumer", daemon=True)
            self._thread.start()
        return self

    def put(self, event: Event) -> None:
        if self._closed:
            raise TradingError(f"channel {self.name!r} is closed")
        self._queue.put(event)

    def close(self) -> None:
        if not self._closed:
            self._closed = True
            self._queue.put(_CLOSE)

    def join(self, timeout: Optional[float] = None) -> None:
        if self._thread is not None:
            self._thread.join(timeout)

    def _consume(self) -> None:
        while True:
            item = self._queue.get()
            if item is _CLOSE:
                break
            for sink in self._sinks:
                try:
                    sink.accept(item)
                except Exception:
                    # A failing tap must not stop delivery to the others.
                    logger.exception("Sink %r failed on %s", sink, item)
            self.delivered += 1
        for sink in self._sinks:
            try:
                sink.close()
            except Exception:
                logger.exception("Sink %r failed on close", sink)
