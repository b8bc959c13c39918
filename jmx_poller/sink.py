"""Output sink: pollers emit events into a queue, a writer thread ships them as NDJSON."""

import json
import logging
import queue
from datetime import datetime, timezone
from threading import Thread
from typing import Any, Protocol, TextIO

logger = logging.getLogger(__name__)


class OutputSink(Protocol):
    def emit(self, fields: dict[str, Any]) -> None:
        ...


class QueueSink:
    """Multi-producer channel backed by a thread-safe queue."""

    def __init__(self, q: queue.Queue | None = None):
        self.queue = q if q is not None else queue.Queue()

    def emit(self, fields: dict[str, Any]) -> None:
        self.queue.put(fields)


def decorate(fields: dict[str, Any]) -> dict[str, Any]:
    """Add the event envelope fields."""
    event = {
        "@version": "1",
        "@timestamp": datetime.now(timezone.utc).isoformat(timespec="milliseconds"),
    }
    event.update(fields)
    return event


def format_ndjson(event: dict[str, Any]) -> str:
    """Serialize an event to compact JSON + newline."""
    return json.dumps(event, separators=(",", ":"), default=str) + "\n"


class EventWriter(Thread):
    """Consumer thread that drains a QueueSink and writes one JSON line per event."""

    def __init__(self, sink: QueueSink, stream: TextIO):
        super().__init__(daemon=True, name="event-writer")
        self._queue = sink.queue
        self._stream = stream
        self._running = True
        self._written = 0
        self._dropped = 0

    @property
    def written(self) -> int:
        return self._written

    @property
    def dropped(self) -> int:
        return self._dropped

    def _write(self, fields: dict[str, Any]):
        """Write one event. A failed write drops the event, the thread keeps consuming."""
        try:
            self._stream.write(format_ndjson(decorate(fields)))
        except (OSError, ValueError) as e:
            self._dropped += 1
            if self._dropped == 1 or self._dropped % 1000 == 0:
                logger.error("Failed to write event (%d dropped so far): %s", self._dropped, e)
            return
        self._written += 1

    def _flush(self):
        try:
            self._stream.flush()
        except (OSError, ValueError) as e:
            logger.error("Failed to flush output: %s", e)

    def run(self):
        while self._running:
            try:
                fields = self._queue.get(timeout=0.5)
            except queue.Empty:
                continue
            self._write(fields)
            if self._queue.empty():
                self._flush()

    def stop(self):
        """Signal shutdown, wait for the thread, then write whatever is still queued."""
        self._running = False
        if self.is_alive():
            self.join(timeout=5)
        while True:
            try:
                fields = self._queue.get_nowait()
            except queue.Empty:
                break
            self._write(fields)
        self._flush()
        logger.info("Event writer stopped after %d events (%d dropped)", self._written, self._dropped)
