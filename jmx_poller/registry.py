"""Registry of running pollers, keyed by configuration filename."""

import logging
import threading
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass
class PollerHandle:
    filename: str
    stop_event: threading.Event
    thread: threading.Thread
    digest: str | None = None


class PollerRegistry:
    """Thread-safe filename -> (stop event, thread) map.

    Threads are joined outside the lock so a slow poller never blocks
    other registry users.
    """

    def __init__(self, join_timeout: float | None = None):
        self._lock = threading.Lock()
        self._handles: dict[str, PollerHandle] = {}
        self._closed = False
        self._join_timeout = join_timeout

    def start(self, filename: str, target_fn: Callable[[threading.Event], None],
              digest: str | None = None) -> PollerHandle | None:
        """Start ``target_fn(stop_event)`` on a new thread registered under *filename*.

        Returns None once the registry is closed. Raises KeyError if a poller
        is already registered under *filename*.
        """
        stop_event = threading.Event()
        thread = threading.Thread(
            target=target_fn, args=(stop_event,), name=f"poller-{filename}", daemon=True,
        )
        with self._lock:
            if self._closed:
                logger.info("Registry closed, not starting poller for %s", filename)
                return None
            if filename in self._handles:
                raise KeyError(f"Poller already registered for {filename}")
            handle = PollerHandle(filename, stop_event, thread, digest)
            self._handles[filename] = handle
            thread.start()
        logger.info("Started poller for %s", filename)
        return handle

    def stop(self, filename: str) -> bool:
        """Signal the poller for *filename*, join it, then drop its entry."""
        with self._lock:
            handle = self._handles.get(filename)
        if handle is None:
            return False
        handle.stop_event.set()
        self._join(handle)
        with self._lock:
            if self._handles.get(filename) is handle:
                del self._handles[filename]
        logger.info("Stopped poller for %s", filename)
        return True

    def stop_all(self):
        """Signal every poller first, then join them all."""
        with self._lock:
            handles = list(self._handles.values())
        for handle in handles:
            logger.debug("Signaling termination to poller for %s", handle.filename)
            handle.stop_event.set()
        for handle in handles:
            self._join(handle)
        with self._lock:
            for handle in handles:
                if self._handles.get(handle.filename) is handle:
                    del self._handles[handle.filename]

    def close(self):
        """Refuse any further starts."""
        with self._lock:
            self._closed = True

    def _join(self, handle: PollerHandle):
        handle.thread.join(self._join_timeout)
        if handle.thread.is_alive():
            logger.warning("Poller for %s did not stop within %.1fs",
                           handle.filename, self._join_timeout)

    def get(self, filename: str) -> PollerHandle | None:
        with self._lock:
            return self._handles.get(filename)

    def filenames(self) -> list[str]:
        with self._lock:
            return sorted(self._handles)

    def __contains__(self, filename: str) -> bool:
        with self._lock:
            return filename in self._handles

    def __len__(self) -> int:
        with self._lock:
            return len(self._handles)
