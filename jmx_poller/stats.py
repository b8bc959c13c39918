"""Thread-safe counters shared by every poller."""

import threading


class PollerStats:
    """Counters for poller activity, readable from any thread."""

    def __init__(self):
        self._lock = threading.Lock()
        self._samples_emitted = 0
        self._attribute_failures = 0
        self._discovery_misses = 0
        self._connect_failures = 0
        self._poller_crashes = 0

    def record_sample(self, count: int = 1):
        with self._lock:
            self._samples_emitted += count

    def record_attribute_failure(self):
        with self._lock:
            self._attribute_failures += 1

    def record_discovery_miss(self):
        with self._lock:
            self._discovery_misses += 1

    def record_connect_failure(self):
        with self._lock:
            self._connect_failures += 1

    def record_crash(self):
        with self._lock:
            self._poller_crashes += 1

    def snapshot(self) -> dict:
        """Read all counters atomically."""
        with self._lock:
            return {
                "samples_emitted": self._samples_emitted,
                "attribute_failures": self._attribute_failures,
                "discovery_misses": self._discovery_misses,
                "connect_failures": self._connect_failures,
                "poller_crashes": self._poller_crashes,
            }
