"""TargetPoller: connect to one JVM, poll its queries until stopped, disconnect."""

import logging
import random
import threading
from typing import Any

from jmx_poller.alias import AliasResolutionError, resolve
from jmx_poller.classifier import build_sample, is_composite
from jmx_poller.client import ManagedObject, ManagementClient, ManagementClientError
from jmx_poller.models import Query, TargetConfig
from jmx_poller.sink import OutputSink
from jmx_poller.stats import PollerStats

logger = logging.getLogger(__name__)

MAX_BACKOFF_DELAY = 60.0


class TargetPoller:
    """Owns one target's connection and poll loop.

    ``run`` is meant to be a thread target. It never raises: connection
    failures end the poller quietly, anything unexpected is logged and ends
    this poller only. Setting *stop_event* aborts the sleep between cycles.
    """

    def __init__(
        self,
        target: TargetConfig,
        client: ManagementClient,
        sink: OutputSink,
        stop_event: threading.Event,
        polling_frequency: float = 60.0,
        source_path: str = "",
        type_label: str = "jmx",
        stats: PollerStats | None = None,
        connect_attempts: int = 1,
        backoff_base: float = 1.0,
    ):
        self._target = target
        self._client = client
        self._sink = sink
        self._stop = stop_event
        self._polling_frequency = polling_frequency
        self._source_path = source_path
        self._type_label = type_label
        self._stats = stats or PollerStats()
        self._connect_attempts = max(1, connect_attempts)
        self._backoff_base = backoff_base

    @property
    def target(self) -> TargetConfig:
        return self._target

    def run(self):
        connection = None
        try:
            connection = self._connect()
            if connection is None:
                return
            logger.info("Polling %s every %.1fs", self._target.display, self._polling_frequency)
            while not self._stop.is_set():
                self.poll_once(connection)
                self._stop.wait(self._polling_frequency)
        except Exception:
            self._stats.record_crash()
            logger.exception("Poller for %s stopped after unexpected error", self._target.display)
        finally:
            if connection is not None:
                self._close(connection)
            logger.info("Poller for %s stopped", self._target.display)

    def _connect(self):
        """Connect, retrying with exponential backoff when more than one attempt is allowed."""
        t = self._target
        attempt = 0
        while not self._stop.is_set():
            attempt += 1
            logger.debug("Connect to %s (url=%s, credentials=%s)",
                         t.display, t.url, "yes" if t.credentials else "no")
            try:
                connection = self._client.connect(t.host, t.port, url=t.url, credentials=t.credentials)
            except ManagementClientError as e:
                logger.warning("Failed to connect to %s (attempt %d/%d): %s",
                               t.display, attempt, self._connect_attempts, e)
            else:
                if connection is not None:
                    return connection
                logger.warning("Invalid nil jmx connection for %s (url=%s), ignoring", t.display, t.url)

            if attempt >= self._connect_attempts:
                self._stats.record_connect_failure()
                return None

            delay = min(self._backoff_base * (2 ** (attempt - 1)), MAX_BACKOFF_DELAY)
            delay += random.uniform(0, delay * 0.3)
            logger.info("Retrying %s in %.1fs (attempt %d)...", t.display, delay, attempt)
            self._stop.wait(delay)
        return None

    def _close(self, connection):
        try:
            self._client.close(connection)
        except Exception as e:
            logger.warning("Failed to close connection to %s: %s", self._target.display, e)

    def poll_once(self, connection) -> int:
        """Run every query once, in declared order. Returns the number of samples emitted.

        A stop request ends the cycle before the next query, object or attribute.
        """
        base_metric_path = self._target.base_metric_path
        emitted = 0
        for query in self._target.queries:
            if self._stop.is_set():
                break
            logger.debug("Find all objects name %s", query.object_name)
            objects = self._client.find_matching_objects(connection, query.object_name)
            if not objects:
                self._stats.record_discovery_miss()
                logger.warning("No jmx object found for %s on %s", query.object_name, self._target.display)
                continue
            for obj in objects:
                if self._stop.is_set():
                    break
                emitted += self._poll_object(base_metric_path, query, obj)
        return emitted

    def _poll_object(self, base_metric_path: str, query: Query, obj: ManagedObject) -> int:
        identifier = obj.identifier()
        if query.object_alias is not None:
            try:
                object_name = resolve(query.object_alias, identifier)
            except AliasResolutionError as e:
                self._stats.record_attribute_failure()
                logger.warning("Failed resolving alias %s for object %s: %s",
                               query.object_alias, identifier, e)
                return 0
        else:
            object_name = identifier

        if query.attributes is not None:
            attributes = list(query.attributes)
        else:
            logger.debug("No attribute to retrieve defined on %s, will retrieve all", identifier)
            try:
                attributes = sorted(obj.known_attribute_names())
            except ManagementClientError as e:
                self._stats.record_attribute_failure()
                logger.warning("Failed listing attributes on object %s: %s", identifier, e)
                return 0

        emitted = 0
        for attribute in attributes:
            if self._stop.is_set():
                logger.debug("Stop requested, skipping remaining attributes of %s", identifier)
                break
            try:
                value = obj.read_attribute(attribute)
            except Exception as e:
                self._stats.record_attribute_failure()
                logger.warning("Failed retrieving metrics for attribute %s on object %s: %s",
                               attribute, identifier, e)
                continue

            metric_path = f"{base_metric_path}.{object_name}.{attribute}"
            if is_composite(value):
                logger.debug("The jmx value of %s on %s is a composite one", attribute, identifier)
                for key, inner in value.items():
                    self._emit(f"{metric_path}.{key}", inner)
                    emitted += 1
            else:
                self._emit(metric_path, value)
                emitted += 1
        return emitted

    def _emit(self, metric_path: str, value: Any):
        sample = build_sample(metric_path, value, self._target.host, self._type_label)
        logger.debug("Emit %s = %r", sample.metric_path, sample.value)
        self._sink.emit(sample.to_fields(self._source_path))
        self._stats.record_sample()
