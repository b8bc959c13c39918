"""Supervisor: owns the directory watcher and the running pollers for the process lifetime."""

import logging
import threading
from typing import Callable

from watchdog.observers import Observer

from jmx_poller.reconciler import DirectoryReconciler
from jmx_poller.registry import PollerRegistry
from jmx_poller.stats import PollerStats

logger = logging.getLogger(__name__)


class Supervisor:
    def __init__(
        self,
        reconciler: DirectoryReconciler,
        registry: PollerRegistry,
        stats: PollerStats | None = None,
        observer_factory: Callable[[], Observer] = Observer,
    ):
        self._reconciler = reconciler
        self._registry = registry
        self._stats = stats
        self._observer_factory = observer_factory

    def run(self, shutdown_event: threading.Event):
        """Watch and poll until *shutdown_event* is set, then tear everything down."""
        observer = None
        scan_thread = None
        directory = self._reconciler.directory
        try:
            observer = self._observer_factory()
            observer.schedule(self._reconciler, directory, recursive=False)
            observer.start()
            logger.info("Started file watcher for '%s/*%s'", directory, self._reconciler.extension)

            scan_thread = threading.Thread(
                target=self._reconciler.scan_existing, name="initial-scan", daemon=True,
            )
            scan_thread.start()

            while not shutdown_event.is_set():
                shutdown_event.wait(1.0)
        except Exception:
            logger.exception("Supervisor failed, shutting down")
        finally:
            self._teardown(observer, scan_thread)

    def _teardown(self, observer, scan_thread: threading.Thread | None):
        logger.info("Shutting down...")
        try:
            if observer is not None:
                observer.stop()
                if observer.is_alive():
                    observer.join()
                logger.info("Stopped file watcher")
        finally:
            self._registry.close()
            try:
                if scan_thread is not None:
                    scan_thread.join()
            finally:
                self._registry.stop_all()
                if self._stats is not None:
                    logger.info("Stats: %s", self._stats.snapshot())
