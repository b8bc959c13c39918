"""DirectoryReconciler: keeps one poller running per valid configuration file."""

import hashlib
import json
import logging
import os
import threading
from typing import Callable, Protocol

from watchdog.events import FileSystemEventHandler

from jmx_poller.models import TargetConfig
from jmx_poller.registry import PollerRegistry
from jmx_poller.validator import validate_configuration

logger = logging.getLogger(__name__)


class Runnable(Protocol):
    def run(self) -> None:
        ...


PollerFactory = Callable[[TargetConfig, threading.Event], Runnable]


class DirectoryReconciler(FileSystemEventHandler):
    """Maps add/modify/remove events in the config directory to poller starts and stops.

    Event handling and the startup scan run on different threads; both go
    through ``_lock`` so a filename is never reconciled twice at once.
    """

    def __init__(
        self,
        directory: str,
        registry: PollerRegistry,
        poller_factory: PollerFactory,
        extension: str = ".json",
        validate: Callable[[object], list[str]] = validate_configuration,
    ):
        super().__init__()
        self._directory = directory
        self._registry = registry
        self._poller_factory = poller_factory
        self._extension = extension
        self._validate = validate
        self._lock = threading.RLock()

    @property
    def directory(self) -> str:
        return self._directory

    @property
    def extension(self) -> str:
        return self._extension

    def _matches(self, path) -> bool:
        return os.fsdecode(path).endswith(self._extension)

    # -- watchdog callbacks -------------------------------------------------

    def on_created(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self.apply_change(os.path.basename(os.fsdecode(event.src_path)))

    def on_modified(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self.apply_change(os.path.basename(os.fsdecode(event.src_path)))

    def on_deleted(self, event):
        if not event.is_directory and self._matches(event.src_path):
            self.apply_removal(os.path.basename(os.fsdecode(event.src_path)))

    def on_moved(self, event):
        if event.is_directory:
            return
        if self._matches(event.src_path):
            self.apply_removal(os.path.basename(os.fsdecode(event.src_path)))
        dest = os.fsdecode(event.dest_path)
        if os.path.dirname(os.path.abspath(dest)) == os.path.abspath(self._directory) \
                and self._matches(dest):
            self.apply_change(os.path.basename(dest))

    # -- reconciliation -----------------------------------------------------

    def scan_existing(self):
        """Start a poller for every configuration file already in the directory."""
        logger.info("Reading config files in path %s", self._directory)
        try:
            names = sorted(os.listdir(self._directory))
        except OSError as e:
            logger.error("Failed to list %s: %s", self._directory, e)
            return
        for name in names:
            if not self._matches(name) or not os.path.isfile(os.path.join(self._directory, name)):
                continue
            with self._lock:
                if name in self._registry:
                    # a watch event got there first
                    continue
                target, digest = self.load_target(name)
                if target is not None:
                    self._start(name, target, digest)

    def load_target(self, filename: str) -> tuple[TargetConfig | None, str | None]:
        """Read, parse and validate one file. Returns (target or None, content digest)."""
        file_conf = os.path.join(self._directory, filename)
        logger.debug("Loading configuration from file %s", file_conf)
        try:
            with open(file_conf, "rb") as f:
                raw = f.read()
            digest = hashlib.sha256(raw).hexdigest()
            document = json.loads(raw)
        except (OSError, ValueError) as e:
            logger.warning("Issue loading configuration from file %s: %s", file_conf, e)
            return None, None

        errors = self._validate(document)
        if errors:
            logger.warning("Issue with configuration file %s: %s", file_conf, "; ".join(errors))
            return None, digest
        return TargetConfig.from_document(document), digest

    def apply_change(self, filename: str):
        """Handle an added or modified file: replace its poller with a fresh one."""
        with self._lock:
            target, digest = self.load_target(filename)
            existing = self._registry.get(filename)
            if existing is not None:
                if digest is not None and digest == existing.digest and existing.thread.is_alive():
                    logger.debug("Configuration %s unchanged, keeping its poller", filename)
                    return
                logger.info("Configuration file changed: %s", filename)
                self._registry.stop(filename)
            if target is None:
                return
            logger.info("Configuration file added: %s", filename)
            self._start(filename, target, digest)

    def apply_removal(self, filename: str):
        """Handle a removed file: stop and join its poller, then forget it."""
        with self._lock:
            if self._registry.stop(filename):
                logger.info("Configuration file removed: %s", filename)

    def _start(self, filename: str, target: TargetConfig, digest: str | None):
        factory = self._poller_factory

        def run_poller(stop_event: threading.Event):
            factory(target, stop_event).run()

        self._registry.start(filename, run_poller, digest)
