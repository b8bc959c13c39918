#!/usr/bin/env python3
"""JMX metrics poller entry point."""

import argparse
import logging
import os
import signal
import sys
import threading

from jmx_poller.client import JolokiaClient
from jmx_poller.config import Config, load_config, load_yaml_config
from jmx_poller.poller import TargetPoller
from jmx_poller.reconciler import DirectoryReconciler
from jmx_poller.registry import PollerRegistry
from jmx_poller.sink import EventWriter, OutputSink, QueueSink
from jmx_poller.stats import PollerStats
from jmx_poller.supervisor import Supervisor

logger = logging.getLogger(__name__)


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="JMX metrics poller")
    parser.add_argument("--path", default=None,
                        help="Directory containing one JSON configuration file per JVM")
    parser.add_argument("--polling-frequency", type=float, default=None,
                        help="Seconds between two metric retrievals (default: 60)")
    parser.add_argument("--nb-thread", type=int, default=None,
                        help="Concurrency hint, kept for compatibility (default: 4)")
    parser.add_argument("--type", default=None,
                        help="Value of the 'type' field on every event (default: jmx)")
    parser.add_argument("--file-extension", default=None,
                        help="Extension of configuration files to watch (default: .json)")
    parser.add_argument("--output", default=None,
                        help="File to append NDJSON events to, '-' for stdout (default: -)")
    parser.add_argument("--connect-attempts", type=int, default=None,
                        help="Connection attempts per target before giving up (default: 1)")
    parser.add_argument("--request-timeout", type=float, default=None,
                        help="Timeout in seconds for each management request (default: 10)")
    parser.add_argument("--log-level", default=None,
                        help="Logging level (default: INFO)")
    parser.add_argument("--config", default=None,
                        help="Path to YAML config file")
    return parser


def build_supervisor(config: Config, sink: OutputSink, stats: PollerStats) -> Supervisor:
    """Wire the client, registry and reconciler together."""
    client = JolokiaClient(timeout=config.request_timeout)
    registry = PollerRegistry()

    def poller_factory(target, stop_event):
        return TargetPoller(
            target, client, sink, stop_event,
            polling_frequency=config.polling_frequency,
            source_path=config.path,
            type_label=config.type,
            stats=stats,
            connect_attempts=config.connect_attempts,
        )

    reconciler = DirectoryReconciler(
        config.path, registry, poller_factory, extension=config.file_extension,
    )
    return Supervisor(reconciler, registry, stats)


def main(argv: list[str] | None = None):
    parser = build_cli_parser()
    args = parser.parse_args(argv)
    try:
        config = load_config(args, load_yaml_config(args.config))
    except ValueError as e:
        parser.error(str(e))

    logging.basicConfig(
        level=getattr(logging, config.log_level.upper(), logging.INFO),
        format="%(asctime)s [JMX] %(levelname)s %(name)s %(message)s",
        stream=sys.stderr,
    )

    shutdown_event = threading.Event()

    def signal_handler(signum, frame):
        logger.info("Received signal %d, shutting down...", signum)
        shutdown_event.set()

    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    logger.info("Config: path=%s, polling_frequency=%.1fs, type=%s, output=%s",
                config.path, config.polling_frequency, config.type, config.output)
    logger.info("nb_thread=%d is ignored, one poller thread runs per target", config.nb_thread)

    os.makedirs(config.path, exist_ok=True)
    if config.output == "-":
        stream = sys.stdout
    else:
        os.makedirs(os.path.dirname(config.output) or ".", exist_ok=True)
        stream = open(config.output, "a", encoding="utf-8")

    sink = QueueSink()
    writer = EventWriter(sink, stream)
    writer.start()
    stats = PollerStats()
    try:
        build_supervisor(config, sink, stats).run(shutdown_event)
    finally:
        writer.stop()
        if stream is not sys.stdout:
            stream.close()
    logger.info("JMX metrics poller stopped.")


if __name__ == "__main__":
    main()
