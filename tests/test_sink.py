"""Tests for the queue sink and NDJSON event writer."""

import io
import json
import threading

from jmx_poller.sink import EventWriter, QueueSink, decorate, format_ndjson
from tests.fakes import wait_until

FIELDS = {
    "host": "192.168.1.2",
    "path": "/apps/jmxconf",
    "type": "jmx",
    "metric_path": "alias.GarbageCollector.ParNew.CollectionCount",
    "metric_value_number": 2212,
}


class TestFormatting:
    def test_decorate_adds_envelope(self):
        event = decorate(FIELDS)
        assert event["@version"] == "1"
        assert event["@timestamp"].endswith("+00:00")
        assert event["metric_value_number"] == 2212

    def test_ndjson_single_line(self):
        line = format_ndjson({"metric_path": "a b", "metric_value_string": "x\ny"})
        assert line.endswith("\n")
        assert line.count("\n") == 1
        assert json.loads(line) == {"metric_path": "a b", "metric_value_string": "x\ny"}


class TestQueueSink:
    def test_multiple_producers(self):
        sink = QueueSink()

        def produce(n):
            for i in range(100):
                sink.emit({"producer": n, "i": i})

        threads = [threading.Thread(target=produce, args=(n,)) for n in range(4)]
        for t in threads:
            t.start()
        for t in threads:
            t.join()
        assert sink.queue.qsize() == 400


class TestEventWriter:
    def test_writes_events(self):
        sink = QueueSink()
        stream = io.StringIO()
        writer = EventWriter(sink, stream)
        writer.start()
        try:
            sink.emit(FIELDS)
            sink.emit(dict(FIELDS, metric_value_number=3))
            assert wait_until(lambda: writer.written == 2)
        finally:
            writer.stop()

        lines = stream.getvalue().splitlines()
        events = [json.loads(line) for line in lines]
        assert [e["metric_value_number"] for e in events] == [2212, 3]
        assert all(e["host"] == "192.168.1.2" for e in events)

    def test_stop_drains_queue(self):
        sink = QueueSink()
        stream = io.StringIO()
        writer = EventWriter(sink, stream)
        for i in range(5):
            sink.emit(dict(FIELDS, metric_value_number=i))
        writer.stop()
        assert writer.written == 5
        assert len(stream.getvalue().splitlines()) == 5


class BrokenPipeStream(io.StringIO):
    """Fails the first *failures* writes, then behaves normally."""

    def __init__(self, failures):
        super().__init__()
        self.failures = failures

    def write(self, s):
        if self.failures > 0:
            self.failures -= 1
            raise BrokenPipeError(32, "Broken pipe")
        return super().write(s)


class TestWriteFailures:
    def test_writer_survives_failed_writes(self, caplog):
        sink = QueueSink()
        stream = BrokenPipeStream(failures=2)
        writer = EventWriter(sink, stream)
        writer.start()
        try:
            for i in range(5):
                sink.emit(dict(FIELDS, metric_value_number=i))
            assert wait_until(lambda: writer.written + writer.dropped == 5)
            assert writer.is_alive()
            assert sink.queue.empty()
        finally:
            writer.stop()

        assert writer.dropped == 2
        assert writer.written == 3
        assert "Broken pipe" in caplog.text
