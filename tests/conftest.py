import json

import pytest

from tests.fakes import FakeClient, RecordingSink, jvm_objects


@pytest.fixture
def valid_document():
    return {
        "host": "192.168.1.2",
        "port": 1335,
        "alias": "test.homeserver.elasticsearch",
        "queries": [
            {"object_name": "java.lang:type=Memory", "object_alias": "Memory"},
            {
                "object_name": "java.lang:type=Runtime",
                "attributes": ["Uptime", "StartTime"],
                "object_alias": "Runtime",
            },
            {
                "object_name": "java.lang:type=GarbageCollector,name=*",
                "attributes": ["CollectionCount", "CollectionTime"],
                "object_alias": "${type}.${name}",
            },
            {"object_name": "java.nio:type=BufferPool,name=*", "object_alias": "${type}.${name}"},
        ],
    }


@pytest.fixture
def client():
    return FakeClient(jvm_objects())


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def conf_dir(tmp_path):
    d = tmp_path / "jmxconf"
    d.mkdir()
    return d


@pytest.fixture
def write_config(conf_dir):
    """Write a document (dict, or raw text) as a config file and return its path."""
    def _write(name, document):
        path = conf_dir / name
        text = document if isinstance(document, str) else json.dumps(document)
        path.write_text(text)
        return path
    return _write
