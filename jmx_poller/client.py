"""Management client interface and the Jolokia (JMX over HTTP) implementation."""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any

import httpx

logger = logging.getLogger(__name__)


class ManagementClientError(Exception):
    """Connection, discovery or attribute retrieval failed."""


class ManagedObject(ABC):
    """A live managed bean matched by a query's object name pattern."""

    @abstractmethod
    def identifier(self) -> str:
        """Object name in 'domain:key=value,...' form."""

    @abstractmethod
    def known_attribute_names(self) -> set[str]:
        """Names of every attribute the object exposes."""

    @abstractmethod
    def read_attribute(self, name: str) -> Any:
        """Current attribute value. Raises ManagementClientError on failure."""


class ManagementClient(ABC):
    """Capability used by pollers to reach one JVM's management interface."""

    @abstractmethod
    def connect(self, host: str, port: int, url: str | None = None,
                credentials: tuple[str, str] | None = None):
        """Return a connection handle, or None if no usable connection exists."""

    @abstractmethod
    def find_matching_objects(self, connection, name_pattern: str) -> list[ManagedObject]:
        """Objects matching *name_pattern*; empty when nothing matches."""

    @abstractmethod
    def close(self, connection) -> None:
        ...


# ---------------------------------------------------------------------------
# Jolokia
# ---------------------------------------------------------------------------


def _escape_path(part: str) -> str:
    """Escape a Jolokia inner path element ('!' -> '!!', '/' -> '!/')."""
    return part.replace("!", "!!").replace("/", "!/")


@dataclass
class JolokiaConnection:
    http: httpx.Client
    url: str


class JolokiaObject(ManagedObject):
    def __init__(self, client: "JolokiaClient", connection: JolokiaConnection, object_name: str):
        self._client = client
        self._connection = connection
        self._object_name = object_name

    def identifier(self) -> str:
        return self._object_name

    def known_attribute_names(self) -> set[str]:
        domain, _, key_list = self._object_name.partition(":")
        path = f"{_escape_path(domain)}/{_escape_path(key_list)}/attr"
        value = self._client.request(self._connection, {"type": "list", "path": path})
        return set(value or {})

    def read_attribute(self, name: str) -> Any:
        return self._client.request(
            self._connection,
            {"type": "read", "mbean": self._object_name, "attribute": name},
        )

    def __repr__(self) -> str:
        return f"JolokiaObject({self._object_name!r})"


class JolokiaClient(ManagementClient):
    """Talks to a Jolokia agent with JSON POST requests.

    Composite attribute values come back as JSON objects, so they surface as
    dicts and are fanned out by the poller. *timeout* bounds every request,
    including a read against a hung bean.
    """

    def __init__(self, timeout: float = 10.0, transport: httpx.BaseTransport | None = None):
        self._timeout = timeout
        self._transport = transport

    def connect(self, host: str, port: int, url: str | None = None,
                credentials: tuple[str, str] | None = None) -> JolokiaConnection:
        target_url = url or f"http://{host}:{port}/jolokia/"
        auth = httpx.BasicAuth(*credentials) if credentials else None
        http = httpx.Client(auth=auth, timeout=self._timeout, transport=self._transport)
        connection = JolokiaConnection(http=http, url=target_url)
        try:
            version = self.request(connection, {"type": "version"})
        except Exception:
            http.close()
            raise
        agent = version.get("agent") if isinstance(version, dict) else version
        logger.info("Connected to Jolokia agent %s at %s", agent, target_url)
        return connection

    def find_matching_objects(self, connection: JolokiaConnection,
                              name_pattern: str) -> list[ManagedObject]:
        names = self.request(connection, {"type": "search", "mbean": name_pattern}) or []
        return [JolokiaObject(self, connection, name) for name in names]

    def close(self, connection: JolokiaConnection) -> None:
        connection.http.close()

    def request(self, connection: JolokiaConnection, payload: dict) -> Any:
        """POST one request and return its 'value'. Raises ManagementClientError."""
        kind = payload["type"]
        try:
            response = connection.http.post(connection.url, json=payload)
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ManagementClientError(f"{kind} request to {connection.url} failed: {e}") from e
        except ValueError as e:
            raise ManagementClientError(f"Invalid JSON in {kind} response from {connection.url}") from e

        if not isinstance(body, dict):
            raise ManagementClientError(f"Unexpected {kind} response from {connection.url}")
        status = body.get("status")
        if status != 200:
            raise ManagementClientError(
                f"{kind} request failed with status {status}: {body.get('error', 'unknown error')}"
            )
        return body.get("value")
