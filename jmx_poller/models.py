"""Target configuration and metric sample models."""

from dataclasses import dataclass, field
from typing import Any


@dataclass(frozen=True)
class Query:
    object_name: str                       # may contain '*' patterns
    object_alias: str | None = None        # may contain ${key} placeholders
    attributes: tuple[str, ...] | None = None  # None -> every attribute

    @classmethod
    def from_dict(cls, data: dict) -> "Query":
        attributes = data.get("attributes")
        return cls(
            object_name=data["object_name"],
            object_alias=data.get("object_alias"),
            attributes=tuple(attributes) if attributes is not None else None,
        )


@dataclass(frozen=True)
class TargetConfig:
    host: str
    port: int
    queries: tuple[Query, ...] = field(default_factory=tuple)
    url: str | None = None
    username: str | None = None
    password: str | None = None
    alias: str | None = None

    @classmethod
    def from_document(cls, doc: dict) -> "TargetConfig":
        """Build a TargetConfig from a document that already passed validation."""
        return cls(
            host=doc["host"],
            port=doc["port"],
            queries=tuple(Query.from_dict(q) for q in doc["queries"]),
            url=doc.get("url"),
            username=doc.get("username"),
            password=doc.get("password"),
            alias=doc.get("alias"),
        )

    @property
    def base_metric_path(self) -> str:
        if self.alias is not None:
            return self.alias
        return f"{self.host}_{self.port}"

    @property
    def credentials(self) -> tuple[str, str] | None:
        if self.username is not None and self.password is not None:
            return self.username, self.password
        return None

    @property
    def display(self) -> str:
        return f"{self.host}:{self.port}"


@dataclass(frozen=True)
class MetricSample:
    metric_path: str
    value: Any
    wire_type: str       # "number" or "string"
    host: str
    type: str

    def to_fields(self, path: str) -> dict[str, Any]:
        """Convert to the mapping handed to the output sink."""
        fields = {
            "host": self.host,
            "path": path,
            "type": self.type,
            "metric_path": self.metric_path,
        }
        if self.wire_type == "number":
            fields["metric_value_number"] = self.value
        else:
            fields["metric_value_string"] = self.value
        return fields
