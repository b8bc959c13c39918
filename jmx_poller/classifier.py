"""Classify raw attribute values into number/string metric samples."""

import numbers
from collections.abc import Mapping
from typing import Any

from jmx_poller.models import MetricSample

WIRE_NUMBER = "number"
WIRE_STRING = "string"
BOOL_SUFFIX = "_bool"


def sanitize_metric_path(path: str) -> str:
    """Spaces become underscores, double quotes are dropped."""
    return path.replace(" ", "_").replace('"', "")


def is_composite(value: Any) -> bool:
    """Composite data (a record of named fields) is fanned out by the caller."""
    return isinstance(value, Mapping)


def classify(value: Any) -> tuple[str, Any, str]:
    """Return (wire_type, value, path_suffix) for a raw attribute value."""
    # bool before Number: bool is an int subclass
    if isinstance(value, bool):
        return WIRE_NUMBER, 1 if value else 0, BOOL_SUFFIX
    if isinstance(value, numbers.Number):
        return WIRE_NUMBER, value, ""
    if value is None:
        return WIRE_STRING, "", ""
    return WIRE_STRING, str(value), ""


def build_sample(metric_path: str, value: Any, host: str, type_label: str) -> MetricSample:
    wire_type, wire_value, suffix = classify(value)
    return MetricSample(
        metric_path=sanitize_metric_path(metric_path) + suffix,
        value=wire_value,
        wire_type=wire_type,
        host=host,
        type=type_label,
    )
