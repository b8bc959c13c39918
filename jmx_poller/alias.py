"""Object alias templates: ${key} placeholders resolved against object names.

An object name looks like ``java.lang:type=GarbageCollector,name=ParNew``.
The template ``${type}.${name}`` resolves to ``GarbageCollector.ParNew``.
"""

import logging
import re

logger = logging.getLogger(__name__)

_PLACEHOLDER_RE = re.compile(r"\$\{(.*?)\}")


class AliasResolutionError(ValueError):
    """A placeholder names a key the object name does not carry."""

    def __init__(self, key: str, object_name: str):
        super().__init__(f"Key '{key}' not found in object name '{object_name}'")
        self.key = key
        self.object_name = object_name


def parse_object_name(object_name: str) -> tuple[str, dict[str, str]]:
    """Split 'domain:k1=v1,k2=v2' into the domain and its key properties."""
    domain, _, key_list = object_name.partition(":")
    properties: dict[str, str] = {}
    for pair in key_list.split(","):
        key, sep, value = pair.partition("=")
        if sep:
            properties.setdefault(key.strip(), value)
    return domain, properties


def resolve(template: str, object_name: str) -> str:
    """Substitute every ${key} in *template* with the key's value in *object_name*.

    Placeholders are replaced one at a time, left to right. Scanning resumes
    after the inserted value so a value containing '${' is never re-expanded.
    Raises AliasResolutionError if a key is absent.
    """
    logger.debug("Replace ${.*} variables from %s using %s", template, object_name)
    _, properties = parse_object_name(object_name)
    result = template
    pos = 0
    while True:
        match = _PLACEHOLDER_RE.search(result, pos)
        if match is None:
            return result
        key = match.group(1)
        if key not in properties:
            raise AliasResolutionError(key, object_name)
        value = properties[key]
        result = result[:match.start()] + value + result[match.end():]
        pos = match.start() + len(value)
