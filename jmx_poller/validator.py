"""Target configuration validation against a JSON schema.

Every violation is reported as a message string. Nothing is raised for
malformed input; an empty result means the document can be polled.
"""

from jsonschema import Draft202012Validator, validators

MISSING_CONFIG_PARAMETER = "Missing parameter '{param}'."
BAD_TYPE_CONFIG_PARAMETER = "Bad type for parameter '{param}', expecting '{expected}', found '{actual}'."
BAD_TYPE_DOCUMENT = "Bad type for configuration document, expecting '{expected}', found '{actual}'."
EMPTY_QUERIES = "Parameter 'queries' must not be empty."
UNPAIRED_CREDENTIALS = "Parameters 'username' and 'password' must be set together."
MISSING_QUERY_PARAMETER = "Missing parameter '{param}' in queries[{index}]."
BAD_TYPE_QUERY = "Bad type for queries[{index}], expecting '{expected}', found '{actual}'."
BAD_TYPE_QUERY_PARAMETER = (
    "Bad type for parameter '{param}' in queries[{index}], "
    "expecting '{expected}', found '{actual}'."
)

REQUIRED_PARAMETERS = ("host", "port", "queries")
CONFIG_PARAMETERS = ("host", "port", "alias", "url", "username", "password", "queries")
QUERY_PARAMETERS = ("object_name", "object_alias", "attributes")

QUERY_SCHEMA = {
    "type": "object",
    "required": ["object_name"],
    "properties": {
        "object_name": {"type": "string"},
        "object_alias": {"type": "string"},
        "attributes": {"type": "array", "items": {"type": "string"}},
    },
}

TARGET_SCHEMA = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "type": "object",
    "required": list(REQUIRED_PARAMETERS),
    "properties": {
        "host": {"type": "string"},
        "port": {"type": "integer"},
        "alias": {"type": "string"},
        "url": {"type": "string"},
        "username": {"type": "string"},
        "password": {"type": "string"},
        "queries": {"type": "array", "minItems": 1, "items": QUERY_SCHEMA},
    },
    "dependentRequired": {
        "username": ["password"],
        "password": ["username"],
    },
}

# JSON Schema type -> Python type name used in messages
_TYPE_NAMES = {
    "string": "str",
    "integer": "int",
    "array": "list",
    "object": "dict",
}


def _is_strict_integer(checker, instance) -> bool:
    # Rejects True and 8080.0, which JSON Schema would otherwise accept.
    return isinstance(instance, int) and not isinstance(instance, bool)


_StrictValidator = validators.extend(
    Draft202012Validator,
    type_checker=Draft202012Validator.TYPE_CHECKER.redefine("integer", _is_strict_integer),
)


class ConfigValidator:
    """Validates parsed target documents and renders schema errors as messages."""

    def __init__(self, schema: dict | None = None):
        self._validator = _StrictValidator(schema or TARGET_SCHEMA)

    def validate(self, document) -> list[str]:
        """Return every violation found in *document*, in a stable order."""
        messages: dict[str, tuple] = {}
        for error in self._validator.iter_errors(document):
            for sort_key, message in self._render(error):
                messages.setdefault(message, sort_key)
        return sorted(messages, key=messages.__getitem__)

    def _render(self, error):
        path = list(error.absolute_path)
        kind = error.validator

        if kind == "type":
            expected = _TYPE_NAMES.get(error.validator_value, error.validator_value)
            actual = type(error.instance).__name__
            yield self._render_type(path, expected, actual)
        elif kind == "required":
            missing = [p for p in error.validator_value if p not in error.instance]
            for param in missing:
                if not path:
                    yield (1, REQUIRED_PARAMETERS.index(param), 0, 0, 0), \
                        MISSING_CONFIG_PARAMETER.format(param=param)
                else:
                    index = path[1]
                    yield (4, index, 1, 0, 0), \
                        MISSING_QUERY_PARAMETER.format(param=param, index=index)
        elif kind == "dependentRequired":
            yield (3, 0, 0, 0, 0), UNPAIRED_CREDENTIALS
        elif kind == "minItems" and path == ["queries"]:
            yield (2, CONFIG_PARAMETERS.index("queries"), 1, 0, 0), EMPTY_QUERIES
        else:
            yield (9, 0, 0, 0, 0), error.message

    @staticmethod
    def _render_type(path: list, expected: str, actual: str):
        if not path:
            return (0, 0, 0, 0, 0), BAD_TYPE_DOCUMENT.format(expected=expected, actual=actual)
        if len(path) == 1:
            param = path[0]
            return (2, CONFIG_PARAMETERS.index(param), 0, 0, 0), BAD_TYPE_CONFIG_PARAMETER.format(
                param=param, expected=expected, actual=actual,
            )
        index = path[1]
        if len(path) == 2:
            return (4, index, 0, 0, 0), BAD_TYPE_QUERY.format(
                index=index, expected=expected, actual=actual,
            )
        param = path[2]
        position = 0
        if len(path) == 4:
            # attributes[<n>] element
            position = path[3] + 1
            param = f"{param}[{path[3]}]"
        return (4, index, 2, QUERY_PARAMETERS.index(path[2]), position), BAD_TYPE_QUERY_PARAMETER.format(
            param=param, index=index, expected=expected, actual=actual,
        )


_default_validator = ConfigValidator()


def validate_configuration(document) -> list[str]:
    """Validate *document* with the default target schema."""
    return _default_validator.validate(document)
