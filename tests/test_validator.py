"""Tests for target configuration validation."""

import itertools

import pytest

from jmx_poller.validator import (
    UNPAIRED_CREDENTIALS,
    ConfigValidator,
    validate_configuration,
)

REQUIRED = ("host", "port", "queries")


class TestValidDocuments:
    def test_full_document(self, valid_document):
        assert validate_configuration(valid_document) == []

    def test_minimal_document(self):
        doc = {"host": "localhost", "port": 9999, "queries": [{"object_name": "java.lang:type=Memory"}]}
        assert validate_configuration(doc) == []

    def test_credentials_pair(self, valid_document):
        valid_document["username"] = "user"
        valid_document["password"] = "pass"
        assert validate_configuration(valid_document) == []

    def test_url_override(self, valid_document):
        valid_document["url"] = "http://10.0.0.1:8778/jolokia/"
        assert validate_configuration(valid_document) == []

    def test_class_instance_matches_function(self, valid_document):
        assert ConfigValidator().validate(valid_document) == []


class TestMissingParameters:
    @pytest.mark.parametrize("missing", [
        combo for n in (1, 2, 3) for combo in itertools.combinations(REQUIRED, n)
    ])
    def test_one_error_per_missing_key(self, valid_document, missing):
        for key in missing:
            del valid_document[key]
        errors = validate_configuration(valid_document)
        assert errors == [f"Missing parameter '{key}'." for key in missing]

    def test_empty_document(self):
        assert validate_configuration({}) == [
            "Missing parameter 'host'.",
            "Missing parameter 'port'.",
            "Missing parameter 'queries'.",
        ]


class TestBadTypes:
    @pytest.mark.parametrize("port,actual", [
        ("1335", "str"),
        (1335.0, "float"),
        (True, "bool"),
        (None, "NoneType"),
        ([1335], "list"),
    ])
    def test_port_must_be_integer(self, valid_document, port, actual):
        valid_document["port"] = port
        assert validate_configuration(valid_document) == [
            f"Bad type for parameter 'port', expecting 'int', found '{actual}'.",
        ]

    def test_port_error_independent_of_other_fields(self, valid_document):
        valid_document["port"] = "1335"
        valid_document["host"] = 42
        valid_document["alias"] = ["x"]
        errors = validate_configuration(valid_document)
        port_errors = [e for e in errors if "'port'" in e]
        assert port_errors == ["Bad type for parameter 'port', expecting 'int', found 'str'."]
        assert len(errors) == 3

    def test_host_must_be_string(self, valid_document):
        valid_document["host"] = 1921681
        assert validate_configuration(valid_document) == [
            "Bad type for parameter 'host', expecting 'str', found 'int'.",
        ]

    def test_alias_must_be_string(self, valid_document):
        valid_document["alias"] = 12
        assert validate_configuration(valid_document) == [
            "Bad type for parameter 'alias', expecting 'str', found 'int'.",
        ]

    def test_queries_must_be_list(self, valid_document):
        valid_document["queries"] = "java.lang:type=Memory"
        assert validate_configuration(valid_document) == [
            "Bad type for parameter 'queries', expecting 'list', found 'str'.",
        ]

    def test_queries_must_not_be_empty(self, valid_document):
        valid_document["queries"] = []
        assert validate_configuration(valid_document) == ["Parameter 'queries' must not be empty."]

    def test_document_must_be_mapping(self):
        assert validate_configuration(["host", "port"]) == [
            "Bad type for configuration document, expecting 'dict', found 'list'.",
        ]


class TestQueries:
    def test_query_must_be_mapping(self, valid_document):
        valid_document["queries"][1] = "java.lang:type=Runtime"
        assert validate_configuration(valid_document) == [
            "Bad type for queries[1], expecting 'dict', found 'str'.",
        ]

    def test_missing_object_name(self, valid_document):
        del valid_document["queries"][2]["object_name"]
        assert validate_configuration(valid_document) == [
            "Missing parameter 'object_name' in queries[2].",
        ]

    def test_object_alias_must_be_string(self, valid_document):
        valid_document["queries"][0]["object_alias"] = 7
        assert validate_configuration(valid_document) == [
            "Bad type for parameter 'object_alias' in queries[0], expecting 'str', found 'int'.",
        ]

    def test_attributes_must_be_list(self, valid_document):
        valid_document["queries"][1]["attributes"] = "Uptime"
        assert validate_configuration(valid_document) == [
            "Bad type for parameter 'attributes' in queries[1], expecting 'list', found 'str'.",
        ]

    def test_attribute_names_must_be_strings(self, valid_document):
        valid_document["queries"][1]["attributes"] = ["Uptime", 3]
        assert validate_configuration(valid_document) == [
            "Bad type for parameter 'attributes[1]' in queries[1], expecting 'str', found 'int'.",
        ]


class TestCredentials:
    @pytest.mark.parametrize("present", ["username", "password"])
    def test_half_pair_rejected(self, valid_document, present):
        valid_document[present] = "secret"
        assert validate_configuration(valid_document) == [UNPAIRED_CREDENTIALS]

    def test_credentials_must_be_strings(self, valid_document):
        valid_document["username"] = "user"
        valid_document["password"] = 1234
        assert validate_configuration(valid_document) == [
            "Bad type for parameter 'password', expecting 'str', found 'int'.",
        ]


class TestAccumulation:
    def test_all_errors_reported_in_order(self):
        doc = {
            "port": "x",
            "queries": [{"object_alias": 3}, 5, {"object_name": "a:b=c", "attributes": 1}],
        }
        assert validate_configuration(doc) == [
            "Missing parameter 'host'.",
            "Bad type for parameter 'port', expecting 'int', found 'str'.",
            "Missing parameter 'object_name' in queries[0].",
            "Bad type for parameter 'object_alias' in queries[0], expecting 'str', found 'int'.",
            "Bad type for queries[1], expecting 'dict', found 'int'.",
            "Bad type for parameter 'attributes' in queries[2], expecting 'list', found 'int'.",
        ]

    def test_validation_does_not_raise_on_garbage(self):
        for doc in (None, 42, "text", [{}]):
            errors = validate_configuration(doc)
            assert len(errors) == 1
            assert errors[0].startswith("Bad type for configuration document")
