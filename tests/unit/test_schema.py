"""Unit tests for schema documents and the type mapping."""

from __future__ import annotations

import datetime as dt

import pydantic
import pytest

from taskwire.errors import RegistryFrozenError, ValidationError
from taskwire.schema import (
    ABSENT,
    ArraySchema,
    NumberSchema,
    ObjectSchema,
    SchemaKind,
    StringSchema,
    TypeMapping,
    conforms,
    default_type_mapping,
    describe_kind,
    kinds_in,
    parse_schema,
    validate,
    walk,
)


def test_parse_schema_builds_nested_nodes() -> None:
    schema = parse_schema(
        {
            "type": "object",
            "description": "a point",
            "properties": {
                "x": {"type": "number"},
                "tags": {"type": "array", "elements": {"type": "string"}},
            },
        }
    )

    assert isinstance(schema, ObjectSchema)
    assert schema.description == "a point"
    assert list(schema.properties) == ["x", "tags"]
    assert isinstance(schema.properties["tags"], ArraySchema)
    assert isinstance(schema.properties["tags"].elements, StringSchema)


def test_parse_schema_rejects_unknown_kind() -> None:
    with pytest.raises(pydantic.ValidationError):
        parse_schema({"type": "tuple"})


def test_schema_nodes_are_immutable() -> None:
    schema = NumberSchema()
    with pytest.raises(pydantic.ValidationError):
        schema.description = "changed"  # type: ignore[misc]


def test_object_properties_are_read_only() -> None:
    schema = parse_schema({"type": "object", "properties": {"a": {"type": "number"}}})
    assert isinstance(schema, ObjectSchema)

    with pytest.raises(TypeError):
        schema.properties["self"] = schema  # type: ignore[index]
    assert list(schema.properties) == ["a"]
    assert list(walk(schema))[-1] == NumberSchema()


def test_walk_is_preorder_in_document_order() -> None:
    schema = parse_schema(
        {
            "type": "object",
            "properties": {
                "a": {"type": "array", "elements": {"type": "boolean"}},
                "b": {"type": "null"},
            },
        }
    )

    assert [node.kind for node in walk(schema)] == [
        SchemaKind.OBJECT,
        SchemaKind.ARRAY,
        SchemaKind.BOOLEAN,
        SchemaKind.NULL,
    ]
    assert kinds_in(schema) == {
        SchemaKind.OBJECT,
        SchemaKind.ARRAY,
        SchemaKind.BOOLEAN,
        SchemaKind.NULL,
    }


@pytest.mark.parametrize(
    ("value", "expected"),
    [
        (ABSENT, "absent"),
        (None, "null"),
        (True, "boolean"),
        (3, "number"),
        (2.5, "number"),
        ("x", "string"),
        (dt.date(2024, 5, 1), "date"),
        ([1], "array"),
        ({"a": 1}, "object"),
        (float("nan"), "non-finite number"),
        (float("-inf"), "non-finite number"),
        (object(), "object"),
    ],
)
def test_describe_kind(value: object, expected: str) -> None:
    assert describe_kind(value) == expected


def test_number_rejects_booleans() -> None:
    with pytest.raises(ValidationError) as excinfo:
        validate(True, NumberSchema())
    assert excinfo.value.path == "$"
    assert excinfo.value.expected == "number"
    assert excinfo.value.actual == "boolean"


def test_array_failure_reports_element_index() -> None:
    schema = parse_schema({"type": "array", "elements": {"type": "number"}})

    with pytest.raises(ValidationError) as excinfo:
        validate([1, 2, "three"], schema)

    assert excinfo.value.path == "$[2]"
    assert str(excinfo.value) == "$[2]: expected number, got string"


def test_object_failure_reports_key_path() -> None:
    schema = parse_schema(
        {
            "type": "object",
            "properties": {
                "user": {
                    "type": "object",
                    "properties": {"age": {"type": "number"}},
                }
            },
        }
    )

    with pytest.raises(ValidationError) as excinfo:
        validate({"user": {"age": "old"}}, schema)

    assert excinfo.value.path == "$.user.age"
    assert excinfo.value.actual == "string"


def test_missing_key_is_reported_unless_void() -> None:
    schema = parse_schema(
        {
            "type": "object",
            "properties": {"name": {"type": "string"}, "extra": {"type": "void"}},
        }
    )

    assert conforms({"name": "n"}, schema)
    assert conforms({"name": "n", "other": 1}, schema)

    with pytest.raises(ValidationError) as excinfo:
        validate({}, schema)
    assert excinfo.value.path == "$.name"
    assert excinfo.value.actual == "missing"


def test_void_property_must_be_written_by_omission() -> None:
    schema = parse_schema(
        {
            "type": "object",
            "properties": {"name": {"type": "string"}, "extra": {"type": "void"}},
        }
    )

    with pytest.raises(ValidationError) as excinfo:
        validate({"name": "n", "extra": ABSENT}, schema)
    assert excinfo.value.path == "$.extra"
    assert excinfo.value.expected == "missing"
    assert excinfo.value.actual == "absent"


def test_absent_never_fills_a_required_property() -> None:
    schema = parse_schema({"type": "object", "properties": {"name": {"type": "string"}}})

    with pytest.raises(ValidationError) as excinfo:
        validate({"name": ABSENT}, schema)
    assert excinfo.value.path == "$.name"
    assert excinfo.value.expected == "string"


def test_array_elements_are_never_absent() -> None:
    schema = parse_schema({"type": "array", "elements": {"type": "void"}})

    assert conforms([], schema)
    with pytest.raises(ValidationError) as excinfo:
        validate([ABSENT], schema)
    assert excinfo.value.path == "$[0]"
    assert excinfo.value.actual == "absent"


@pytest.mark.parametrize("value", [float("nan"), float("inf"), float("-inf")])
def test_number_rejects_non_finite_floats(value: float) -> None:
    assert not conforms(value, NumberSchema())
    assert conforms(1e308, NumberSchema())


def test_first_failure_in_document_order_wins() -> None:
    schema = parse_schema(
        {
            "type": "object",
            "properties": {"a": {"type": "number"}, "b": {"type": "number"}},
        }
    )

    with pytest.raises(ValidationError) as excinfo:
        validate({"b": "x", "a": "y"}, schema)
    assert excinfo.value.path == "$.a"


def test_void_accepts_only_absent() -> None:
    schema = parse_schema({"type": "void"})

    assert conforms(ABSENT, schema)
    assert not conforms(None, schema)
    assert not conforms("", schema)


def test_date_accepts_dates_and_datetimes() -> None:
    schema = parse_schema({"type": "date"})

    assert conforms(dt.date(2024, 1, 1), schema)
    assert conforms(dt.datetime(2024, 1, 1, 12, 0), schema)
    assert not conforms("2024-01-01", schema)


def test_type_mapping_freeze_requires_every_kind() -> None:
    mapping = TypeMapping()
    mapping.register(SchemaKind.STRING, lambda *_: None)

    with pytest.raises(LookupError, match="void"):
        mapping.freeze()
    assert not mapping.frozen


def test_frozen_type_mapping_rejects_registration() -> None:
    mapping = default_type_mapping()
    mapping.freeze()

    assert mapping.frozen
    with pytest.raises(RegistryFrozenError):
        mapping.register(SchemaKind.STRING, lambda *_: None)


def test_custom_checker_replaces_default() -> None:
    mapping = default_type_mapping()

    def non_empty(_mapping: TypeMapping, value: object, _schema: object, path: str) -> None:
        if not isinstance(value, str) or not value:
            raise ValidationError(path, "non-empty string", describe_kind(value))

    mapping.register(SchemaKind.STRING, non_empty)

    assert mapping.conforms("x", StringSchema())
    assert not mapping.conforms("", StringSchema())
    assert conforms("", StringSchema())
