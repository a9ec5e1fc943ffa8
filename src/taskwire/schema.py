"""Schema documents and the type mapping from schemas to Python values.

A schema document is a closed, recursive description of a value's shape::

    {"type": "object", "properties": {"a": {"type": "number"}}}

Each node is an immutable pydantic model discriminated on ``type``, and
object properties are held in a read-only mapping. Nodes cannot be mutated
after construction, so a document is always a finite tree.

``void`` has a single value, :data:`ABSENT`, and it is spelled by absence
inside composites: a void object property conforms only when its key is
missing, and no array element may be ``ABSENT``. Every conforming value
therefore has exactly one wire form.

The *type mapping* decides whether a Python value belongs to the domain a
schema describes. It is a registry of ``{kind -> checker}``; the default
registry covers every :class:`SchemaKind` and is frozen by the dispatcher
before any task runs. Freezing fails if some kind has no checker, so adding a
kind without teaching the mapping about it is caught before dispatch rather
than silently accepted.
"""

from __future__ import annotations

import datetime as dt
import math
from collections.abc import Callable, Iterator, Mapping
from enum import Enum
from types import MappingProxyType
from typing import Annotated, Any, Final, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator

from taskwire.errors import RegistryFrozenError, ValidationError


class SchemaKind(str, Enum):
    VOID = "void"
    NULL = "null"
    BOOLEAN = "boolean"
    NUMBER = "number"
    STRING = "string"
    DATE = "date"
    ARRAY = "array"
    OBJECT = "object"


class _Absent:
    """Marker for "no value"; the only member of the ``void`` domain."""

    _instance: _Absent | None = None

    def __new__(cls) -> _Absent:
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __repr__(self) -> str:
        return "ABSENT"

    def __bool__(self) -> bool:
        return False

    def __reduce__(self) -> str:
        return "ABSENT"


ABSENT: Final = _Absent()


class _SchemaNode(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")

    description: str | None = None

    @property
    def kind(self) -> SchemaKind:
        return SchemaKind(self.type)  # type: ignore[attr-defined]


class VoidSchema(_SchemaNode):
    type: Literal["void"] = "void"


class NullSchema(_SchemaNode):
    type: Literal["null"] = "null"


class BooleanSchema(_SchemaNode):
    type: Literal["boolean"] = "boolean"


class NumberSchema(_SchemaNode):
    type: Literal["number"] = "number"


class StringSchema(_SchemaNode):
    type: Literal["string"] = "string"


class DateSchema(_SchemaNode):
    type: Literal["date"] = "date"


class ArraySchema(_SchemaNode):
    type: Literal["array"] = "array"
    elements: SchemaDocument


class ObjectSchema(_SchemaNode):
    type: Literal["object"] = "object"
    properties: Mapping[str, SchemaDocument] = Field(default_factory=dict)

    @field_validator("properties", mode="after")
    @classmethod
    def _read_only(cls, value: Mapping[str, Any]) -> Mapping[str, Any]:
        return MappingProxyType(dict(value))


SchemaDocument = Annotated[
    Union[
        VoidSchema,
        NullSchema,
        BooleanSchema,
        NumberSchema,
        StringSchema,
        DateSchema,
        ArraySchema,
        ObjectSchema,
    ],
    Field(discriminator="type"),
]

ArraySchema.model_rebuild()
ObjectSchema.model_rebuild()

_SCHEMA_ADAPTER: TypeAdapter[Any] = TypeAdapter(SchemaDocument)


def parse_schema(raw: Mapping[str, Any] | _SchemaNode) -> SchemaDocument:
    """Build a schema document from a plain mapping.

    Already-built nodes are returned unchanged. Malformed documents raise
    ``pydantic.ValidationError``.
    """

    if isinstance(raw, _SchemaNode):
        return raw
    return _SCHEMA_ADAPTER.validate_python(raw)


def walk(schema: SchemaDocument) -> Iterator[SchemaDocument]:
    """Yield every node of ``schema`` in pre-order."""

    stack: list[SchemaDocument] = [schema]
    while stack:
        node = stack.pop(0)
        yield node
        if isinstance(node, ArraySchema):
            stack.insert(0, node.elements)
        elif isinstance(node, ObjectSchema):
            stack[0:0] = list(node.properties.values())


def kinds_in(schema: SchemaDocument) -> set[SchemaKind]:
    return {node.kind for node in walk(schema)}


def describe_kind(value: Any) -> str:
    """Name the schema kind a Python value would belong to."""

    if value is ABSENT:
        return "absent"
    if value is None:
        return "null"
    if isinstance(value, bool):
        return "boolean"
    if isinstance(value, float) and not math.isfinite(value):
        return "non-finite number"
    if isinstance(value, (int, float)):
        return "number"
    if isinstance(value, str):
        return "string"
    if isinstance(value, dt.date):
        return "date"
    if isinstance(value, (list, tuple)):
        return "array"
    if isinstance(value, Mapping):
        return "object"
    return type(value).__name__


Checker = Callable[["TypeMapping", Any, Any, str], None]


class TypeMapping:
    """Registry of per-kind conformance checkers."""

    def __init__(self) -> None:
        self._checkers: dict[SchemaKind, Checker] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(self, kind: SchemaKind, checker: Checker) -> None:
        if self._frozen:
            raise RegistryFrozenError(f"Type mapping is frozen; cannot register {kind.value!r}")
        self._checkers[kind] = checker

    def freeze(self) -> None:
        """Reject further registration.

        Raises:
            LookupError: If some schema kind has no checker.
        """
        missing = [kind.value for kind in SchemaKind if kind not in self._checkers]
        if missing:
            raise LookupError(f"No type mapping registered for schema kinds: {missing}")
        self._frozen = True

    def validate(self, value: Any, schema: SchemaDocument, path: str = "$") -> None:
        """Raise :class:`ValidationError` for the first non-conforming node."""

        checker = self._checkers.get(schema.kind)
        if checker is None:
            raise LookupError(f"No type mapping registered for schema kind {schema.kind.value!r}")
        checker(self, value, schema, path)

    def conforms(self, value: Any, schema: SchemaDocument) -> bool:
        try:
            self.validate(value, schema)
        except ValidationError:
            return False
        return True


def _scalar(kind: SchemaKind, accepts: Callable[[Any], bool]) -> Checker:
    def check(_mapping: TypeMapping, value: Any, _schema: Any, path: str) -> None:
        if not accepts(value):
            raise ValidationError(path, kind.value, describe_kind(value))

    return check


def _check_array(mapping: TypeMapping, value: Any, schema: ArraySchema, path: str) -> None:
    if not isinstance(value, (list, tuple)):
        raise ValidationError(path, SchemaKind.ARRAY.value, describe_kind(value))
    for index, item in enumerate(value):
        item_path = f"{path}[{index}]"
        if item is ABSENT:
            raise ValidationError(item_path, schema.elements.kind.value, "absent")
        mapping.validate(item, schema.elements, item_path)


def _check_object(mapping: TypeMapping, value: Any, schema: ObjectSchema, path: str) -> None:
    if not isinstance(value, Mapping):
        raise ValidationError(path, SchemaKind.OBJECT.value, describe_kind(value))
    for key, sub in schema.properties.items():
        sub_path = f"{path}.{key}"
        is_void = sub.kind is SchemaKind.VOID
        if key not in value:
            if is_void:
                continue
            raise ValidationError(sub_path, sub.kind.value, "missing")
        if value[key] is ABSENT:
            # A void property is written by leaving its key out.
            raise ValidationError(sub_path, "missing" if is_void else sub.kind.value, "absent")
        mapping.validate(value[key], sub, sub_path)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        return False
    return not isinstance(value, float) or math.isfinite(value)


def default_type_mapping() -> TypeMapping:
    """Build a type mapping covering every built-in schema kind."""

    mapping = TypeMapping()
    mapping.register(SchemaKind.VOID, _scalar(SchemaKind.VOID, lambda v: v is ABSENT))
    mapping.register(SchemaKind.NULL, _scalar(SchemaKind.NULL, lambda v: v is None))
    mapping.register(SchemaKind.BOOLEAN, _scalar(SchemaKind.BOOLEAN, lambda v: isinstance(v, bool)))
    mapping.register(SchemaKind.NUMBER, _scalar(SchemaKind.NUMBER, _is_number))
    mapping.register(SchemaKind.STRING, _scalar(SchemaKind.STRING, lambda v: isinstance(v, str)))
    mapping.register(SchemaKind.DATE, _scalar(SchemaKind.DATE, lambda v: isinstance(v, dt.date)))
    mapping.register(SchemaKind.ARRAY, _check_array)
    mapping.register(SchemaKind.OBJECT, _check_object)
    return mapping


DEFAULT_TYPE_MAPPING = default_type_mapping()


def validate(value: Any, schema: SchemaDocument) -> None:
    """Validate ``value`` against ``schema`` using the default type mapping."""

    DEFAULT_TYPE_MAPPING.validate(value, schema)


def conforms(value: Any, schema: SchemaDocument) -> bool:
    return DEFAULT_TYPE_MAPPING.conforms(value, schema)
