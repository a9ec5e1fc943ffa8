"""Abstract decoder/encoder contracts and the schema-bound codec base."""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Mapping
from typing import Any, ClassVar

from taskwire.errors import EncodeError, ValidationError
from taskwire.schema import (
    ABSENT,
    DEFAULT_TYPE_MAPPING,
    SchemaDocument,
    SchemaKind,
    TypeMapping,
    kinds_in,
    parse_schema,
)


class Decoder(ABC):
    """Turns raw text into a typed value."""

    @abstractmethod
    def decode(self, data: str) -> Any:
        """Decode raw text.

        Args:
            data: Raw text read from a channel.

        Returns:
            The decoded value.

        Raises:
            DecodeError: If the text is malformed in the wire format.
            ValidationError: If the text parses but does not fit the schema.
        """
        pass


class Encoder(ABC):
    """Turns a typed value into raw text."""

    @abstractmethod
    def encode(self, value: Any) -> str:
        """Encode a value.

        Args:
            value: A value from the schema's domain.

        Returns:
            Raw text ready to be written to a channel.

        Raises:
            EncodeError: If the value is outside the schema's domain.
        """
        pass


class Codec(Decoder, Encoder):
    """A decoder/encoder pair for one wire-format family, bound to a schema.

    Subclasses implement :meth:`_parse` and :meth:`_render`; this base class
    adds schema validation on both sides.
    """

    family: ClassVar[str]
    supported_kinds: ClassVar[frozenset[SchemaKind]]

    def __init__(
        self,
        schema: SchemaDocument | dict[str, Any],
        *,
        validate: bool = True,
        type_mapping: TypeMapping | None = None,
    ) -> None:
        self.schema: SchemaDocument = parse_schema(schema)
        self.validate = validate
        self.type_mapping = type_mapping or DEFAULT_TYPE_MAPPING

        unsupported = kinds_in(self.schema) - self.supported_kinds
        if unsupported:
            names = sorted(kind.value for kind in unsupported)
            raise ValueError(f"{self.family} codec does not support schema kinds: {names}")

    def decode(self, data: str) -> Any:
        value = self._parse(data)
        if self.validate:
            self.type_mapping.validate(value, self.schema)
        return value

    def encode(self, value: Any) -> str:
        if self.validate:
            try:
                self.type_mapping.validate(value, self.schema)
            except ValidationError as e:
                raise EncodeError(f"{self.family} output does not match its schema: {e}") from e
        return self._render(value)

    @abstractmethod
    def _parse(self, data: str) -> Any:
        pass

    @abstractmethod
    def _render(self, value: Any) -> str:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}(schema={self.schema.kind.value!r}, validate={self.validate})"


def to_plain(value: Any) -> Any:
    """Convert a domain value into plain lists/dicts for serialisers.

    Tuples become lists and mappings become dicts. Validation already keeps
    ``ABSENT`` out of composites; with validation disabled, object entries
    holding it are dropped and an array holding it raises ``EncodeError``.
    """

    if isinstance(value, Mapping):
        return {key: to_plain(item) for key, item in value.items() if item is not ABSENT}
    if isinstance(value, (list, tuple)):
        if any(item is ABSENT for item in value):
            raise EncodeError("ABSENT cannot appear inside an array")
        return [to_plain(item) for item in value]
    return value
