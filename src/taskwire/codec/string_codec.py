"""Plain-text family: raw text in, raw text out."""

from __future__ import annotations

from typing import Any

from taskwire.codec.base import Codec
from taskwire.schema import SchemaDocument, SchemaKind, StringSchema


class StringCodec(Codec):
    family = "string"
    supported_kinds = frozenset({SchemaKind.STRING})

    def __init__(
        self,
        schema: SchemaDocument | dict[str, Any] | None = None,
        *,
        description: str | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(schema or StringSchema(description=description), **kwargs)

    def _parse(self, data: str) -> str:
        return data

    def _render(self, value: str) -> str:
        return value


def string_codec(description: str | None = None, **kwargs: Any) -> StringCodec:
    return StringCodec(description=description, **kwargs)
