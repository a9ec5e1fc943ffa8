"""JSON wire format."""

from __future__ import annotations

import json
from typing import Any

from taskwire.codec.base import Codec, to_plain
from taskwire.errors import DecodeError, EncodeError
from taskwire.schema import ABSENT, SchemaDocument, SchemaKind


class JSONCodec(Codec):
    """JSON codec.

    Void schemas map to empty text: ``ABSENT`` encodes to ``""`` and blank
    input decodes to ``ABSENT``.
    """

    family = "json"
    supported_kinds = frozenset(SchemaKind) - {SchemaKind.DATE}

    def __init__(
        self,
        schema: SchemaDocument | dict[str, Any],
        *,
        validate: bool = True,
        indent: int | None = 2,
        **kwargs: Any,
    ) -> None:
        super().__init__(schema, validate=validate, **kwargs)
        self.indent = indent

    def _parse(self, data: str) -> Any:
        if self.schema.kind is SchemaKind.VOID and not data.strip():
            return ABSENT
        try:
            return json.loads(data)
        except json.JSONDecodeError as e:
            raise DecodeError(self.family, str(e)) from e

    def _render(self, value: Any) -> str:
        if value is ABSENT:
            return ""
        try:
            return json.dumps(
                to_plain(value), indent=self.indent, ensure_ascii=False, allow_nan=False
            )
        except (TypeError, ValueError) as e:
            raise EncodeError(f"Cannot encode value as JSON: {e}") from e


def json_codec(schema: SchemaDocument | dict[str, Any], **kwargs: Any) -> JSONCodec:
    """Bind a JSON codec to ``schema``."""

    return JSONCodec(schema, **kwargs)
