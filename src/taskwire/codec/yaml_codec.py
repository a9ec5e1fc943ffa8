"""YAML wire format (PyYAML safe loader/dumper).

YAML is the only family that carries ``date`` natively: ``2024-05-01``
decodes to :class:`datetime.date` and timestamps to
:class:`datetime.datetime`.
"""

from __future__ import annotations

from typing import Any

import yaml

from taskwire.codec.base import Codec, to_plain
from taskwire.errors import DecodeError, EncodeError
from taskwire.schema import ABSENT, SchemaDocument, SchemaKind


class YAMLCodec(Codec):
    family = "yaml"
    supported_kinds = frozenset(SchemaKind)

    def __init__(
        self,
        schema: SchemaDocument | dict[str, Any],
        *,
        validate: bool = True,
        indent: int = 2,
        flow_style: bool | None = False,
        sort_keys: bool = False,
        width: int | None = None,
        **kwargs: Any,
    ) -> None:
        super().__init__(schema, validate=validate, **kwargs)
        self.indent = indent
        self.flow_style = flow_style
        self.sort_keys = sort_keys
        self.width = width

    def _parse(self, data: str) -> Any:
        if self.schema.kind is SchemaKind.VOID and not data.strip():
            return ABSENT
        try:
            return yaml.safe_load(data)
        except yaml.YAMLError as e:
            raise DecodeError(self.family, str(e)) from e

    def _render(self, value: Any) -> str:
        if value is ABSENT:
            return ""
        try:
            return yaml.safe_dump(
                to_plain(value),
                indent=self.indent,
                default_flow_style=self.flow_style,
                sort_keys=self.sort_keys,
                width=self.width,
                allow_unicode=True,
            )
        except yaml.YAMLError as e:
            raise EncodeError(f"Cannot encode value as YAML: {e}") from e


def yaml_codec(schema: SchemaDocument | dict[str, Any], **kwargs: Any) -> YAMLCodec:
    """Bind a YAML codec to ``schema``.

    Keyword arguments are the formatting options of :class:`YAMLCodec`
    (``indent``, ``flow_style``, ``sort_keys``, ``width``) plus ``validate``.
    """

    return YAMLCodec(schema, **kwargs)
