"""Codec package initialization."""

from taskwire.codec.base import Codec, Decoder, Encoder
from taskwire.codec.json_codec import JSONCodec, json_codec
from taskwire.codec.string_codec import StringCodec, string_codec
from taskwire.codec.yaml_codec import YAMLCodec, yaml_codec

__all__ = [
    "Codec",
    "Decoder",
    "Encoder",
    "JSONCodec",
    "StringCodec",
    "YAMLCodec",
    "json_codec",
    "string_codec",
    "yaml_codec",
]
