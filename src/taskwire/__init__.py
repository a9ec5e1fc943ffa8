"""taskwire: typed tasks compiled into a command line.

Register tasks with a parameter spec, an input binding and named output
bindings; a dispatcher turns the registry into sub-commands and runs one
task per process:
- schema-checked JSON, YAML and plain-text codecs
- stdin/stdout/stderr, file and in-memory channels
- a per-task effect context for logging and external commands
"""

__version__ = "0.1.0"

from taskwire.app import TaskApp
from taskwire.channel import (
    FileChannel,
    MemoryReader,
    MemoryWriter,
    Reader,
    StderrWriter,
    StdinReader,
    StdoutWriter,
    Writer,
)
from taskwire.codec import json_codec, string_codec, yaml_codec
from taskwire.dispatcher import Dispatcher
from taskwire.effect import Effect
from taskwire.errors import (
    DecodeError,
    EncodeError,
    RegistryFrozenError,
    ShellCommandError,
    TaskwireError,
    UnknownTask,
    UsageError,
    ValidationError,
)
from taskwire.registry import TaskRegistry, param, read_from, write_to
from taskwire.schema import ABSENT, parse_schema

__all__ = [
    "__version__",
    "ABSENT",
    "DecodeError",
    "Dispatcher",
    "Effect",
    "EncodeError",
    "FileChannel",
    "MemoryReader",
    "MemoryWriter",
    "Reader",
    "RegistryFrozenError",
    "ShellCommandError",
    "StderrWriter",
    "StdinReader",
    "StdoutWriter",
    "TaskApp",
    "TaskRegistry",
    "TaskwireError",
    "UnknownTask",
    "UsageError",
    "ValidationError",
    "Writer",
    "json_codec",
    "param",
    "parse_schema",
    "read_from",
    "string_codec",
    "write_to",
    "yaml_codec",
]
