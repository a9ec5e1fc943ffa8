"""Logging configuration.

Uses standard library logging. Records go to stderr so stdout carries only
what output channels write. Two formats are available: a human-readable
line tagged with the logger name, and one JSON object per record.

JSON records carry the running task as a top-level ``task`` field. It comes
from an explicit ``extra={"task": ...}`` or, for records logged through a
task's :class:`~taskwire.effect.Effect`, from the logger name.
"""

from __future__ import annotations

import json
import logging
import sys
from datetime import UTC, datetime
from typing import Any

from taskwire.effect import LOGGER_PREFIX

TEXT_FORMAT = "%(asctime)s [%(levelname)s] (%(name)s): %(message)s"
TEXT_DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Whatever a bare LogRecord carries is bookkeeping, not caller-supplied extra.
_RECORD_FIELDS: frozenset[str] = frozenset(
    logging.LogRecord("", logging.NOTSET, "", 0, "", (), None).__dict__
) | {"message", "asctime", "task"}


def task_of(record: logging.LogRecord) -> str | None:
    """Name the task a record belongs to, if any."""

    task = getattr(record, "task", None)
    if task is not None:
        return str(task)
    prefix = f"{LOGGER_PREFIX}."
    if record.name.startswith(prefix):
        return record.name[len(prefix):]
    return None


class JsonFormatter(logging.Formatter):
    """One JSON object per record, with the task name promoted to the top level."""

    def format(self, record: logging.LogRecord) -> str:  # noqa: A003 (record)
        payload: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created, tz=UTC).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "task": task_of(record),
            "message": record.getMessage(),
        }

        extra = {
            key: value
            for key, value in record.__dict__.items()
            if key not in _RECORD_FIELDS and not key.startswith("_")
        }
        if extra:
            payload["extra"] = extra

        if record.exc_info:
            payload["exception"] = self.formatException(record.exc_info)

        return json.dumps(payload, ensure_ascii=False, default=str)


def text_formatter() -> logging.Formatter:
    return logging.Formatter(TEXT_FORMAT, datefmt=TEXT_DATE_FORMAT)


def configure_logging(level: str, fmt: str = "text") -> None:
    """Configure root logging on stderr.

    Args:
        level: Level name such as ``"INFO"`` or ``"debug"``.
        fmt: ``"text"`` or ``"json"``.
    """

    root = logging.getLogger()

    # Drop existing handlers so repeated runs in one process do not duplicate lines.
    for handler in list(root.handlers):
        root.removeHandler(handler)

    handler = logging.StreamHandler(stream=sys.stderr)
    handler.setFormatter(JsonFormatter() if fmt == "json" else text_formatter())

    root.addHandler(handler)
    root.setLevel(level.upper())
