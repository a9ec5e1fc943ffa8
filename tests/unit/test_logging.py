"""Unit tests for log formatting and handler setup."""

from __future__ import annotations

import json
import logging
import re
import sys

import pytest

from taskwire.logging import JsonFormatter, configure_logging, task_of, text_formatter


def _record(**extra: object) -> logging.LogRecord:
    record = logging.LogRecord(
        name="taskwire.task.add",
        level=logging.INFO,
        pathname=__file__,
        lineno=1,
        msg="Adding %s and %s",
        args=(2, 3),
        exc_info=None,
    )
    for key, value in extra.items():
        setattr(record, key, value)
    return record


def test_text_format_tags_level_and_logger() -> None:
    line = text_formatter().format(_record())

    assert re.fullmatch(
        r"\d{4}-\d{2}-\d{2} \d{2}:\d{2}:\d{2} \[INFO\] \(taskwire\.task\.add\): Adding 2 and 3",
        line,
    )


def test_json_format_includes_extra_fields() -> None:
    payload = json.loads(JsonFormatter().format(_record(task="add", exit_code=0)))

    assert payload["level"] == "INFO"
    assert payload["logger"] == "taskwire.task.add"
    assert payload["message"] == "Adding 2 and 3"
    assert payload["task"] == "add"
    assert payload["extra"] == {"exit_code": 0}
    assert "exception" not in payload


def test_json_format_includes_exception() -> None:
    try:
        raise RuntimeError("kaput")
    except RuntimeError:
        record = _record()
        record.exc_info = sys.exc_info()

    payload = json.loads(JsonFormatter().format(record))

    assert "RuntimeError: kaput" in payload["exception"]


def test_configure_logging_writes_to_stderr(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("debug")
    configure_logging("info")

    logging.getLogger("taskwire.task.demo").info("hello")
    logging.getLogger("taskwire.task.demo").debug("hidden")

    captured = capsys.readouterr()
    assert captured.out == ""
    assert captured.err.count("hello") == 1
    assert "hidden" not in captured.err
    assert len(logging.getLogger().handlers) == 1


def test_configure_logging_json(capsys: pytest.CaptureFixture[str]) -> None:
    configure_logging("INFO", "json")

    logging.getLogger("taskwire").warning("careful", extra={"task": "x"})

    line = capsys.readouterr().err.strip()
    payload = json.loads(line)
    assert payload["task"] == "x"
    assert "extra" not in payload


def test_task_is_taken_from_the_task_logger_name() -> None:
    payload = json.loads(JsonFormatter().format(_record()))

    assert payload["task"] == "add"
    assert "extra" not in payload


def test_explicit_task_wins_over_logger_name() -> None:
    assert task_of(_record(task="other")) == "other"


def test_records_outside_a_task_have_null_task() -> None:
    record = _record()
    record.name = "taskwire.dispatcher"

    payload = json.loads(JsonFormatter().format(record))

    assert task_of(record) is None
    assert payload["task"] is None


def test_other_caller_fields_stay_in_extra() -> None:
    payload = json.loads(JsonFormatter().format(_record(output="sum")))

    assert payload["extra"] == {"output": "sum"}
    assert "lineno" not in payload["extra"]
