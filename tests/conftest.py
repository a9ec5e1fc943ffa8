"""Test configuration and fixtures."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from pathlib import Path

import pytest

from taskwire.logging import TEXT_FORMAT, JsonFormatter
from taskwire.registry import TaskRegistry


@pytest.fixture(autouse=True)
def isolated_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Run every test in an empty directory with no taskwire settings in the environment."""
    monkeypatch.delenv("TASKWIRE_LOG_LEVEL", raising=False)
    monkeypatch.delenv("TASKWIRE_LOG_FORMAT", raising=False)
    monkeypatch.chdir(tmp_path)
    return tmp_path


@pytest.fixture(autouse=True)
def restore_root_logging() -> Iterator[None]:
    """Undo `configure_logging` so handlers never outlive the test's captured streams."""
    root = logging.getLogger()
    level = root.level
    yield
    for handler in list(root.handlers):
        formatter = handler.formatter
        if isinstance(formatter, JsonFormatter) or getattr(formatter, "_fmt", None) == TEXT_FORMAT:
            root.removeHandler(handler)
    root.setLevel(level)


@pytest.fixture
def registry() -> TaskRegistry:
    """Provide an empty task registry."""
    return TaskRegistry()
