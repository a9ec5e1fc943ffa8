"""Readers and writers that move raw text in and out of a task.

Blocking stream and file I/O is pushed onto a worker thread with
``asyncio.to_thread`` so every channel is awaitable from the dispatcher.
"""

from __future__ import annotations

import asyncio
import sys
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Callable, TextIO

from taskwire.errors import DecodeError


class Reader(ABC):
    """A source of raw text."""

    @abstractmethod
    async def read(self) -> str:
        """Read the entire content of the channel.

        Returns:
            Everything the source produces, as one string.

        Raises:
            OSError: If the underlying stream or file cannot be read.
            DecodeError: If the bytes are not valid UTF-8.
        """
        pass

    @abstractmethod
    def is_interactive(self) -> bool:
        """Whether the source is attached to a terminal.

        Interactive sources are never read by the dispatcher, so a task
        invoked from a shell without piped input does not block.
        """
        pass


class Writer(ABC):
    """A sink for raw text."""

    @abstractmethod
    async def write(self, text: str) -> None:
        """Write ``text`` to the channel.

        Raises:
            OSError: If the underlying stream or file cannot be written.
        """
        pass


def _decoded(read: Callable[..., str], *args: Any, **kwargs: Any) -> str:
    try:
        return read(*args, **kwargs)
    except UnicodeDecodeError as e:
        raise DecodeError("utf-8", str(e)) from e


class StdinReader(Reader):
    async def read(self) -> str:
        return await asyncio.to_thread(_decoded, sys.stdin.read)

    def is_interactive(self) -> bool:
        stream = sys.stdin
        return stream is not None and stream.isatty()

    def __repr__(self) -> str:
        return "StdinReader()"


class _ConsoleWriter(Writer):
    """Print-style writer: output always ends with a newline and is flushed."""

    @abstractmethod
    def _stream(self) -> TextIO:
        pass

    def _write_sync(self, text: str) -> None:
        stream = self._stream()
        if not text.endswith("\n"):
            text += "\n"
        stream.write(text)
        stream.flush()

    async def write(self, text: str) -> None:
        await asyncio.to_thread(self._write_sync, text)


class StdoutWriter(_ConsoleWriter):
    def _stream(self) -> TextIO:
        return sys.stdout

    def __repr__(self) -> str:
        return "StdoutWriter()"


class StderrWriter(_ConsoleWriter):
    def _stream(self) -> TextIO:
        return sys.stderr

    def __repr__(self) -> str:
        return "StderrWriter()"


class FileChannel(Reader, Writer):
    """A named UTF-8 file, usable as both reader and writer.

    Writes replace the file's content and create missing parent
    directories.
    """

    def __init__(self, path: str | Path) -> None:
        self.path = Path(path)

    async def read(self) -> str:
        return await asyncio.to_thread(_decoded, self.path.read_text, encoding="utf-8")

    def is_interactive(self) -> bool:
        return False

    def _write_sync(self, text: str) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(text, encoding="utf-8")

    async def write(self, text: str) -> None:
        await asyncio.to_thread(self._write_sync, text)

    def __repr__(self) -> str:
        return f"FileChannel({str(self.path)!r})"


class MemoryReader(Reader):
    """Serve a fixed string; useful for embedding and tests."""

    def __init__(self, text: str = "", *, interactive: bool = False) -> None:
        self.text = text
        self.interactive = interactive
        self.reads = 0

    async def read(self) -> str:
        self.reads += 1
        return self.text

    def is_interactive(self) -> bool:
        return self.interactive


class MemoryWriter(Writer):
    """Collect every write in order."""

    def __init__(self) -> None:
        self.writes: list[str] = []

    async def write(self, text: str) -> None:
        self.writes.append(text)

    @property
    def text(self) -> str:
        return "".join(self.writes)
