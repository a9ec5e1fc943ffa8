"""Error taxonomy.

Every failure a dispatch can hit derives from :class:`TaskwireError`; the
dispatcher maps each subclass to a process exit code.
"""

from __future__ import annotations

from collections.abc import Sequence


class TaskwireError(Exception):
    """Base class for all taskwire failures."""


class UnknownTask(TaskwireError):
    """Raised when a requested task name is not registered."""

    def __init__(self, name: str, available: Sequence[str]) -> None:
        self.name = name
        self.available = list(available)
        listing = ", ".join(self.available) if self.available else "none"
        super().__init__(f"Unknown task {name!r}. Available: {listing}")


class UsageError(TaskwireError):
    """Raised when the command line does not match the compiled command surface."""

    def __init__(self, message: str, *, usage: str = "") -> None:
        self.message = message
        self.usage = usage
        super().__init__(message)


class DecodeError(TaskwireError):
    """Raised when raw text cannot be parsed in a codec's wire format."""

    def __init__(self, family: str, reason: str) -> None:
        self.family = family
        self.reason = reason
        super().__init__(f"Cannot decode {family} input: {reason}")


class ValidationError(TaskwireError):
    """Raised when a value does not conform to a schema.

    ``path`` locates the first offending node (``$``, ``$.key``, ``$[0]``).
    """

    def __init__(self, path: str, expected: str, actual: str) -> None:
        self.path = path
        self.expected = expected
        self.actual = actual
        super().__init__(f"{path}: expected {expected}, got {actual}")


class EncodeError(TaskwireError):
    """Raised when a handler produces a value outside its declared output schema."""


class ShellCommandError(TaskwireError):
    """Raised when an external command exits with a non-zero status."""

    def __init__(
        self,
        command: str,
        exit_code: int,
        stderr: str,
        stdout: str = "",
    ) -> None:
        self.command = command
        self.exit_code = exit_code
        self.stderr = stderr
        self.stdout = stdout
        detail = stderr.strip() or "no stderr output"
        super().__init__(f"Command {command!r} exited with status {exit_code}: {detail}")


class RegistryFrozenError(TaskwireError):
    """Raised when registering into a registry that has been frozen."""
