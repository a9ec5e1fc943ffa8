"""Per-task side-effect context: tagged logging and external commands."""

from __future__ import annotations

import asyncio
import logging
import os
import shlex
from collections.abc import Mapping, Sequence
from pathlib import Path

from taskwire.errors import ShellCommandError

LOGGER_PREFIX = "taskwire.task"


class Effect:
    """Side-effect context handed to a task handler.

    One instance is built when a task is registered and reused for every
    invocation of that task. It holds a logger and nothing else, so reuse
    carries no state between runs.

    Args:
        name: The task name; log records are emitted under
            ``taskwire.task.<name>``.
    """

    def __init__(self, name: str) -> None:
        self.name = name
        self.logger = logging.getLogger(f"{LOGGER_PREFIX}.{name}")

    def debug(self, message: str) -> None:
        self.logger.debug(message)

    def info(self, message: str) -> None:
        self.logger.info(message)

    def warning(self, message: str) -> None:
        self.logger.warning(message)

    def error(self, message: str) -> None:
        self.logger.error(message)

    async def execute(
        self,
        command: str | Sequence[str],
        *,
        cwd: str | Path | None = None,
        env: Mapping[str, str] | None = None,
    ) -> str:
        """Run an external command and return its standard output.

        A string is run through the shell; a sequence is executed directly
        with no shell interpretation. ``env`` entries are layered over the
        current process environment.

        Args:
            command: Shell command line or argv sequence.
            cwd: Working directory for the child process.
            env: Extra environment variables.

        Returns:
            The captured standard output, decoded as UTF-8.

        Raises:
            ShellCommandError: If the command exits with a non-zero status.
            OSError: If the command cannot be started.
        """

        display = command if isinstance(command, str) else shlex.join(command)
        child_env = {**os.environ, **env} if env is not None else None

        self.logger.debug("Running command", extra={"command": display})
        if isinstance(command, str):
            process = await asyncio.create_subprocess_shell(
                command,
                cwd=cwd,
                env=child_env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        else:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=cwd,
                env=child_env,
                stdin=asyncio.subprocess.DEVNULL,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )

        stdout_bytes, stderr_bytes = await process.communicate()
        stdout = stdout_bytes.decode("utf-8", errors="replace")
        stderr = stderr_bytes.decode("utf-8", errors="replace")

        for line in stdout.splitlines():
            self.logger.debug(line)

        exit_code = process.returncode if process.returncode is not None else -1
        if exit_code != 0:
            self.logger.error(
                stderr.strip() or f"Command exited with status {exit_code}",
                extra={"command": display, "exit_code": exit_code},
            )
            raise ShellCommandError(display, exit_code, stderr, stdout)

        return stdout

    def __repr__(self) -> str:
        return f"Effect(name={self.name!r})"
