"""Compile a task registry into a command line and run one task per process.

``Dispatcher.run(argv)`` is the process boundary: it loads settings,
configures logging, parses the command line, drives the task through
:class:`~taskwire.state_machine.DispatchTrace`, and maps every failure to an
exit code.

Exit codes:

====  ===========================================================
0     success
1     handler or channel failure, or any unexpected exception
2     ``UsageError``, ``UnknownTask``, invalid configuration
3     ``DecodeError`` or ``ValidationError`` on the input
4     ``EncodeError`` on an output
5     ``ShellCommandError`` from ``Effect.execute``
====  ===========================================================
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import os
import sys
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, NoReturn

from pydantic import ValidationError as SettingsValidationError

from taskwire import __version__
from taskwire.config import TaskwireSettings
from taskwire.errors import (
    DecodeError,
    EncodeError,
    ShellCommandError,
    TaskwireError,
    UnknownTask,
    UsageError,
    ValidationError,
)
from taskwire.logging import configure_logging
from taskwire.registry import ParameterSpec, ScalarKind, Task, TaskRegistry, parse_number
from taskwire.schema import ABSENT, DEFAULT_TYPE_MAPPING, TypeMapping
from taskwire.state_machine import DispatchState, DispatchTrace

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_USAGE = 2
EXIT_INVALID_INPUT = 3
EXIT_ENCODE = 4
EXIT_SHELL = 5

_EXIT_CODES: tuple[tuple[type[BaseException], int], ...] = (
    (UsageError, EXIT_USAGE),
    (UnknownTask, EXIT_USAGE),
    (DecodeError, EXIT_INVALID_INPUT),
    (ValidationError, EXIT_INVALID_INPUT),
    (EncodeError, EXIT_ENCODE),
    (ShellCommandError, EXIT_SHELL),
)

_TASK_DEST = "_task"
_PARAM_PREFIX = "param:"


def exit_code_for(exc: BaseException) -> int:
    for kind, code in _EXIT_CODES:
        if isinstance(exc, kind):
            return code
    return EXIT_FAILURE


class _ArgumentParser(argparse.ArgumentParser):
    """argparse parser that raises instead of exiting on bad input."""

    def error(self, message: str) -> NoReturn:
        raise UsageError(message, usage=self.format_usage())


@dataclass(slots=True)
class Invocation:
    """A parsed command line, resolved to one task."""

    task: Task
    params: dict[str, Any] = field(default_factory=dict)
    verbose: bool = False


class Dispatcher:
    """Run registered tasks from the command line.

    Args:
        registry: The tasks to expose. It is frozen on first dispatch.
        prog: Program name shown in usage and help.
        description: Text shown by the root ``--help``.
        type_mapping: Type mapping to freeze before dispatch.
    """

    def __init__(
        self,
        registry: TaskRegistry,
        *,
        prog: str | None = None,
        description: str | None = None,
        version: str | None = None,
        type_mapping: TypeMapping | None = None,
    ) -> None:
        self.registry = registry
        self.prog = prog
        self.description = description
        self.version = version or __version__
        self.type_mapping = type_mapping or DEFAULT_TYPE_MAPPING
        self.last_trace: DispatchTrace | None = None

    def build_parser(self) -> argparse.ArgumentParser:
        parser = _ArgumentParser(prog=self.prog, description=self.description)
        parser.add_argument(
            "--version", action="version", version=f"%(prog)s {self.version}"
        )
        parser.add_argument(
            "-v",
            "--verbose",
            action="store_true",
            help="Log at DEBUG level regardless of TASKWIRE_LOG_LEVEL",
        )

        subparsers = parser.add_subparsers(dest=_TASK_DEST, metavar="<task>", required=True)
        for task in self.registry:
            sub = subparsers.add_parser(
                task.name,
                help=task.description or None,
                description=task.description or None,
            )
            for name, spec in task.parameters.items():
                _add_parameter(sub, name, spec)
        return parser

    def parse(self, argv: Sequence[str], trace: DispatchTrace | None = None) -> Invocation:
        """Resolve ``argv`` to a task and its parameters.

        Freezes the type mapping and the registry first.

        Raises:
            UnknownTask: If the first non-option token names no task.
            UsageError: For any other malformed command line.
            SystemExit: For ``--help`` and ``--version``.
        """

        trace = trace or DispatchTrace()
        trace.advance(DispatchState.PARSING_ARGS)

        self.type_mapping.freeze()
        self.registry.freeze()

        requested = _requested_task(argv)
        if requested is not None and requested not in self.registry:
            raise UnknownTask(requested, self.registry.names())

        namespace = self.build_parser().parse_args(list(argv))
        task = self.registry.lookup(getattr(namespace, _TASK_DEST))
        params = {
            key[len(_PARAM_PREFIX):]: value
            for key, value in vars(namespace).items()
            if key.startswith(_PARAM_PREFIX)
        }
        return Invocation(task=task, params=params, verbose=namespace.verbose)

    async def execute(self, invocation: Invocation, trace: DispatchTrace | None = None) -> None:
        """Read input, run the handler, and write every output in order."""

        trace = trace or _parsed_trace(invocation)
        task = invocation.task
        log_extra = {"task": task.name}

        value: Any = ABSENT
        binding = task.input
        if binding is not None and not binding.reader.is_interactive():
            trace.advance(DispatchState.READING_INPUT, task=task.name)
            raw = await binding.reader.read()
            trace.advance(DispatchState.DECODING)
            value = binding.decoder.decode(raw)
        elif binding is not None:
            logger.debug("Input is interactive; not reading", extra=log_extra)

        trace.advance(DispatchState.INVOKING, task=task.name)
        logger.debug("Invoking task", extra={**log_extra, "params": invocation.params})
        results = await task.invoke(invocation.params, value)

        for name, output in task.outputs.items():
            produced = results.get(name, ABSENT)
            if produced is ABSENT:
                if output.required:
                    raise EncodeError(f"Task {task.name!r} did not produce required output {name!r}")
                logger.debug("Skipping absent output", extra={**log_extra, "output": name})
                continue
            trace.advance(DispatchState.ENCODING)
            text = output.encoder.encode(produced)
            trace.advance(DispatchState.WRITING_OUTPUT)
            await output.writer.write(text)

        trace.advance(DispatchState.DONE)

    async def dispatch(self, argv: Sequence[str]) -> DispatchTrace:
        """Parse ``argv`` and run the selected task; errors propagate."""

        trace = DispatchTrace()
        self.last_trace = trace
        try:
            invocation = self.parse(argv, trace)
            await self.execute(invocation, trace)
        except Exception:
            trace.fail()
            raise
        return trace

    def run(self, argv: Sequence[str] | None = None) -> int:
        """Dispatch one command line and return the process exit code."""

        try:
            settings = TaskwireSettings()
        except SettingsValidationError as e:
            print("Configuration error (check your environment and .env):", file=sys.stderr)
            print(e, file=sys.stderr)
            return EXIT_USAGE

        configure_logging(settings.log_level, settings.log_format)
        args = list(sys.argv[1:] if argv is None else argv)

        trace = DispatchTrace()
        self.last_trace = trace
        try:
            invocation = self.parse(args, trace)
        except SystemExit as e:
            return 0 if e.code is None else int(e.code)
        except TaskwireError as e:
            return self._report(e, trace)

        if invocation.verbose:
            configure_logging("DEBUG", settings.log_format)

        try:
            asyncio.run(self.execute(invocation, trace))
        except TaskwireError as e:
            return self._report(e, trace)
        except Exception:
            trace.fail()
            logger.exception("Task failed", extra={"task": invocation.task.name})
            return EXIT_FAILURE
        return EXIT_OK

    def _report(self, exc: TaskwireError, trace: DispatchTrace) -> int:
        trace.fail()
        code = exit_code_for(exc)
        logger.debug(
            "Dispatch failed",
            extra={"task": trace.task, "error": type(exc).__name__, "exit_code": code},
        )
        if isinstance(exc, UsageError):
            if exc.usage:
                sys.stderr.write(exc.usage)
            prog = self.prog or os.path.basename(sys.argv[0])
            print(f"{prog}: error: {exc.message}", file=sys.stderr)
        else:
            print(f"error: {exc}", file=sys.stderr)
        return code


def _add_parameter(parser: argparse.ArgumentParser, name: str, spec: ParameterSpec) -> None:
    converter = parse_number if spec.kind is ScalarKind.NUMBER else str
    dest = f"{_PARAM_PREFIX}{name}"
    help_text = spec.description
    if spec.option:
        flags = [f"--{name}"]
        if spec.short:
            flags.insert(0, f"-{spec.short}")
        parser.add_argument(
            *flags,
            dest=dest,
            metavar=spec.kind.value.upper(),
            type=converter,
            required=spec.required,
            default=spec.default,
            help=help_text,
        )
    else:
        parser.add_argument(
            dest,
            metavar=name,
            type=converter,
            nargs=None if spec.required else "?",
            default=spec.default,
            help=help_text,
        )


def _requested_task(argv: Sequence[str]) -> str | None:
    # Root options are flags only, so the first non-dash token is the task name.
    for token in argv:
        if token == "--":
            return None
        if not token.startswith("-"):
            return token
    return None


def _parsed_trace(invocation: Invocation) -> DispatchTrace:
    trace = DispatchTrace()
    trace.advance(DispatchState.PARSING_ARGS, task=invocation.task.name)
    return trace
