"""Task records and the registry the dispatcher compiles into a CLI.

A task is declared once, at registration, as a name plus:

- a parameter spec (scalar command-line arguments),
- an optional input binding (a reader and the decoder for its text),
- an ordered set of named output bindings (a writer and an encoder each),
- a handler ``(params, input, effect) -> {output_name: value}``.

Registration performs no task work. It stores the handler and builds the
task's :class:`~taskwire.effect.Effect`.
"""

from __future__ import annotations

import inspect
import logging
import math
from collections.abc import Awaitable, Callable, Iterator, Mapping
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from taskwire.channel import Reader, Writer
from taskwire.codec.base import Decoder, Encoder
from taskwire.effect import Effect
from taskwire.errors import EncodeError, RegistryFrozenError, UnknownTask
from taskwire.schema import ABSENT

logger = logging.getLogger(__name__)

Handler = Callable[[dict[str, Any], Any, Effect], Any]


class ScalarKind(str, Enum):
    STRING = "string"
    NUMBER = "number"


def parse_number(token: str) -> int | float:
    """Convert a command-line token to a number.

    Integral tokens become ``int`` so ``add 2 3`` yields ``5`` rather than
    ``5.0``. Non-finite values are rejected.
    """

    try:
        return int(token)
    except ValueError:
        value = float(token)
    if not math.isfinite(value):
        raise ValueError(f"not a finite number: {token!r}")
    return value


# argparse names the converter in its error messages ("invalid number value").
parse_number.__name__ = "number"


@dataclass(frozen=True, slots=True)
class ParameterSpec:
    """One scalar command-line parameter.

    The parameter's name is the key it is registered under.
    """

    kind: ScalarKind = ScalarKind.STRING
    description: str | None = None
    option: bool = False
    short: str | None = None
    required: bool = True
    default: str | int | float | None = None


def param(
    kind: str | ScalarKind = ScalarKind.STRING,
    *,
    description: str | None = None,
    option: bool = False,
    short: str | None = None,
    required: bool | None = None,
    default: str | int | float | None = None,
) -> ParameterSpec:
    """Declare a parameter.

    Args:
        kind: ``"string"`` or ``"number"``.
        description: Help text shown by ``--help``.
        option: Expose as ``--name value`` instead of a positional argument.
        short: Single-letter alias for an option (``"x"`` becomes ``-x``).
        required: Whether the argument must be given. Defaults to ``True``
            unless a ``default`` is supplied.
        default: Value used when an optional parameter is omitted.

    Raises:
        ValueError: For an unknown kind, or a short flag on a positional.
    """

    scalar = ScalarKind(kind)
    if short is not None:
        if not option:
            raise ValueError("short flags are only valid for option parameters")
        short = short.lstrip("-")
        if len(short) != 1:
            raise ValueError(f"short flag must be a single character, got {short!r}")
    if required is None:
        required = default is None
    return ParameterSpec(
        kind=scalar,
        description=description,
        option=option,
        short=short,
        required=required,
        default=default,
    )


@dataclass(frozen=True, slots=True)
class InputBinding:
    reader: Reader
    decoder: Decoder


@dataclass(frozen=True, slots=True)
class OutputBinding:
    writer: Writer
    encoder: Encoder
    required: bool = False


def read_from(reader: Reader, decoder: Decoder) -> InputBinding:
    return InputBinding(reader=reader, decoder=decoder)


def write_to(writer: Writer, encoder: Encoder, *, required: bool = False) -> OutputBinding:
    """Bind an output to a writer.

    A ``required`` output must be present in the handler's result and must
    not be ``ABSENT``; optional outputs are skipped when missing.
    """

    return OutputBinding(writer=writer, encoder=encoder, required=required)


@dataclass(slots=True)
class Task:
    name: str
    handler: Handler
    effect: Effect
    description: str = ""
    parameters: dict[str, ParameterSpec] = field(default_factory=dict)
    input: InputBinding | None = None
    outputs: dict[str, OutputBinding] = field(default_factory=dict)
    _running: bool = field(default=False, init=False, repr=False)

    @property
    def running(self) -> bool:
        return self._running

    async def invoke(self, params: Mapping[str, Any], value: Any = ABSENT) -> dict[str, Any]:
        """Run the handler once and return its outputs keyed by output name.

        Raises:
            RuntimeError: If the task is already running.
            EncodeError: If the handler returns something other than a mapping
                of declared output names.
        """

        if self._running:
            raise RuntimeError(f"Task {self.name!r} is already running")
        self._running = True
        try:
            result = self.handler(dict(params), value, self.effect)
            if inspect.isawaitable(result):
                result = await result
        finally:
            self._running = False
        return self._collect(result)

    def _collect(self, result: Any) -> dict[str, Any]:
        if result is None:
            return {}
        if not isinstance(result, Mapping):
            raise EncodeError(
                f"Task {self.name!r} must return a mapping of output name to value, "
                f"got {type(result).__name__}"
            )
        undeclared = sorted(str(key) for key in result if key not in self.outputs)
        if undeclared:
            raise EncodeError(f"Task {self.name!r} returned undeclared outputs: {undeclared}")
        return dict(result)


def _check_name(name: str) -> None:
    if not name or name.startswith("-") or any(ch.isspace() for ch in name):
        raise ValueError(f"Invalid task name: {name!r}")


class TaskRegistry:
    """Named tasks, in registration order.

    Registering an existing name replaces the earlier task. Once frozen, the
    registry rejects further registration.
    """

    def __init__(self) -> None:
        self._tasks: dict[str, Task] = {}
        self._frozen = False

    @property
    def frozen(self) -> bool:
        return self._frozen

    def freeze(self) -> None:
        self._frozen = True

    def register(
        self,
        name: str,
        *,
        handler: Handler,
        params: Mapping[str, ParameterSpec] | None = None,
        input: InputBinding | None = None,
        outputs: Mapping[str, OutputBinding] | None = None,
        description: str = "",
    ) -> Callable[..., Awaitable[dict[str, Any]]]:
        """Insert or replace a task.

        Args:
            name: Sub-command name on the command line.
            handler: Called as ``handler(params, input, effect)``; may be a
                plain function or a coroutine function.
            params: Parameter specs keyed by parameter name.
            input: Where the task's input comes from, if anywhere.
            outputs: Output bindings keyed by output name, written in this
                order.
            description: One-line help text.

        Returns:
            The task's bound invocation ``call(params, input=ABSENT)``.

        Raises:
            RegistryFrozenError: If the registry has been frozen.
            ValueError: If the name is not usable as a sub-command.
        """

        if self._frozen:
            raise RegistryFrozenError(f"Registry is frozen; cannot register task {name!r}")
        _check_name(name)
        if name in self._tasks:
            logger.warning("Replacing previously registered task", extra={"task": name})

        task = Task(
            name=name,
            handler=handler,
            effect=Effect(name),
            description=description,
            parameters=dict(params or {}),
            input=input,
            outputs=dict(outputs or {}),
        )
        self._tasks[name] = task
        logger.debug(
            "Registered task",
            extra={"task": name, "parameters": list(task.parameters), "outputs": list(task.outputs)},
        )
        return task.invoke

    def task(
        self,
        name: str | None = None,
        *,
        params: Mapping[str, ParameterSpec] | None = None,
        input: InputBinding | None = None,
        outputs: Mapping[str, OutputBinding] | None = None,
        description: str | None = None,
    ) -> Callable[[Handler], Handler]:
        """Decorator form of :meth:`register`.

        The task name defaults to the function name with underscores turned
        into dashes, and the description to the first docstring line.
        """

        def decorator(func: Handler) -> Handler:
            task_name = name or func.__name__.replace("_", "-")
            doc = inspect.getdoc(func) or ""
            self.register(
                task_name,
                handler=func,
                params=params,
                input=input,
                outputs=outputs,
                description=description if description is not None else doc.partition("\n")[0],
            )
            return func

        return decorator

    def lookup(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise UnknownTask(name, self.names()) from None

    def get(self, name: str) -> Task | None:
        return self._tasks.get(name)

    def names(self) -> list[str]:
        return list(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def __iter__(self) -> Iterator[Task]:
        return iter(list(self._tasks.values()))

    def __len__(self) -> int:
        return len(self._tasks)

    def __repr__(self) -> str:
        return f"TaskRegistry(tasks={self.names()}, frozen={self._frozen})"
