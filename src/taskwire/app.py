"""One registry plus its dispatcher, behind a small decorator API.

Typical use::

    app = TaskApp(prog="tool")

    @app.task(params={"a": param("number"), "b": param("number")},
              outputs={"sum": write_to(StdoutWriter(), json_codec({"type": "number"}))})
    def add(params, _input, _effect):
        return {"sum": params["a"] + params["b"]}

    if __name__ == "__main__":
        raise SystemExit(app.run())
"""

from __future__ import annotations

from collections.abc import Sequence

from taskwire.dispatcher import Dispatcher
from taskwire.registry import TaskRegistry


class TaskApp:
    def __init__(
        self,
        *,
        prog: str | None = None,
        description: str | None = None,
        version: str | None = None,
        registry: TaskRegistry | None = None,
    ) -> None:
        self.registry = registry if registry is not None else TaskRegistry()
        self.dispatcher = Dispatcher(
            self.registry, prog=prog, description=description, version=version
        )
        self.task = self.registry.task
        self.register = self.registry.register

    def run(self, argv: Sequence[str] | None = None) -> int:
        return self.dispatcher.run(argv)
