#!/usr/bin/env python3
"""Small task CLI built with taskwire.

This demonstrates registering tasks and dispatching them from argv:

* ``add 2 3`` prints ``5``
* ``echo`` copies stdin to stdout
* ``create-file NAME`` writes a JSON string read from stdin into ``NAME``
* ``ls`` lists the current directory through the shell

Logging goes to stderr; set ``TASKWIRE_LOG_LEVEL=DEBUG`` or pass ``-v`` to
see command output lines.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Sequence

from taskwire import (
    Effect,
    StdinReader,
    StdoutWriter,
    TaskApp,
    json_codec,
    param,
    read_from,
    string_codec,
    write_to,
)


def build_app() -> TaskApp:
    app = TaskApp(prog="basic-usage", description="taskwire demo tasks")

    @app.task(
        params={"filename": param("string", description="File to create")},
        input=read_from(StdinReader(), json_codec({"type": "string"})),
        outputs={"output": write_to(StdoutWriter(), json_codec({"type": "string"}))},
    )
    def create_file(params: dict[str, Any], content: str, effect: Effect) -> dict[str, Any]:
        """Create a file whose content is a JSON string read from stdin."""
        filename = params["filename"]
        effect.info(f"Creating file: {filename}")
        Path(filename).write_text(content, encoding="utf-8")
        return {"output": "OK"}

    @app.task(
        params={
            "a": param("number", description="First addend"),
            "b": param("number", description="Second addend"),
        },
        outputs={"output": write_to(StdoutWriter(), json_codec({"type": "number"}))},
    )
    def add(params: dict[str, Any], _input: Any, effect: Effect) -> dict[str, Any]:
        """Add two numbers."""
        effect.info(f"Adding two numbers: {params['a']} {params['b']}")
        return {"output": params["a"] + params["b"]}

    @app.task(
        input=read_from(StdinReader(), string_codec()),
        outputs={"output": write_to(StdoutWriter(), string_codec())},
    )
    def echo(_params: dict[str, Any], text: Any, _effect: Effect) -> dict[str, Any]:
        """Copy stdin to stdout."""
        return {"output": text}

    @app.task()
    async def ls(_params: dict[str, Any], _input: Any, effect: Effect) -> None:
        """List the current directory."""
        effect.info("Listing current directory contents")
        listing = await effect.execute("ls -la")
        effect.info(f"{len(listing.splitlines())} lines listed")

    return app


def main(argv: Sequence[str] | None = None) -> int:
    return build_app().run(argv)


if __name__ == "__main__":
    raise SystemExit(main())
