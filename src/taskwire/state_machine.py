"""Explicit state machine for a single dispatch.

One invocation walks::

    IDLE -> PARSING_ARGS -> [READING_INPUT -> DECODING] -> INVOKING
         -> [ENCODING -> WRITING_OUTPUT]* -> DONE

``FAILED`` is reachable from every non-terminal state. Illegal transitions
fail loudly so ordering bugs in the dispatcher surface as errors.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class DispatchState(str, Enum):
    IDLE = "idle"
    PARSING_ARGS = "parsing_args"
    READING_INPUT = "reading_input"
    DECODING = "decoding"
    INVOKING = "invoking"
    ENCODING = "encoding"
    WRITING_OUTPUT = "writing_output"
    DONE = "done"
    FAILED = "failed"


TERMINAL_STATES: frozenset[DispatchState] = frozenset({DispatchState.DONE, DispatchState.FAILED})

ALLOWED_TRANSITIONS: dict[DispatchState, set[DispatchState]] = {
    DispatchState.IDLE: {DispatchState.PARSING_ARGS},
    DispatchState.PARSING_ARGS: {DispatchState.READING_INPUT, DispatchState.INVOKING},
    DispatchState.READING_INPUT: {DispatchState.DECODING},
    DispatchState.DECODING: {DispatchState.INVOKING},
    DispatchState.INVOKING: {DispatchState.ENCODING, DispatchState.DONE},
    DispatchState.ENCODING: {DispatchState.WRITING_OUTPUT},
    DispatchState.WRITING_OUTPUT: {DispatchState.ENCODING, DispatchState.DONE},
    DispatchState.DONE: set(),
    DispatchState.FAILED: set(),
}


class IllegalTransitionError(ValueError):
    pass


@dataclass(frozen=True, slots=True)
class DispatchSnapshot:
    state: DispatchState
    task: str | None = None


def transition(
    *, current: DispatchSnapshot, to: DispatchState, task: str | None = None
) -> DispatchSnapshot:
    allowed = ALLOWED_TRANSITIONS.get(current.state, set())
    if to is DispatchState.FAILED and current.state not in TERMINAL_STATES:
        allowed = allowed | {DispatchState.FAILED}
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.state.value} -> {to.value}")
    return DispatchSnapshot(state=to, task=task if task is not None else current.task)


class DispatchTrace:
    """The states one dispatch has passed through, in order."""

    def __init__(self) -> None:
        self._snapshot = DispatchSnapshot(state=DispatchState.IDLE)
        self.states: list[DispatchState] = [DispatchState.IDLE]

    @property
    def snapshot(self) -> DispatchSnapshot:
        return self._snapshot

    @property
    def state(self) -> DispatchState:
        return self._snapshot.state

    @property
    def task(self) -> str | None:
        return self._snapshot.task

    @property
    def finished(self) -> bool:
        return self._snapshot.state in TERMINAL_STATES

    def advance(self, to: DispatchState, *, task: str | None = None) -> DispatchSnapshot:
        self._snapshot = transition(current=self._snapshot, to=to, task=task)
        self.states.append(to)
        return self._snapshot

    def fail(self) -> None:
        """Move to ``FAILED`` unless the dispatch already finished."""

        if not self.finished:
            self.advance(DispatchState.FAILED)
