"""Story runner - the state machine that walks a story graph.

Sequence states print their lines and move on by themselves. Input, choice
and acknowledgement states park the runner until the host delivers the
matching event through submit(), choose() or enter(). Events that arrive
while the runner is not waiting for them are dropped.
"""

from __future__ import annotations

import asyncio
import inspect
import logging
from dataclasses import dataclass
from collections.abc import Mapping
from enum import Enum
from types import MappingProxyType
from typing import Any, Never, NoReturn, TypeVar

from narrative import apply_actions, evaluate_guards, interpolate
from storydoc.errors import StateTypeError, StoryValidationError, UnknownStateError
from storydoc.models import (
    EVENT_ENTER,
    EVENT_SUBMIT,
    ChoiceState,
    InputState,
    SequenceState,
    State,
    Story,
)

from .output import OutputAdapter, PrintOptions

logger = logging.getLogger(__name__)

_S = TypeVar("_S", SequenceState, InputState, ChoiceState)


class RunnerMode(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    WAITING_INPUT = "waiting_input"
    WAITING_CHOICE = "waiting_choice"
    WAITING_ENTER = "waiting_enter"
    TERMINATED = "terminated"


WAITING_MODES = frozenset(
    {RunnerMode.WAITING_INPUT, RunnerMode.WAITING_CHOICE, RunnerMode.WAITING_ENTER}
)


@dataclass(frozen=True)
class Pending:
    """Which external event the runner is waiting for, and in which state."""

    kind: str = "none"  # "none" | "input" | "choice" | "enter"
    state_id: str | None = None


_NOTHING_PENDING = Pending()


async def _settle(result: Any) -> None:
    if inspect.isawaitable(result):
        await result


def _unsupported_state(state: Never) -> NoReturn:
    raise StateTypeError(f"Unsupported state type: {getattr(state, 'type', type(state).__name__)}")


class StoryRunner:
    """Drive one story against one output adapter."""

    def __init__(self, story: Story, output: OutputAdapter):
        self._story = story
        self._output = output

        self._states: dict[str, State] = {state.id: state for state in story.states}
        if story.start not in self._states:
            raise StoryValidationError(f"Story start state not found: {story.start}")

        self._mode = RunnerMode.IDLE
        self._current_state_id: str | None = None
        self._pending = _NOTHING_PENDING
        # Bumped by start(), stop() and every new line sequence. A sequence
        # that sees a different value after a suspension point abandons itself.
        self._generation = 0
        self._sequence_task: asyncio.Task[None] | None = None
        self._vars: dict[str, str] = dict(story.vars)

    @property
    def story(self) -> Story:
        return self._story

    @property
    def mode(self) -> RunnerMode:
        return self._mode

    @property
    def current_state_id(self) -> str | None:
        return self._current_state_id

    @property
    def pending(self) -> Pending:
        return self._pending

    @property
    def vars(self) -> Mapping[str, str]:
        """Live, read-only view of the variable store."""
        return MappingProxyType(self._vars)

    # ── Caller-facing operations ────────────────────────────────

    async def start(self) -> None:
        """Enter the start state. Safe to call again to restart.

        The variable store is kept as it is; build a new runner for a clean slate.
        """
        self._generation += 1
        self._pending = _NOTHING_PENDING
        self._output.clear_interactive()
        logger.info("Starting story %s at %s", self._story.id, self._story.start)
        await self._transition_to(self._story.start)

    def stop(self) -> None:
        self._generation += 1
        self._pending = _NOTHING_PENDING
        self._mode = RunnerMode.TERMINATED
        logger.info("Story %s stopped at %s", self._story.id, self._current_state_id)
        self._emit_state()

    async def submit(self, value: str | None) -> None:
        """Deliver the text typed into the active input state."""
        if self._pending.kind != "input":
            logger.debug("Ignoring submit while %s", self._mode.value)
            return

        state = self._get_state(self._pending.state_id, InputState)
        spec = state.input

        text = value or ""
        if spec.trim:
            text = text.strip()
        if spec.max_length is not None:
            text = text[: spec.max_length]

        transition = state.transition_for(EVENT_SUBMIT)
        if transition is None:
            logger.debug("Input state %s has no submit transition", state.id)
            return

        error = evaluate_guards(transition.guards, text)
        if error:
            logger.debug("Submit rejected in %s: %s", state.id, error)
            hook = getattr(self._output, "on_validation_error", None)
            if hook is not None:
                hook(error)
            return

        apply_actions(transition.actions, self._vars, text)

        self._pending = _NOTHING_PENDING
        self._output.clear_interactive()
        await self._transition_to(transition.to)

    async def choose(self, choice_id: str) -> None:
        """Pick an option of the active choice state by id."""
        if self._pending.kind != "choice":
            logger.debug("Ignoring choice %r while %s", choice_id, self._mode.value)
            return

        state = self._get_state(self._pending.state_id, ChoiceState)
        option = state.choice(choice_id)
        if option is None:
            logger.debug("Ignoring unknown choice %r in %s", choice_id, state.id)
            return

        apply_actions(option.actions, self._vars, None)

        self._pending = _NOTHING_PENDING
        self._output.clear_interactive()
        await self._transition_to(option.to)

    async def enter(self) -> None:
        """Acknowledge a sequence that is waiting for Enter."""
        if self._pending.kind != "enter":
            logger.debug("Ignoring enter while %s", self._mode.value)
            return

        state = self._get_state(self._pending.state_id, SequenceState)
        transition = state.transition_for(EVENT_ENTER)

        self._pending = _NOTHING_PENDING
        if transition is None:
            # Nowhere to go: the story ends here without further output.
            self._mode = RunnerMode.TERMINATED
            self._emit_state()
            return
        await self._transition_to(transition.to)

    async def wait(self) -> None:
        """Wait for the running line sequence and any sequence it chains into.

        Re-raises an error raised inside the sequence, e.g. a successor that
        the story does not declare.
        """
        while True:
            task = self._sequence_task
            if task is None:
                return
            await task
            if task is self._sequence_task:
                return

    # ── Internals ───────────────────────────────────────────────

    async def _transition_to(self, state_id: str) -> None:
        state = self._states.get(state_id)
        if state is None:
            raise UnknownStateError(state_id)

        self._current_state_id = state_id
        logger.debug("Entering %s state %s", getattr(state, "type", "?"), state_id)

        if getattr(state, "terminal", False):
            self._mode = RunnerMode.TERMINATED
            self._emit_state()
            return

        match state:
            case SequenceState():
                self._begin_sequence(state)
            case InputState():
                self._mode = RunnerMode.WAITING_INPUT
                self._pending = Pending("input", state.id)
                self._emit_state()
                await _settle(self._output.show_input(state.input))
            case ChoiceState():
                self._mode = RunnerMode.WAITING_CHOICE
                self._pending = Pending("choice", state.id)
                self._emit_state()
                prompt = interpolate(state.prompt, self._vars)
                await _settle(self._output.show_choices(prompt, state.choices))
            case _:
                _unsupported_state(state)

    def _begin_sequence(self, state: SequenceState) -> None:
        self._generation += 1
        generation = self._generation
        self._mode = RunnerMode.RUNNING
        self._emit_state()

        apply_actions(state.actions, self._vars, None)

        task = asyncio.get_running_loop().create_task(self._play_sequence(state, generation))
        task.add_done_callback(self._on_sequence_done)
        self._sequence_task = task

    async def _play_sequence(self, state: SequenceState, generation: int) -> None:
        for line in state.lines:
            if self._generation != generation:
                logger.debug("Sequence %s superseded", state.id)
                return

            text = interpolate(line.text, self._vars)
            await _settle(self._output.print(text, PrintOptions(instant=line.instant, speed=line.speed)))

            if line.delay_ms > 0:
                await asyncio.sleep(line.delay_ms / 1000)

        if self._generation != generation:
            logger.debug("Sequence %s superseded", state.id)
            return

        if state.await_event == EVENT_ENTER:
            self._mode = RunnerMode.WAITING_ENTER
            self._pending = Pending("enter", state.id)
            self._emit_state()
            return

        if state.to:
            await self._transition_to(state.to)
            return

        self._mode = RunnerMode.TERMINATED
        self._emit_state()

    def _on_sequence_done(self, task: asyncio.Task[None]) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            logger.error("Line sequence failed: %s", exc, exc_info=exc)

    def _get_state(self, state_id: str | None, kind: type[_S]) -> _S:
        state = self._states.get(state_id or "")
        if state is None:
            raise UnknownStateError(state_id or "")
        if not isinstance(state, kind):
            raise StateTypeError(f"State {state_id} is not type {kind.type}")
        return state

    def _emit_state(self) -> None:
        hook = getattr(self._output, "on_state_change", None)
        if hook is not None:
            hook(self._current_state_id or "?", self._mode)
