"""Data models for story documents.

A story is parsed once into frozen dataclasses and never mutated. Wire keys
are camelCase (``delayMs``, ``maxLength``); attributes are snake_case.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, ClassVar

from .errors import StoryValidationError

GUARD_MIN_LENGTH = "minLength"
ACTION_SET_VAR = "setVar"
VALUE_FROM_SUBMITTED = "value"

EVENT_SUBMIT = "submit"
EVENT_ENTER = "enter"

SPEEDS = ("normal", "fast")


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


def _require_mapping(value: Any, context: str) -> dict[str, Any]:
    if not isinstance(value, dict):
        raise StoryValidationError(f"{context} must be an object.")
    return value


def _require_list(value: Any, context: str) -> list[Any]:
    if value is None:
        return []
    if not isinstance(value, list):
        raise StoryValidationError(f"{context} must be a list if provided.")
    return value


def _require_str(value: Any, context: str) -> str:
    if not isinstance(value, str):
        raise StoryValidationError(f"{context} must be a string.")
    return value


def _optional_str(value: Any, context: str) -> str | None:
    if value is None:
        return None
    return _require_str(value, context)


def _optional_length(value: Any, context: str) -> int | None:
    if value is None:
        return None
    # bool is an int subclass; "maxLength": true is an authoring mistake
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise StoryValidationError(f"{context} must be a non-negative integer.")
    return value


def _optional_bool(value: Any, context: str) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        raise StoryValidationError(f"{context} must be true or false.")
    return value


@dataclass(frozen=True)
class Guard:
    """Predicate over the submitted value. Only ``minLength`` is understood."""

    type: str
    field: str = "value"
    value: int = 0

    @classmethod
    def from_dict(cls, data: Any, context: str = "guard") -> Guard:
        data = _require_mapping(data, context)
        guard_type = _require_str(data.get("type"), f"{context}.type")
        threshold = 0
        if guard_type == GUARD_MIN_LENGTH:
            threshold = _optional_length(data.get("value"), f"{context}.value") or 0
        return cls(
            type=guard_type,
            field=_as_text(data.get("field", "value")),
            value=threshold,
        )


@dataclass(frozen=True)
class Action:
    """Variable-store mutation. Only ``setVar`` is understood."""

    type: str
    key: str = ""
    value: str | None = None
    value_from: str | None = None

    @classmethod
    def from_dict(cls, data: Any, context: str = "action") -> Action:
        data = _require_mapping(data, context)
        action_type = _require_str(data.get("type"), f"{context}.type")
        key = ""
        if action_type == ACTION_SET_VAR:
            key = _require_str(data.get("key"), f"{context}.key")
        raw_value = data.get("value")
        return cls(
            type=action_type,
            key=key,
            value=None if raw_value is None else _as_text(raw_value),
            value_from=_optional_str(data.get("valueFrom"), f"{context}.valueFrom"),
        )


def _parse_actions(raw: Any, context: str) -> tuple[Action, ...]:
    return tuple(
        Action.from_dict(entry, f"{context}[{index}]")
        for index, entry in enumerate(_require_list(raw, context))
    )


@dataclass(frozen=True)
class Transition:
    """Event -> successor rule, gated by guards and carrying actions."""

    event: str
    to: str
    guards: tuple[Guard, ...] = ()
    actions: tuple[Action, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, context: str = "transition") -> Transition:
        data = _require_mapping(data, context)
        guards = tuple(
            Guard.from_dict(entry, f"{context}.guards[{index}]")
            for index, entry in enumerate(_require_list(data.get("guards"), f"{context}.guards"))
        )
        return cls(
            event=_require_str(data.get("event"), f"{context}.event"),
            to=_require_str(data.get("to"), f"{context}.to"),
            guards=guards,
            actions=_parse_actions(data.get("actions"), f"{context}.actions"),
        )


def _parse_transitions(raw: Any, context: str) -> tuple[Transition, ...]:
    return tuple(
        Transition.from_dict(entry, f"{context}[{index}]")
        for index, entry in enumerate(_require_list(raw, context))
    )


def _find_transition(transitions: tuple[Transition, ...], event: str) -> Transition | None:
    for transition in transitions:
        if transition.event == event:
            return transition
    return None


@dataclass(frozen=True)
class SequenceLine:
    text: str
    delay_ms: int = 0
    instant: bool = False
    speed: str = "normal"  # "normal" | "fast"

    @classmethod
    def from_dict(cls, data: Any, context: str = "line") -> SequenceLine:
        data = _require_mapping(data, context)
        speed = data.get("speed") or "normal"
        if speed not in SPEEDS:
            raise StoryValidationError(f"{context}.speed must be one of {', '.join(SPEEDS)}.")
        return cls(
            text=_require_str(data.get("text"), f"{context}.text"),
            delay_ms=_optional_length(data.get("delayMs"), f"{context}.delayMs") or 0,
            instant=_optional_bool(data.get("instant"), f"{context}.instant"),
            speed=speed,
        )


@dataclass(frozen=True)
class InputSpec:
    """What an input state asks the output adapter to present."""

    id: str
    label: str
    placeholder: str | None = None
    min_length: int | None = None
    max_length: int | None = None
    trim: bool = False

    @classmethod
    def from_dict(cls, data: Any, context: str = "input") -> InputSpec:
        data = _require_mapping(data, context)
        return cls(
            id=_require_str(data.get("id"), f"{context}.id"),
            label=_require_str(data.get("label"), f"{context}.label"),
            placeholder=_optional_str(data.get("placeholder"), f"{context}.placeholder"),
            min_length=_optional_length(data.get("minLength"), f"{context}.minLength"),
            max_length=_optional_length(data.get("maxLength"), f"{context}.maxLength"),
            trim=_optional_bool(data.get("trim"), f"{context}.trim"),
        )


@dataclass(frozen=True)
class Choice:
    id: str
    label: str
    to: str
    actions: tuple[Action, ...] = ()

    @classmethod
    def from_dict(cls, data: Any, context: str = "choice") -> Choice:
        data = _require_mapping(data, context)
        return cls(
            id=_require_str(data.get("id"), f"{context}.id"),
            label=_require_str(data.get("label"), f"{context}.label"),
            to=_require_str(data.get("to"), f"{context}.to"),
            actions=_parse_actions(data.get("actions"), f"{context}.actions"),
        )


@dataclass(frozen=True)
class SequenceState:
    """Prints its lines, then waits for Enter, follows ``to`` or ends the story."""

    type: ClassVar[str] = "sequence"

    id: str
    lines: tuple[SequenceLine, ...] = ()
    actions: tuple[Action, ...] = ()
    to: str | None = None
    await_event: str | None = None
    on: tuple[Transition, ...] = ()
    terminal: bool = False

    def transition_for(self, event: str) -> Transition | None:
        return _find_transition(self.on, event)

    @classmethod
    def from_dict(cls, data: dict[str, Any], context: str) -> SequenceState:
        lines = tuple(
            SequenceLine.from_dict(entry, f"{context}.lines[{index}]")
            for index, entry in enumerate(_require_list(data.get("lines"), f"{context}.lines"))
        )
        await_event = None
        if data.get("await") is not None:
            await_spec = _require_mapping(data["await"], f"{context}.await")
            await_event = _require_str(await_spec.get("event"), f"{context}.await.event")
        return cls(
            id=data["id"],
            lines=lines,
            actions=_parse_actions(data.get("actions"), f"{context}.actions"),
            to=_optional_str(data.get("to"), f"{context}.to"),
            await_event=await_event,
            on=_parse_transitions(data.get("on"), f"{context}.on"),
            terminal=_optional_bool(data.get("terminal"), f"{context}.terminal"),
        )


@dataclass(frozen=True)
class InputState:
    """Asks for a line of text; the ``submit`` transition decides where to go."""

    type: ClassVar[str] = "input"

    id: str
    input: InputSpec
    on: tuple[Transition, ...] = ()
    terminal: bool = False

    def transition_for(self, event: str) -> Transition | None:
        return _find_transition(self.on, event)

    @classmethod
    def from_dict(cls, data: dict[str, Any], context: str) -> InputState:
        return cls(
            id=data["id"],
            input=InputSpec.from_dict(data.get("input"), f"{context}.input"),
            on=_parse_transitions(data.get("on"), f"{context}.on"),
            terminal=_optional_bool(data.get("terminal"), f"{context}.terminal"),
        )


@dataclass(frozen=True)
class ChoiceState:
    type: ClassVar[str] = "choice"

    id: str
    prompt: str = ""
    choices: tuple[Choice, ...] = ()
    terminal: bool = False

    def choice(self, choice_id: str) -> Choice | None:
        for option in self.choices:
            if option.id == choice_id:
                return option
        return None

    @classmethod
    def from_dict(cls, data: dict[str, Any], context: str) -> ChoiceState:
        choices = tuple(
            Choice.from_dict(entry, f"{context}.choices[{index}]")
            for index, entry in enumerate(_require_list(data.get("choices"), f"{context}.choices"))
        )
        return cls(
            id=data["id"],
            prompt=_optional_str(data.get("prompt"), f"{context}.prompt") or "",
            choices=choices,
            terminal=_optional_bool(data.get("terminal"), f"{context}.terminal"),
        )


State = SequenceState | InputState | ChoiceState

_STATE_TYPES: dict[str, type[SequenceState] | type[InputState] | type[ChoiceState]] = {
    SequenceState.type: SequenceState,
    InputState.type: InputState,
    ChoiceState.type: ChoiceState,
}


def parse_state(data: Any, index: int) -> State:
    """Build the state variant named by ``data["type"]``."""
    context = f"states[{index}]"
    data = _require_mapping(data, context)
    state_id = _require_str(data.get("id"), f"{context}.id")
    context = f"{context} ({state_id})"
    state_type = data.get("type")
    state_cls = _STATE_TYPES.get(state_type) if isinstance(state_type, str) else None
    if state_cls is None:
        raise StoryValidationError(
            f"{context} has unsupported type {state_type!r}; expected one of {', '.join(_STATE_TYPES)}."
        )
    return state_cls.from_dict(data, context)


@dataclass(frozen=True)
class Story:
    id: str
    version: str
    start: str
    states: tuple[State, ...] = ()
    vars: dict[str, str] = field(default_factory=dict)

    @property
    def state_ids(self) -> list[str]:
        return [state.id for state in self.states]

    @classmethod
    def from_dict(cls, data: Any) -> Story:
        data = _require_mapping(data, "story")
        context_block = _require_mapping(data.get("context") or {}, "story.context")
        raw_vars = _require_mapping(context_block.get("vars") or {}, "story.context.vars")
        states = tuple(
            parse_state(entry, index)
            for index, entry in enumerate(_require_list(data.get("states"), "story.states"))
        )
        return cls(
            id=_require_str(data.get("id"), "story.id"),
            version=_as_text(data.get("version", "")),
            start=_require_str(data.get("start"), "story.start"),
            states=states,
            vars={str(key): _as_text(value) for key, value in raw_vars.items()},
        )
