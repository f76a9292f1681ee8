"""Static checks over a story graph.

The runner only verifies the start state when it is built; everything else
(dangling ``to`` targets, unreachable states, loops that never stop for the
reader) shows up here before a story ships.
"""

from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field

from .models import (
    EVENT_ENTER,
    EVENT_SUBMIT,
    ChoiceState,
    InputState,
    SequenceState,
    State,
    Story,
)

ERROR = "ERROR"
WARNING = "WARNING"


@dataclass(frozen=True)
class Issue:
    severity: str
    code: str
    message: str
    context: dict[str, str] = field(default_factory=dict)


def format_issue(issue: Issue) -> str:
    context = " ".join(f"{key}={value}" for key, value in issue.context.items())
    suffix = f" ({context})" if context else ""
    return f"[{issue.severity}] {issue.code}: {issue.message}{suffix}"


def has_errors(issues: list[Issue]) -> bool:
    return any(issue.severity == ERROR for issue in issues)


def _edges(state: State) -> list[tuple[str, str]]:
    """Return (field path, target id) for every successor a state names."""
    edges: list[tuple[str, str]] = []
    if isinstance(state, SequenceState):
        if state.to:
            edges.append(("to", state.to))
        for index, transition in enumerate(state.on):
            edges.append((f"on[{index}].to", transition.to))
    elif isinstance(state, InputState):
        for index, transition in enumerate(state.on):
            edges.append((f"on[{index}].to", transition.to))
    elif isinstance(state, ChoiceState):
        for option in state.choices:
            edges.append((f"choices.{option.id}.to", option.to))
    return edges


def validate_story(story: Story) -> list[Issue]:
    """Return every problem found in ``story``, errors and warnings alike."""
    issues: list[Issue] = []

    counts = Counter(story.state_ids)
    for state_id, count in counts.items():
        if count > 1:
            issues.append(
                Issue(ERROR, "DUPLICATE_STATE_ID", "Duplicate state id detected.", {"state_id": state_id})
            )

    states = {state.id: state for state in story.states}

    if story.start not in states:
        issues.append(
            Issue(ERROR, "MISSING_START", "Start references missing state.", {"referenced_id": story.start})
        )

    for state in states.values():
        for path, target in _edges(state):
            if target not in states:
                issues.append(
                    Issue(
                        ERROR,
                        "MISSING_TARGET",
                        "Transition references missing state.",
                        {"state_id": state.id, "field_path": path, "referenced_id": target},
                    )
                )
        _check_state_shape(state, issues)

    _check_reachability(story, states, issues)
    _check_auto_advance_cycles(states, issues)
    return issues


def _check_state_shape(state: State, issues: list[Issue]) -> None:
    if isinstance(state, InputState) and state.transition_for(EVENT_SUBMIT) is None:
        issues.append(
            Issue(WARNING, "MISSING_SUBMIT", "Input state has no submit transition.", {"state_id": state.id})
        )
    elif isinstance(state, SequenceState):
        if state.await_event == EVENT_ENTER and state.transition_for(EVENT_ENTER) is None:
            issues.append(
                Issue(
                    WARNING,
                    "MISSING_ENTER",
                    "Sequence awaits Enter but has no enter transition; the story ends there.",
                    {"state_id": state.id},
                )
            )
    elif isinstance(state, ChoiceState):
        choice_counts = Counter(option.id for option in state.choices)
        for choice_id, count in choice_counts.items():
            if count > 1:
                issues.append(
                    Issue(
                        WARNING,
                        "DUPLICATE_CHOICE_ID",
                        "Duplicate choice id; only the first option can be chosen.",
                        {"state_id": state.id, "choice_id": choice_id},
                    )
                )


def _check_reachability(story: Story, states: dict[str, State], issues: list[Issue]) -> None:
    if story.start not in states:
        return
    seen = {story.start}
    stack = [story.start]
    while stack:
        state = states[stack.pop()]
        if state.terminal:
            continue
        for _path, target in _edges(state):
            if target in states and target not in seen:
                seen.add(target)
                stack.append(target)

    for state_id in states:
        if state_id not in seen:
            issues.append(
                Issue(WARNING, "UNREACHABLE_STATE", "State is not reachable from start.", {"state_id": state_id})
            )


def _auto_next(state: State) -> str | None:
    if not isinstance(state, SequenceState) or state.terminal or state.await_event:
        return None
    return state.to


def _check_auto_advance_cycles(states: dict[str, State], issues: list[Issue]) -> None:
    reported: set[str] = set()
    for start_id in states:
        path: list[str] = []
        current: str | None = start_id
        while current is not None and current in states and current not in path:
            path.append(current)
            current = _auto_next(states[current])
        if current is None or current not in path:
            continue
        cycle = path[path.index(current):]
        key = min(cycle)
        if key in reported:
            continue
        reported.add(key)
        issues.append(
            Issue(
                WARNING,
                "AUTO_ADVANCE_CYCLE",
                "Sequence states loop forever without waiting for the reader.",
                {"cycle": " -> ".join(cycle + [current])},
            )
        )
