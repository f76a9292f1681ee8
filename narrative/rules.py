"""Text interpolation, guard evaluation and action application."""

from __future__ import annotations

import re
from collections.abc import Iterable, Mapping, MutableMapping

from storydoc.models import (
    ACTION_SET_VAR,
    GUARD_MIN_LENGTH,
    VALUE_FROM_SUBMITTED,
    Action,
    Guard,
)

_TOKEN = re.compile(r"\{([a-zA-Z0-9_]+)\}")


def interpolate(template: str | None, variables: Mapping[str, str]) -> str:
    """Replace ``{name}`` tokens with variable values; unset names become ""."""
    return _TOKEN.sub(lambda match: variables.get(match.group(1)) or "", template or "")


def evaluate_guards(guards: Iterable[Guard] | None, value: str) -> str | None:
    """Return the first failure message, or None when every guard passes."""
    for guard in guards or ():
        if guard.type == GUARD_MIN_LENGTH and len(value or "") < guard.value:
            return f"Enter at least {guard.value} character(s)."
    return None


def apply_actions(
    actions: Iterable[Action] | None,
    variables: MutableMapping[str, str],
    submitted: str | None = None,
) -> None:
    """Mutate ``variables`` in declared order. Unknown action kinds are skipped."""
    for action in actions or ():
        if action.type != ACTION_SET_VAR:
            continue
        if action.value_from == VALUE_FROM_SUBMITTED:
            new_value = submitted or ""
        elif action.value is not None:
            new_value = action.value
        else:
            new_value = ""
        variables[action.key] = new_value
