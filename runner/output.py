"""The surface the runner draws on.

Hosts implement :class:`OutputAdapter`. ``print``, ``show_input`` and
``show_choices`` may be plain methods or coroutines; the runner awaits
whatever they return. Two hooks are optional and looked up by name:

* ``on_state_change(state_id, mode)``: called on every mode change.
* ``on_validation_error(message)``: called when a guard rejects input.
"""

from __future__ import annotations

from collections.abc import Awaitable, Sequence
from dataclasses import dataclass
from typing import Protocol

from storydoc.models import Choice, InputSpec


@dataclass(frozen=True)
class PrintOptions:
    instant: bool = False  # print without typewriter; the adapter decides what that means
    speed: str = "normal"  # "normal" | "fast"


class OutputAdapter(Protocol):
    def print(self, text: str, options: PrintOptions) -> Awaitable[None] | None: ...

    def show_input(self, spec: InputSpec) -> Awaitable[None] | None: ...

    def show_choices(self, prompt: str, choices: Sequence[Choice]) -> Awaitable[None] | None: ...

    def clear_interactive(self) -> None: ...
