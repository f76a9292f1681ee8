"""Terminal front end: a typewriter output adapter and the read/dispatch loop."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable, Sequence

import click

from storydoc.models import Choice, InputSpec

from .core import RunnerMode, StoryRunner
from .output import PrintOptions

logger = logging.getLogger(__name__)

ReadLine = Callable[[str], Awaitable[str]]


class ConsoleAdapter:
    """Output adapter that writes to the terminal with click."""

    def __init__(
        self,
        typewriter: bool = True,
        char_delay_ms: float = 18,
        fast_char_delay_ms: float = 6,
    ):
        self._typewriter = typewriter
        self._char_delay = max(0.0, char_delay_ms / 1000)
        self._fast_char_delay = max(0.0, fast_char_delay_ms / 1000)
        self.active_input: InputSpec | None = None
        self.active_choices: tuple[Choice, ...] = ()

    @classmethod
    def from_config(cls, cfg: dict, instant: bool = False) -> ConsoleAdapter:
        console_cfg = cfg.get("console", {}) or {}
        # an empty yaml value (None) means "use the default"; 0 is kept
        char_delay = console_cfg.get("char_delay_ms")
        fast_char_delay = console_cfg.get("fast_char_delay_ms")
        return cls(
            typewriter=bool(console_cfg.get("typewriter", True)) and not instant,
            char_delay_ms=18 if char_delay is None else char_delay,
            fast_char_delay_ms=6 if fast_char_delay is None else fast_char_delay,
        )

    def _delay_for(self, options: PrintOptions) -> float:
        if not self._typewriter or options.instant:
            return 0.0
        return self._fast_char_delay if options.speed == "fast" else self._char_delay

    async def print(self, text: str, options: PrintOptions) -> None:
        delay = self._delay_for(options)
        if delay <= 0 or not text:
            click.echo(text)
            return
        for char in text:
            click.echo(char, nl=False)
            await asyncio.sleep(delay)
        click.echo("")

    async def show_input(self, spec: InputSpec) -> None:
        self.active_input = spec

    async def show_choices(self, prompt: str, choices: Sequence[Choice]) -> None:
        self.active_choices = tuple(choices)
        if prompt:
            click.echo(prompt)
        for number, option in enumerate(choices, start=1):
            click.echo(f"  {number}. {option.label}")

    def clear_interactive(self) -> None:
        self.active_input = None
        self.active_choices = ()

    def on_validation_error(self, message: str) -> None:
        click.secho(f"  ! {message}", fg="red")

    def input_prompt(self) -> str:
        spec = self.active_input
        if spec is None:
            return ">"
        if spec.placeholder:
            return f"{spec.label} [{spec.placeholder}]"
        return spec.label

    def resolve_choice(self, raw: str) -> str | None:
        """Map a typed number, option id or label to an option id."""
        answer = (raw or "").strip()
        if not answer:
            return None
        if answer.isdigit():
            index = int(answer) - 1
            if 0 <= index < len(self.active_choices):
                return self.active_choices[index].id
            return None
        folded = answer.casefold()
        for option in self.active_choices:
            if option.id.casefold() == folded or option.label.casefold() == folded:
                return option.id
        return None


async def _prompt_line(prompt: str) -> str:
    return await asyncio.to_thread(click.prompt, prompt, default="", show_default=False)


async def play(
    runner: StoryRunner,
    console: ConsoleAdapter,
    read_line: ReadLine | None = None,
) -> RunnerMode:
    """Run a story to the end, reading the reader's answers from the terminal."""
    read = read_line or _prompt_line
    await runner.start()

    while True:
        await runner.wait()
        mode = runner.mode

        if mode is RunnerMode.WAITING_INPUT:
            await runner.submit(await read(console.input_prompt()))
        elif mode is RunnerMode.WAITING_CHOICE:
            choice_id = console.resolve_choice(await read("Choose"))
            if choice_id is None:
                console.on_validation_error(f"Pick a number between 1 and {len(console.active_choices)}.")
                continue
            await runner.choose(choice_id)
        elif mode is RunnerMode.WAITING_ENTER:
            await read("[Enter]")
            await runner.enter()
        else:
            logger.debug("Story finished in %s at %s", mode.value, runner.current_state_id)
            return mode
