"""Entry point for the terminal story runner.

Usage:
    python main.py                               # Play the story named in config/settings.yaml
    python main.py --story stories/other.yaml    # Play another story file
    python main.py --story https://host/s.json   # Fetch and play a remote story
    python main.py --instant                     # Disable the typewriter effect
    python main.py --check                       # Validate the story and exit
"""

from __future__ import annotations

import asyncio
import logging
import sys

import click

from runner.config import load_config
from runner.console import ConsoleAdapter, play
from runner.core import StoryRunner
from storydoc.client import open_story
from storydoc.errors import StoryError
from storydoc.validator import format_issue, has_errors, validate_story

logger = logging.getLogger(__name__)


def _setup_logging(verbose: bool = False, log_file: str | None = None) -> None:
    level = logging.DEBUG if verbose else logging.WARNING
    fmt = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

    # stdout belongs to the story
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    if log_file:
        handlers.append(logging.FileHandler(log_file))

    logging.basicConfig(level=level, format=fmt, handlers=handlers)

    # Quiet down noisy libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)


def _close(runner: StoryRunner) -> None:
    runner.stop()
    click.echo("\nConnection closed.")


async def _run(runner: StoryRunner, console: ConsoleAdapter) -> None:
    try:
        await play(runner, console)
    except click.Abort:
        _close(runner)


@click.command()
@click.option("--story", "story_source", default=None, help="Story file path or http(s) URL")
@click.option("--config-dir", type=click.Path(), default=None, help="Config directory")
@click.option("--instant", is_flag=True, help="Print lines at once, no typewriter")
@click.option("--check", is_flag=True, help="Validate the story and exit")
@click.option("--verbose", is_flag=True, help="Enable debug logging")
def main(
    story_source: str | None,
    config_dir: str | None,
    instant: bool,
    check: bool,
    verbose: bool,
) -> None:
    """Play a branching story as simulated terminal output."""

    cfg = load_config(config_dir)

    log_file = cfg.get("storage", {}).get("log_file")
    _setup_logging(verbose=verbose, log_file=log_file)

    story_cfg = cfg.get("story", {})
    source = story_source or story_cfg.get("source")
    if not source:
        click.echo("No story given. Use --story or set story.source in settings.yaml.")
        sys.exit(1)

    try:
        story = asyncio.run(
            open_story(
                source,
                token=cfg["_secrets"]["story_api_token"],
                timeout=story_cfg.get("request_timeout", 30.0),
            )
        )
    except StoryError as e:
        click.echo(f"Could not load story: {e}", err=True)
        sys.exit(1)
    logger.info("Loaded story %s v%s from %s", story.id, story.version, source)

    if check:
        issues = validate_story(story)
        for issue in issues:
            click.echo(format_issue(issue))
        click.echo(f"{story.id}: {len(issues)} issue(s)")
        sys.exit(1 if has_errors(issues) else 0)

    console = ConsoleAdapter.from_config(cfg, instant=instant)
    try:
        runner = StoryRunner(story, console)
    except StoryError as e:
        click.echo(f"Story error: {e}", err=True)
        sys.exit(1)

    try:
        asyncio.run(_run(runner, console))
    except KeyboardInterrupt:
        _close(runner)
    except StoryError as e:
        click.echo(f"Story error: {e}", err=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
