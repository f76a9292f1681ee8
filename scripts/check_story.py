"""Validate one or more story documents.

Usage:
    python scripts/check_story.py stories/night_shift.json
    python scripts/check_story.py stories/*.json --strict

Exits with status 1 when any story has an ERROR (or any issue with --strict).
"""

from __future__ import annotations

import sys
from pathlib import Path

import click

# Add project root to path
sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from storydoc.errors import StoryError
from storydoc.loader import load_story
from storydoc.validator import format_issue, has_errors, validate_story


@click.command()
@click.argument("paths", nargs=-1, required=True, type=click.Path(exists=True, dir_okay=False))
@click.option("--strict", is_flag=True, help="Treat warnings as failures")
def check(paths: tuple[str, ...], strict: bool) -> None:
    """Run static checks over story documents."""

    failed = False
    for path in paths:
        try:
            story = load_story(path)
        except StoryError as e:
            click.echo(f"{path}: {e}", err=True)
            failed = True
            continue

        issues = validate_story(story)
        for issue in issues:
            click.echo(f"{path}: {format_issue(issue)}")
        if has_errors(issues) or (strict and issues):
            failed = True
        else:
            click.echo(f"{path}: OK ({len(story.states)} states, {len(issues)} warning(s))")

    sys.exit(1 if failed else 0)


if __name__ == "__main__":
    check()
