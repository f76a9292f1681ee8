"""Read story documents from JSON or YAML."""

from __future__ import annotations

import json
import logging
from pathlib import Path

import yaml

from .errors import StoryLoadError, StoryValidationError
from .models import Story

logger = logging.getLogger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


def detect_format(name: str | Path) -> str:
    """Return ``"yaml"`` for .yaml/.yml names, ``"json"`` for anything else."""
    return "yaml" if Path(str(name)).suffix.lower() in _YAML_SUFFIXES else "json"


def parse_story_text(text: str, fmt: str = "json", source: str = "<string>") -> Story:
    """Parse a story document held in memory."""
    try:
        raw = yaml.safe_load(text) if fmt == "yaml" else json.loads(text)
    except json.JSONDecodeError as exc:
        raise StoryLoadError(f"Invalid JSON in {source}: {exc}") from exc
    except yaml.YAMLError as exc:
        raise StoryLoadError(f"Invalid YAML in {source}: {exc}") from exc

    if not isinstance(raw, dict):
        raise StoryValidationError(f"Expected top-level object in {source}")

    story = Story.from_dict(raw)
    logger.debug(
        "Loaded story %s v%s (%d states) from %s",
        story.id, story.version, len(story.states), source,
    )
    return story


def load_story(path: str | Path) -> Story:
    """Load a story file from disk."""
    path = Path(path)
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as exc:
        raise StoryLoadError(f"Story file not found: {path}") from exc
    except UnicodeDecodeError as exc:
        raise StoryLoadError(f"Story file is not valid UTF-8: {path}") from exc
    except OSError as exc:
        raise StoryLoadError(f"Unable to read story file: {path}") from exc
    return parse_story_text(text, detect_format(path), source=str(path))
