"""Exceptions raised while loading, validating or running a story."""

from __future__ import annotations


class StoryError(Exception):
    """Base exception for story documents and the runner."""


class StoryLoadError(StoryError):
    """Raised when a story document is missing, unreadable or not valid JSON/YAML."""


class StoryFetchError(StoryLoadError):
    """Raised when a story document cannot be fetched over HTTP."""

    def __init__(self, message: str, status_code: int = 0):
        self.status_code = status_code
        super().__init__(message)


class StoryValidationError(StoryError):
    """Raised when a story document fails structural validation."""


class UnknownStateError(StoryError):
    """Raised when the runner is asked to enter a state the story does not declare."""

    def __init__(self, state_id: str):
        self.state_id = state_id
        super().__init__(f"Unknown state: {state_id}")


class StateTypeError(StoryError):
    """Raised when a state is not of the kind the runner expected."""
