"""Story documents: schema, loading and static validation."""

from .errors import (
    StateTypeError,
    StoryError,
    StoryFetchError,
    StoryLoadError,
    StoryValidationError,
    UnknownStateError,
)
from .loader import load_story, parse_story_text
from .models import (
    Action,
    Choice,
    ChoiceState,
    Guard,
    InputSpec,
    InputState,
    SequenceLine,
    SequenceState,
    State,
    Story,
    Transition,
)

__all__ = [
    "Action",
    "Choice",
    "ChoiceState",
    "Guard",
    "InputSpec",
    "InputState",
    "SequenceLine",
    "SequenceState",
    "State",
    "StateTypeError",
    "Story",
    "StoryError",
    "StoryFetchError",
    "StoryLoadError",
    "StoryValidationError",
    "Transition",
    "UnknownStateError",
    "load_story",
    "parse_story_text",
]
