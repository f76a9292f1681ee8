"""Story runner: the interpreter, its output contract and the terminal front end."""

from .core import Pending, RunnerMode, StoryRunner
from .output import OutputAdapter, PrintOptions

__all__ = [
    "OutputAdapter",
    "Pending",
    "PrintOptions",
    "RunnerMode",
    "StoryRunner",
]
