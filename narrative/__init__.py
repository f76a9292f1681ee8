"""Narrative rules: variable interpolation, guards, actions."""

from .rules import (
    apply_actions,
    evaluate_guards,
    interpolate,
)

__all__ = [
    "apply_actions",
    "evaluate_guards",
    "interpolate",
]
