"""
Presentation Module - Read-only views of the session for any front end.

Views are built from immutable SessionState snapshots; nothing here feeds
back into the engine.
"""

from .views import (
    SessionView,
    OpponentView,
    MoveRow,
    RoundView,
    MatchView,
    format_choice,
    outcome_label,
    rating_change_label,
)

__all__ = [
    "SessionView",
    "OpponentView",
    "MoveRow",
    "RoundView",
    "MatchView",
    "format_choice",
    "outcome_label",
    "rating_change_label",
]
