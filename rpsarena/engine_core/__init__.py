"""
Engine Core - Session state and its transitions.

The engine is the client's view of a match in progress:
1. Holds SessionState (phase, round, countdown, score, history)
2. Turns intents, server messages and timer ticks into Actions
3. Applies actions via the reducer, which guards every transition by phase

The server is authoritative: the engine never scores a round on its own.
"""

from .state import (
    SessionPhase,
    SessionState,
    OpponentInfo,
    Score,
    RoundOutcome,
    MatchOutcome,
    MoveRecord,
)
from .action import Action, ActionType, ActionPayload, ActionResult
from .reducer import Reducer, apply_action

__all__ = [
    "SessionPhase",
    "SessionState",
    "OpponentInfo",
    "Score",
    "RoundOutcome",
    "MatchOutcome",
    "MoveRecord",
    "Action",
    "ActionType",
    "ActionPayload",
    "ActionResult",
    "Reducer",
    "apply_action",
]
