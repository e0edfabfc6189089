"""
Session State - The client's single source of truth for a match in progress.

Design principles:
- Immutable-friendly: every transition returns a new state
- Snapshots handed to presentation are never mutated afterwards
- Match-scoped fields (score, history) are cleared only when a match begins,
  the queue is left, or the session is reset
"""

from __future__ import annotations
from dataclasses import dataclass, field, replace
from enum import Enum

from ..config import DEFAULT_ROUND_SECONDS
from ..protocol import Gesture, MatchResult, RoundWinner


class SessionPhase(Enum):
    """Where the session is in the queue/match lifecycle."""
    IDLE = "idle"
    QUEUED = "queued"
    PLAYING = "playing"
    ROUND_RESOLVED = "round_result"
    MATCH_COMPLETE = "match_complete"
    FAILED = "failed"  # Terminal until reset


@dataclass(frozen=True)
class OpponentInfo:
    """Opponent identity and rating at the time the match was found."""
    username: str
    rating: int


@dataclass(frozen=True)
class Score:
    """Round wins, mine first."""
    mine: int = 0
    opponent: int = 0

    def as_tuple(self) -> tuple[int, int]:
        return (self.mine, self.opponent)


@dataclass(frozen=True)
class RoundOutcome:
    """The server's resolution of one round."""
    round: int
    my_choice: Gesture | None
    opponent_choice: Gesture | None
    winner: RoundWinner
    my_score: int
    opponent_score: int


@dataclass(frozen=True)
class MatchOutcome:
    """
    The server's resolution of the match.

    rating_change/new_rating stay None for casual matches.
    """
    result: MatchResult
    my_score: int
    opponent_score: int
    rating_change: int | None = None
    new_rating: int | None = None

    @property
    def is_rated(self) -> bool:
        return self.rating_change is not None


@dataclass(frozen=True)
class MoveRecord:
    """One row of the move history. None gestures mean no pick in time."""
    round: int
    my_choice: Gesture | None
    opponent_choice: Gesture | None
    outcome: RoundWinner


@dataclass(frozen=True)
class SessionState:
    """
    Complete session state at a point in time.

    Only the reducer produces new states.
    """
    phase: SessionPhase = SessionPhase.IDLE
    opponent: OpponentInfo | None = None
    session_id: str | None = None
    ranked: bool = False

    # Round tracking
    current_round: int = 1
    round_started: bool = False  # round_start applied for current_round
    seconds_remaining: int = DEFAULT_ROUND_SECONDS
    my_pending_choice: Gesture | None = None
    opponent_has_chosen: bool = False

    # Results
    last_round_outcome: RoundOutcome | None = None
    match_outcome: MatchOutcome | None = None
    score: Score = field(default_factory=Score)
    move_history: tuple[MoveRecord, ...] = ()

    failure: str | None = None

    @property
    def is_failed(self) -> bool:
        return self.phase == SessionPhase.FAILED

    @property
    def in_match(self) -> bool:
        """True while an opponent is attached to the session."""
        return self.phase in {
            SessionPhase.PLAYING,
            SessionPhase.ROUND_RESOLVED,
            SessionPhase.MATCH_COMPLETE,
        }

    def history_entry(self, round_number: int) -> MoveRecord | None:
        """Get the history row for a round."""
        for record in self.move_history:
            if record.round == round_number:
                return record
        return None

    def with_move(self, record: MoveRecord) -> SessionState:
        """Return new state with `record` inserted, replacing any row for its round."""
        kept = [r for r in self.move_history if r.round != record.round]
        kept.append(record)
        kept.sort(key=lambda r: r.round)
        return self._copy_with(move_history=tuple(kept))

    def with_match_cleared(self) -> SessionState:
        """Return new state with every match-scoped field back at its default."""
        return self._copy_with(
            opponent=None,
            session_id=None,
            current_round=1,
            round_started=False,
            seconds_remaining=DEFAULT_ROUND_SECONDS,
            my_pending_choice=None,
            opponent_has_chosen=False,
            last_round_outcome=None,
            match_outcome=None,
            score=Score(),
            move_history=(),
        )

    def _copy_with(self, **kwargs) -> SessionState:
        """Create a copy with some fields replaced."""
        return replace(self, **kwargs)
