"""
Pydantic view models - what a front end needs to draw the session.

These models define the contract between the engine and any renderer
(terminal, web, ...). All of them serialize with model_dump().
"""

from typing import Optional

from pydantic import BaseModel, Field

from ..engine_core import MatchOutcome, MoveRecord, RoundOutcome, SessionPhase, SessionState
from ..protocol import Gesture, RoundWinner


NO_PICK_LABEL = "No pick"

_OUTCOME_LABELS = {
    RoundWinner.YOU: "Won",
    RoundWinner.OPPONENT: "Lost",
    RoundWinner.DRAW: "Draw",
}


def format_choice(choice: Optional[Gesture]) -> str:
    """Display text for a gesture; absent gestures mean no pick in time."""
    if choice is None:
        return NO_PICK_LABEL
    return choice.value


def outcome_label(winner: RoundWinner) -> str:
    """Won/Lost/Draw from the local player's point of view."""
    return _OUTCOME_LABELS[winner]


def rating_change_label(change: Optional[int]) -> Optional[str]:
    """Signed rating delta, e.g. "+12" or "-8"; None for casual matches."""
    if change is None:
        return None
    return f"{change:+d}"


# =============================================================================
# Nested Models
# =============================================================================

class OpponentView(BaseModel):
    """Opponent identity for display."""
    username: str
    rating: int


class MoveRow(BaseModel):
    """One row of the move recap table."""
    round: int
    my_choice: str
    opponent_choice: str
    outcome: RoundWinner
    outcome_label: str

    @classmethod
    def from_record(cls, record: MoveRecord) -> "MoveRow":
        return cls(
            round=record.round,
            my_choice=format_choice(record.my_choice),
            opponent_choice=format_choice(record.opponent_choice),
            outcome=record.outcome,
            outcome_label=outcome_label(record.outcome),
        )


class RoundView(BaseModel):
    """The most recently resolved round."""
    round: int
    my_choice: str
    opponent_choice: str
    winner: RoundWinner
    outcome_label: str
    my_score: int
    opponent_score: int

    @classmethod
    def from_outcome(cls, outcome: RoundOutcome) -> "RoundView":
        return cls(
            round=outcome.round,
            my_choice=format_choice(outcome.my_choice),
            opponent_choice=format_choice(outcome.opponent_choice),
            winner=outcome.winner,
            outcome_label=outcome_label(outcome.winner),
            my_score=outcome.my_score,
            opponent_score=outcome.opponent_score,
        )


class MatchView(BaseModel):
    """Final match result; rating fields are empty for casual matches."""
    result: str
    my_score: int
    opponent_score: int
    rating_change: Optional[int] = None
    rating_change_label: Optional[str] = None
    new_rating: Optional[int] = None

    @classmethod
    def from_outcome(cls, outcome: MatchOutcome) -> "MatchView":
        return cls(
            result=outcome.result.value,
            my_score=outcome.my_score,
            opponent_score=outcome.opponent_score,
            rating_change=outcome.rating_change,
            rating_change_label=rating_change_label(outcome.rating_change),
            new_rating=outcome.new_rating,
        )


# =============================================================================
# Session View
# =============================================================================

class SessionView(BaseModel):
    """Everything a renderer needs for one frame."""
    phase: str
    ranked: bool = False
    opponent: Optional[OpponentView] = None
    current_round: int = 1
    seconds_remaining: int = 0
    my_choice: Optional[str] = None
    opponent_has_chosen: bool = False
    my_score: int = 0
    opponent_score: int = 0
    moves: list[MoveRow] = Field(default_factory=list)
    last_round: Optional[RoundView] = None
    match: Optional[MatchView] = None
    failure: Optional[str] = None

    # Derived flags
    can_choose: bool = Field(False, description="Playing and no gesture locked yet")
    countdown_expired: bool = Field(False, description="Local timer hit zero; waiting for the server")

    @classmethod
    def from_state(cls, state: SessionState) -> "SessionView":
        playing = state.phase == SessionPhase.PLAYING
        return cls(
            phase=state.phase.value,
            ranked=state.ranked,
            opponent=(
                OpponentView(username=state.opponent.username, rating=state.opponent.rating)
                if state.opponent
                else None
            ),
            current_round=state.current_round,
            seconds_remaining=state.seconds_remaining,
            my_choice=state.my_pending_choice.value if state.my_pending_choice else None,
            opponent_has_chosen=state.opponent_has_chosen,
            my_score=state.score.mine,
            opponent_score=state.score.opponent,
            moves=[MoveRow.from_record(r) for r in state.move_history],
            last_round=(
                RoundView.from_outcome(state.last_round_outcome)
                if state.last_round_outcome
                else None
            ),
            match=MatchView.from_outcome(state.match_outcome) if state.match_outcome else None,
            failure=state.failure,
            can_choose=playing and state.my_pending_choice is None,
            countdown_expired=playing and state.seconds_remaining == 0,
        )
