"""
Tests for presentation view models.
"""

from ..engine_core import (
    MatchOutcome,
    MoveRecord,
    OpponentInfo,
    RoundOutcome,
    Score,
    SessionPhase,
    SessionState,
)
from ..presentation import SessionView, format_choice, outcome_label, rating_change_label
from ..protocol import Gesture, MatchResult, RoundWinner


class TestLabels:
    """Tests for display helpers."""

    def test_format_choice(self):
        assert format_choice(Gesture.ROCK) == "rock"
        assert format_choice(None) == "No pick"

    def test_outcome_label(self):
        assert outcome_label(RoundWinner.YOU) == "Won"
        assert outcome_label(RoundWinner.OPPONENT) == "Lost"
        assert outcome_label(RoundWinner.DRAW) == "Draw"

    def test_rating_change_label(self):
        assert rating_change_label(12) == "+12"
        assert rating_change_label(-8) == "-8"
        assert rating_change_label(0) == "+0"
        assert rating_change_label(None) is None


class TestSessionView:
    """Tests for SessionView.from_state."""

    def test_idle(self):
        view = SessionView.from_state(SessionState())

        assert view.phase == "idle"
        assert view.opponent is None
        assert view.can_choose is False
        assert view.moves == []

    def test_playing_can_choose(self, playing_state):
        view = SessionView.from_state(playing_state)

        assert view.phase == "playing"
        assert view.opponent.username == "bob"
        assert view.current_round == 2
        assert (view.my_score, view.opponent_score) == (1, 1)
        assert view.can_choose is True
        assert view.countdown_expired is False

    def test_locked_choice(self, playing_state):
        view = SessionView.from_state(
            playing_state._copy_with(my_pending_choice=Gesture.PAPER, opponent_has_chosen=True)
        )

        assert view.my_choice == "paper"
        assert view.opponent_has_chosen is True
        assert view.can_choose is False

    def test_countdown_expired(self, playing_state):
        view = SessionView.from_state(playing_state._copy_with(seconds_remaining=0))

        assert view.countdown_expired is True

    def test_round_result(self, playing_state):
        outcome = RoundOutcome(
            round=2,
            my_choice=None,
            opponent_choice=Gesture.ROCK,
            winner=RoundWinner.OPPONENT,
            my_score=1,
            opponent_score=2,
        )
        state = playing_state.with_move(
            MoveRecord(2, None, Gesture.ROCK, RoundWinner.OPPONENT)
        )._copy_with(
            phase=SessionPhase.ROUND_RESOLVED,
            last_round_outcome=outcome,
            score=Score(mine=1, opponent=2),
        )

        view = SessionView.from_state(state)

        assert view.phase == "round_result"
        assert view.last_round.my_choice == "No pick"
        assert view.last_round.outcome_label == "Lost"
        assert view.moves[0].opponent_choice == "rock"
        assert view.can_choose is False

    def test_ranked_match_complete(self):
        state = SessionState(
            phase=SessionPhase.MATCH_COMPLETE,
            opponent=OpponentInfo(username="bob", rating=1200),
            match_outcome=MatchOutcome(
                result=MatchResult.LOSS,
                my_score=1,
                opponent_score=2,
                rating_change=-8,
                new_rating=1192,
            ),
        )

        view = SessionView.from_state(state)

        assert view.match.result == "loss"
        assert view.match.rating_change_label == "-8"
        assert view.match.new_rating == 1192

    def test_casual_match_complete(self):
        state = SessionState(
            phase=SessionPhase.MATCH_COMPLETE,
            match_outcome=MatchOutcome(result=MatchResult.DRAW, my_score=1, opponent_score=1),
        )

        view = SessionView.from_state(state)

        assert view.match.rating_change is None
        assert view.match.rating_change_label is None
        assert view.match.new_rating is None

    def test_failure(self):
        view = SessionView.from_state(
            SessionState(phase=SessionPhase.FAILED, failure="Opponent disconnected")
        )

        assert view.phase == "failed"
        assert view.failure == "Opponent disconnected"

    def test_serializes(self, playing_state):
        data = SessionView.from_state(playing_state).model_dump()

        assert data["phase"] == "playing"
        assert data["opponent"] == {"username": "bob", "rating": 1200}
