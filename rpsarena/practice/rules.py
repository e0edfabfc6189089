"""
Practice match rules - best of three, at most five rounds.

A missing gesture (no pick before the deadline) loses to any gesture; two
missing gestures draw.
"""

from __future__ import annotations
from dataclasses import dataclass, field

from ..config import PracticeConfig
from ..protocol import (
    Gesture,
    MatchCompleteMessage,
    MatchResult,
    RoundResultMessage,
    RoundWinner,
)

BEATS = {
    Gesture.ROCK: Gesture.SCISSORS,
    Gesture.PAPER: Gesture.ROCK,
    Gesture.SCISSORS: Gesture.PAPER,
}


def determine_winner(mine: Gesture | None, theirs: Gesture | None) -> RoundWinner:
    """Winner of one round from the point of view of `mine`."""
    if mine == theirs:
        return RoundWinner.DRAW
    if theirs is None:
        return RoundWinner.YOU
    if mine is None:
        return RoundWinner.OPPONENT
    return RoundWinner.YOU if BEATS[mine] == theirs else RoundWinner.OPPONENT


@dataclass
class PracticeMatch:
    """Score keeping for one player-vs-bot match."""
    config: PracticeConfig = field(default_factory=PracticeConfig)
    player_score: int = 0
    bot_score: int = 0
    rounds: list[RoundResultMessage] = field(default_factory=list)

    @property
    def current_round(self) -> int:
        return len(self.rounds) + 1

    @property
    def is_over(self) -> bool:
        return (
            self.player_score >= self.config.wins_needed
            or self.bot_score >= self.config.wins_needed
            or len(self.rounds) >= self.config.max_rounds
        )

    def resolve_round(self, player_choice: Gesture | None, bot_choice: Gesture | None) -> RoundResultMessage:
        """Score the current round and return the player's round_result."""
        if self.is_over:
            raise ValueError("Match is already over")

        winner = determine_winner(player_choice, bot_choice)
        if winner == RoundWinner.YOU:
            self.player_score += 1
        elif winner == RoundWinner.OPPONENT:
            self.bot_score += 1

        result = RoundResultMessage(
            round=self.current_round,
            your_choice=player_choice,
            opponent_choice=bot_choice,
            winner=winner,
            your_score=self.player_score,
            opponent_score=self.bot_score,
        )
        self.rounds.append(result)
        return result

    def result(self) -> MatchCompleteMessage:
        """The player's match_complete message. Practice matches are unrated."""
        if self.player_score > self.bot_score:
            outcome = MatchResult.WIN
        elif self.player_score < self.bot_score:
            outcome = MatchResult.LOSS
        else:
            outcome = MatchResult.DRAW
        return MatchCompleteMessage(
            result=outcome,
            your_score=self.player_score,
            opponent_score=self.bot_score,
            elo_change=None,
            new_elo=None,
        )
