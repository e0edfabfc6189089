"""
Reducer - Applies actions to session state.

The reducer is the single point of state mutation.
All state changes must go through apply_action().

Design principles:
- Pure function: (state, action) -> ActionResult
- Phase-guarded: an action not valid for the current phase is a no-op,
  never an error for the caller
- Never decides a round or match: outcomes are copied from server messages
- Outbound wire messages are returned, not sent
"""

from __future__ import annotations
from dataclasses import dataclass

from .state import (
    SessionPhase,
    SessionState,
    OpponentInfo,
    Score,
    RoundOutcome,
    MatchOutcome,
    MoveRecord,
)
from .action import Action, ActionType, ActionResult
from ..errors import OPPONENT_DISCONNECTED
from ..protocol import (
    ChoiceMessage,
    JoinQueueMessage,
    LeaveQueueMessage,
)

_ANY_PHASE = frozenset(SessionPhase)

# Server message type -> phases in which it applies
MESSAGE_PHASES: dict[str, frozenset[SessionPhase]] = {
    "queued": frozenset({SessionPhase.QUEUED}),
    "match_found": frozenset({SessionPhase.QUEUED}),
    "round_start": frozenset({SessionPhase.PLAYING, SessionPhase.ROUND_RESOLVED}),
    "opponent_chose": frozenset({SessionPhase.PLAYING}),
    "round_result": frozenset({SessionPhase.PLAYING, SessionPhase.ROUND_RESOLVED}),
    "match_complete": frozenset({SessionPhase.PLAYING, SessionPhase.ROUND_RESOLVED}),
    # A later failure replaces the text of an earlier one
    "opponent_disconnected": _ANY_PHASE,
    "error": _ANY_PHASE,
}

# Intent/tick -> phases in which it applies
ACTION_PHASES: dict[ActionType, frozenset[SessionPhase]] = {
    ActionType.JOIN_QUEUE: frozenset({SessionPhase.IDLE, SessionPhase.MATCH_COMPLETE}),
    ActionType.LEAVE_QUEUE: frozenset({SessionPhase.QUEUED}),
    ActionType.SUBMIT_CHOICE: frozenset({SessionPhase.PLAYING}),
    ActionType.TICK: frozenset({SessionPhase.PLAYING}),
    ActionType.RESET: _ANY_PHASE,
}


@dataclass
class Reducer:
    """
    Reducer applies actions to session state.

    Stateless - all state is in SessionState.
    """

    def apply(self, state: SessionState, action: Action) -> ActionResult:
        """
        Apply an action to the session state.

        Returns ActionResult with new state, or an ignored result that leaves
        the caller's state untouched.
        """
        validation_error = self._validate_action(state, action)
        if validation_error:
            return ActionResult.ignored(validation_error)

        handler = self._get_handler(action)
        if not handler:
            return ActionResult.ignored(f"No handler for {action.name}", error_code="NO_HANDLER")

        return handler(state, action)

    def _validate_action(self, state: SessionState, action: Action) -> str | None:
        """
        Check the action against the current phase.

        Returns the reason it does not apply, None if it does.
        """
        if action.action_type == ActionType.SERVER_MESSAGE:
            message = action.payload.message
            if message is None:
                return "Server action without a message"
            allowed = MESSAGE_PHASES.get(message.type)
        else:
            allowed = ACTION_PHASES.get(action.action_type)

        if allowed is None:
            return f"Unknown action {action.name}"
        if state.phase not in allowed:
            return f"{action.name} not valid in phase {state.phase.value}"

        if action.action_type == ActionType.SUBMIT_CHOICE:
            if action.payload.choice is None:
                return "No gesture given"
            if state.my_pending_choice is not None:
                return f"Choice already locked for round {state.current_round}"

        if action.action_type == ActionType.TICK and state.seconds_remaining <= 0:
            return "Countdown already expired"

        return None

    def _get_handler(self, action: Action):
        """Get the handler function for an action."""
        if action.action_type == ActionType.SERVER_MESSAGE:
            handlers = {
                "queued": self._handle_queued,
                "match_found": self._handle_match_found,
                "round_start": self._handle_round_start,
                "opponent_chose": self._handle_opponent_chose,
                "round_result": self._handle_round_result,
                "match_complete": self._handle_match_complete,
                "opponent_disconnected": self._handle_opponent_disconnected,
                "error": self._handle_error,
            }
            return handlers.get(action.payload.message.type)

        handlers = {
            ActionType.JOIN_QUEUE: self._handle_join_queue,
            ActionType.LEAVE_QUEUE: self._handle_leave_queue,
            ActionType.SUBMIT_CHOICE: self._handle_submit_choice,
            ActionType.RESET: self._handle_reset,
            ActionType.TICK: self._handle_tick,
        }
        return handlers.get(action.action_type)

    # -------------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------------

    def _handle_join_queue(self, state: SessionState, action: Action) -> ActionResult:
        """Enter the queue. Guests can only play casual matches."""
        ranked = action.payload.ranked and not action.payload.guest
        new_state = state.with_match_cleared()._copy_with(
            phase=SessionPhase.QUEUED,
            ranked=ranked,
            failure=None,
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Joined {'ranked' if ranked else 'casual'} queue"],
            outbound=[JoinQueueMessage(ranked=ranked)],
        )

    def _handle_leave_queue(self, state: SessionState, action: Action) -> ActionResult:
        new_state = state._copy_with(
            phase=SessionPhase.IDLE,
            score=Score(),
            move_history=(),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=["Left queue"],
            outbound=[LeaveQueueMessage()],
        )

    def _handle_submit_choice(self, state: SessionState, action: Action) -> ActionResult:
        """Lock the gesture for this round. The validator already rejected repeats."""
        choice = action.payload.choice
        new_state = state._copy_with(my_pending_choice=choice)
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Chose {choice.value} for round {state.current_round}"],
            outbound=[ChoiceMessage(choice=choice)],
        )

    def _handle_reset(self, state: SessionState, action: Action) -> ActionResult:
        return ActionResult.success_with_state(SessionState(), changes=["Session reset"])

    def _handle_tick(self, state: SessionState, action: Action) -> ActionResult:
        """
        One local second elapsed.

        Reaching zero only stops the countdown; the round stays open until
        the server's round_result arrives.
        """
        remaining = max(0, state.seconds_remaining - 1)
        new_state = state._copy_with(seconds_remaining=remaining)
        changes = ["Countdown expired, waiting for server"] if remaining == 0 else []
        return ActionResult.success_with_state(new_state, changes=changes)

    # -------------------------------------------------------------------------
    # Server messages
    # -------------------------------------------------------------------------

    def _handle_queued(self, state: SessionState, action: Action) -> ActionResult:
        return ActionResult.success_with_state(state, changes=["Queue confirmed"])

    def _handle_match_found(self, state: SessionState, action: Action) -> ActionResult:
        """A new match begins: score and history start over."""
        message = action.payload.message
        opponent = OpponentInfo(
            username=message.opponent.username,
            rating=message.opponent.rating,
        )
        new_state = state.with_match_cleared()._copy_with(
            phase=SessionPhase.PLAYING,
            opponent=opponent,
            session_id=message.session_id,
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Matched against {opponent.username} ({opponent.rating})"],
        )

    def _handle_round_start(self, state: SessionState, action: Action) -> ActionResult:
        message = action.payload.message
        if message.round < state.current_round:
            return ActionResult.ignored(
                f"Stale round_start for round {message.round} (current {state.current_round})"
            )
        resolved = state.last_round_outcome
        if (
            state.phase == SessionPhase.ROUND_RESOLVED
            and resolved is not None
            and message.round <= resolved.round
        ):
            return ActionResult.ignored(f"Round {message.round} already resolved")

        same_round = message.round == state.current_round
        if same_round and state.round_started and state.phase == SessionPhase.PLAYING:
            return ActionResult.ignored(f"Round {message.round} already started")

        # A choice made before the first round_start of the round stays locked
        new_state = state._copy_with(
            phase=SessionPhase.PLAYING,
            current_round=message.round,
            round_started=True,
            seconds_remaining=message.timeout_secs,
            my_pending_choice=state.my_pending_choice if same_round else None,
            opponent_has_chosen=state.opponent_has_chosen if same_round else False,
            last_round_outcome=None,
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Round {message.round} started ({message.timeout_secs}s)"],
        )

    def _handle_opponent_chose(self, state: SessionState, action: Action) -> ActionResult:
        new_state = state._copy_with(opponent_has_chosen=True)
        return ActionResult.success_with_state(new_state, changes=["Opponent has chosen"])

    def _handle_round_result(self, state: SessionState, action: Action) -> ActionResult:
        """
        Record the server's resolution of a round.

        The history row for the round is replaced if one exists, and the score
        is taken verbatim from the payload.
        """
        message = action.payload.message
        outcome = RoundOutcome(
            round=message.round,
            my_choice=message.your_choice,
            opponent_choice=message.opponent_choice,
            winner=message.winner,
            my_score=message.your_score,
            opponent_score=message.opponent_score,
        )
        record = MoveRecord(
            round=message.round,
            my_choice=message.your_choice,
            opponent_choice=message.opponent_choice,
            outcome=message.winner,
        )
        new_state = state.with_move(record)._copy_with(
            phase=SessionPhase.ROUND_RESOLVED,
            current_round=max(state.current_round, message.round),
            last_round_outcome=outcome,
            score=Score(mine=message.your_score, opponent=message.opponent_score),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[
                f"Round {message.round}: {message.winner.value} "
                f"({message.your_score}-{message.opponent_score})"
            ],
        )

    def _handle_match_complete(self, state: SessionState, action: Action) -> ActionResult:
        message = action.payload.message
        outcome = MatchOutcome(
            result=message.result,
            my_score=message.your_score,
            opponent_score=message.opponent_score,
            rating_change=message.elo_change,
            new_rating=message.new_elo,
        )
        new_state = state._copy_with(
            phase=SessionPhase.MATCH_COMPLETE,
            match_outcome=outcome,
            score=Score(mine=message.your_score, opponent=message.opponent_score),
        )
        return ActionResult.success_with_state(
            new_state,
            changes=[f"Match complete: {message.result.value}"],
        )

    def _handle_opponent_disconnected(self, state: SessionState, action: Action) -> ActionResult:
        return self._fail(state, OPPONENT_DISCONNECTED)

    def _handle_error(self, state: SessionState, action: Action) -> ActionResult:
        return self._fail(state, action.payload.message.message)

    def _fail(self, state: SessionState, reason: str) -> ActionResult:
        new_state = state._copy_with(phase=SessionPhase.FAILED, failure=reason)
        return ActionResult.success_with_state(new_state, changes=[f"Failed: {reason}"])


def apply_action(state: SessionState, action: Action) -> ActionResult:
    """
    Convenience function to apply an action.

    Creates a Reducer and applies the action.
    """
    reducer = Reducer()
    return reducer.apply(state, action)
