"""
Action System - Actions, payloads, and results.

Actions come from three sources:
1. Player intents (join queue, leave queue, submit choice, reset)
2. Server messages delivered by the transport
3. The local one-second countdown tick

All state changes flow through actions, one at a time, in delivery order.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from enum import Enum
from typing import Any

from ..protocol import Gesture


class ActionType(Enum):
    """Types of actions in the system."""
    # Player intents
    JOIN_QUEUE = "join_queue"
    LEAVE_QUEUE = "leave_queue"
    SUBMIT_CHOICE = "submit_choice"
    RESET = "reset"

    # Server events
    SERVER_MESSAGE = "server_message"

    # Local clock
    TICK = "tick"


@dataclass
class ActionPayload:
    """
    Payload for an action - contains the action parameters.

    Different action types use different fields; the reducer reads only the
    ones its handler needs.
    """
    # For join_queue
    ranked: bool = True
    guest: bool = False

    # For submit_choice
    choice: Gesture | None = None

    # For server_message: a decoded InboundMessage
    message: Any | None = None


@dataclass
class Action:
    """A single event to be applied to the session state."""
    action_type: ActionType
    payload: ActionPayload = field(default_factory=ActionPayload)

    @property
    def name(self) -> str:
        """Short label for logs: intent name or server message type."""
        if self.action_type == ActionType.SERVER_MESSAGE and self.payload.message is not None:
            return self.payload.message.type
        return self.action_type.value

    @classmethod
    def join_queue(cls, ranked: bool = True, guest: bool = False) -> Action:
        """Factory for join-queue intent."""
        return cls(
            action_type=ActionType.JOIN_QUEUE,
            payload=ActionPayload(ranked=ranked, guest=guest),
        )

    @classmethod
    def leave_queue(cls) -> Action:
        """Factory for leave-queue intent."""
        return cls(action_type=ActionType.LEAVE_QUEUE)

    @classmethod
    def submit_choice(cls, choice: Gesture) -> Action:
        """Factory for choice intent."""
        return cls(
            action_type=ActionType.SUBMIT_CHOICE,
            payload=ActionPayload(choice=choice),
        )

    @classmethod
    def reset(cls) -> Action:
        """Factory for reset intent."""
        return cls(action_type=ActionType.RESET)

    @classmethod
    def server_message(cls, message: Any) -> Action:
        """Factory wrapping a decoded inbound message."""
        return cls(
            action_type=ActionType.SERVER_MESSAGE,
            payload=ActionPayload(message=message),
        )

    @classmethod
    def tick(cls) -> Action:
        """Factory for one elapsed second of the local countdown."""
        return cls(action_type=ActionType.TICK)


@dataclass
class ActionResult:
    """
    Result of applying an action.

    Contains:
    - Whether the action changed anything
    - New state (if applied)
    - Messages the caller must hand to the transport
    - Reason the action was ignored (stale phase, repeated choice, ...)
    """
    success: bool
    new_state: Any | None = None  # SessionState
    error: str | None = None
    error_code: str | None = None

    # For the transport
    outbound: list[Any] = field(default_factory=list)

    # For logs/presentation
    state_changes: list[str] = field(default_factory=list)

    @classmethod
    def ignored(cls, reason: str, error_code: str = "IGNORED") -> ActionResult:
        """Create a no-op result; the current state stays as it is."""
        return cls(success=False, error=reason, error_code=error_code)

    @classmethod
    def success_with_state(
        cls,
        state: Any,
        changes: list[str] | None = None,
        outbound: list[Any] | None = None,
    ) -> ActionResult:
        """Create a success result with new state."""
        return cls(
            success=True,
            new_state=state,
            state_changes=changes or [],
            outbound=outbound or [],
        )
