"""
Pydantic Schemas for the game socket - the exact contract with the server.

Inbound (server -> client):
    queued, match_found, round_start, opponent_chose, round_result,
    match_complete, opponent_disconnected, error

Outbound (client -> server):
    join_queue, leave_queue, choice

A player who did not choose before the round deadline is reported by the
server as the gesture "none"; it decodes to None.
"""

from enum import Enum
from typing import Annotated, Literal, Optional, Union

from pydantic import (
    AliasChoices,
    BaseModel,
    Field,
    TypeAdapter,
    ValidationError,
    field_serializer,
    field_validator,
)

from ..errors import ProtocolDecodeError


NO_CHOICE = "none"


# =============================================================================
# Enums
# =============================================================================

class Gesture(str, Enum):
    """The three hand gestures."""
    ROCK = "rock"
    PAPER = "paper"
    SCISSORS = "scissors"


class RoundWinner(str, Enum):
    """Round winner, from the receiving player's point of view."""
    YOU = "you"
    OPPONENT = "opponent"
    DRAW = "draw"


class MatchResult(str, Enum):
    """Match result, from the receiving player's point of view."""
    WIN = "win"
    LOSS = "loss"
    DRAW = "draw"


# =============================================================================
# Inbound Messages
# =============================================================================

class OpponentPayload(BaseModel):
    """Opponent identity and rating snapshot."""
    username: str
    rating: int = Field(validation_alias=AliasChoices("rating", "elo"))

    model_config = {"populate_by_name": True}


class QueuedMessage(BaseModel):
    """Server confirmed the player is waiting for an opponent."""
    type: Literal["queued"] = "queued"


class MatchFoundMessage(BaseModel):
    """An opponent was paired; round 1 follows."""
    type: Literal["match_found"] = "match_found"
    opponent: OpponentPayload
    session_id: Optional[str] = None


class RoundStartMessage(BaseModel):
    """A round opened; the server resolves it after `timeout_secs`."""
    type: Literal["round_start"] = "round_start"
    round: int = Field(ge=1)
    timeout_secs: int = Field(ge=0)


class OpponentChoseMessage(BaseModel):
    """The opponent locked a gesture (which one stays hidden)."""
    type: Literal["opponent_chose"] = "opponent_chose"


class RoundResultMessage(BaseModel):
    """Authoritative resolution of one round."""
    type: Literal["round_result"] = "round_result"
    round: int = Field(ge=1)
    your_choice: Optional[Gesture] = None
    opponent_choice: Optional[Gesture] = None
    winner: RoundWinner
    your_score: int = Field(ge=0)
    opponent_score: int = Field(ge=0)

    @field_validator("your_choice", "opponent_choice", mode="before")
    @classmethod
    def _no_choice_is_none(cls, value):
        if value == NO_CHOICE:
            return None
        return value

    @field_serializer("your_choice", "opponent_choice")
    def _none_is_no_choice(self, value: Optional[Gesture]) -> str:
        return value.value if value is not None else NO_CHOICE


class MatchCompleteMessage(BaseModel):
    """Final result; rating fields are null for casual matches."""
    type: Literal["match_complete"] = "match_complete"
    result: MatchResult
    your_score: int = Field(ge=0)
    opponent_score: int = Field(ge=0)
    elo_change: Optional[int] = None
    new_elo: Optional[int] = None


class OpponentDisconnectedMessage(BaseModel):
    """The opponent left mid-match."""
    type: Literal["opponent_disconnected"] = "opponent_disconnected"


class ErrorMessage(BaseModel):
    """Server-reported failure."""
    type: Literal["error"] = "error"
    message: str


InboundMessage = Annotated[
    Union[
        QueuedMessage,
        MatchFoundMessage,
        RoundStartMessage,
        OpponentChoseMessage,
        RoundResultMessage,
        MatchCompleteMessage,
        OpponentDisconnectedMessage,
        ErrorMessage,
    ],
    Field(discriminator="type"),
]


# =============================================================================
# Outbound Messages
# =============================================================================

class JoinQueueMessage(BaseModel):
    """Ask to be paired with an opponent."""
    type: Literal["join_queue"] = "join_queue"
    ranked: bool = True


class LeaveQueueMessage(BaseModel):
    """Stop waiting for an opponent."""
    type: Literal["leave_queue"] = "leave_queue"


class ChoiceMessage(BaseModel):
    """Lock a gesture for the current round."""
    type: Literal["choice"] = "choice"
    choice: Gesture


OutboundMessage = Annotated[
    Union[JoinQueueMessage, LeaveQueueMessage, ChoiceMessage],
    Field(discriminator="type"),
]


# =============================================================================
# Codec
# =============================================================================

_inbound_adapter: TypeAdapter = TypeAdapter(InboundMessage)
_outbound_adapter: TypeAdapter = TypeAdapter(OutboundMessage)


def _decode(adapter: TypeAdapter, raw: str | bytes):
    try:
        return adapter.validate_json(raw)
    except ValidationError as e:
        raise ProtocolDecodeError(f"Invalid message: {e.error_count()} error(s)", raw=raw) from e


def decode_inbound(raw: str | bytes) -> InboundMessage:
    """
    Decode one server frame.

    Raises:
        ProtocolDecodeError: frame is not JSON, has an unknown `type`, or is
            missing fields its type requires
    """
    return _decode(_inbound_adapter, raw)


def decode_outbound(raw: str | bytes) -> OutboundMessage:
    """Decode one client frame (server side)."""
    return _decode(_outbound_adapter, raw)


def _encode(message: BaseModel) -> str:
    return message.model_dump_json()


def encode_outbound(message: OutboundMessage) -> str:
    """Serialize a client message to JSON text."""
    return _encode(message)


def encode_inbound(message: InboundMessage) -> str:
    """Serialize a server message to JSON text (practice server side)."""
    return _encode(message)
