"""
Protocol Module - The wire vocabulary shared by client and server.

Every frame is a JSON object with a `type` discriminator. Inbound (server to
client) and outbound (client to server) messages are closed tagged unions,
decoded once at the transport boundary.
"""

from .messages import (
    Gesture,
    RoundWinner,
    MatchResult,
    OpponentPayload,
    QueuedMessage,
    MatchFoundMessage,
    RoundStartMessage,
    OpponentChoseMessage,
    RoundResultMessage,
    MatchCompleteMessage,
    OpponentDisconnectedMessage,
    ErrorMessage,
    InboundMessage,
    JoinQueueMessage,
    LeaveQueueMessage,
    ChoiceMessage,
    OutboundMessage,
    decode_inbound,
    encode_inbound,
    decode_outbound,
    encode_outbound,
)

__all__ = [
    "Gesture",
    "RoundWinner",
    "MatchResult",
    "OpponentPayload",
    "QueuedMessage",
    "MatchFoundMessage",
    "RoundStartMessage",
    "OpponentChoseMessage",
    "RoundResultMessage",
    "MatchCompleteMessage",
    "OpponentDisconnectedMessage",
    "ErrorMessage",
    "InboundMessage",
    "JoinQueueMessage",
    "LeaveQueueMessage",
    "ChoiceMessage",
    "OutboundMessage",
    "decode_inbound",
    "encode_inbound",
    "decode_outbound",
    "encode_outbound",
]
