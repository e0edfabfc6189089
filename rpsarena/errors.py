"""
Errors - exception types and user-visible failure descriptions.

Error classes in this package:
- Transport-level: surfaced only as the transport's `connected` flag
- Decode errors: ProtocolDecodeError, raised by the codec and dropped by the
  transport before any listener sees the frame
- Protocol-level failures: `error` / `opponent_disconnected` messages, kept as
  the session's terminal failure string
- Intent misuse: ignored by the session machine, no exception
"""

OPPONENT_DISCONNECTED = "Opponent disconnected"


class RpsArenaError(Exception):
    """Base class for package errors."""


class ProtocolDecodeError(RpsArenaError):
    """Raised when a frame is not a well-formed protocol message."""

    def __init__(self, message: str, raw: str | bytes | None = None):
        super().__init__(message)
        self.raw = raw
