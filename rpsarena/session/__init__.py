"""
Session Module - The client's real-time session engine.

A session is one player's connection-scoped view of queueing and playing:
- Intents from the UI are validated against the current phase
- Server messages are applied in delivery order
- A local countdown approximates the server's round deadline
- Presentation observers receive immutable snapshots after every change

Sessions have no authority over outcomes. Rounds and matches are resolved
only by server messages.
"""

from .countdown import Ticker, AsyncioTicker
from .machine import SessionMachine

__all__ = [
    "Ticker",
    "AsyncioTicker",
    "SessionMachine",
]
