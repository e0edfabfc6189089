"""
RPS Arena - Real-time client session engine.

Lets a player compete in best-of-N rock-paper-scissors matches against a
remote opponent over a persistent WebSocket connection. The package provides:
- A transport layer owning one socket per session
- A phase-guarded session state machine driven by server events
- A local countdown approximating the server's round deadline
- Read-only presentation views
- A local practice server with a bot opponent
"""

__version__ = "0.1.0"
