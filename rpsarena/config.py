"""
Configuration - environment-driven settings for the client and practice server.

Environment variables:
    RPSARENA_SERVER_URL      Base URL of the game server (ws:// or wss://)
    RPSARENA_WS_PATH         Endpoint path of the game socket
    RPSARENA_OPEN_TIMEOUT    Seconds to wait for the socket handshake
    RPSARENA_TICK_INTERVAL   Seconds between local countdown ticks
    RPSARENA_ROUND_TIMEOUT   Practice server round deadline (seconds)
"""

from __future__ import annotations
from dataclasses import dataclass
import os

DEFAULT_SERVER_URL = os.getenv("RPSARENA_SERVER_URL", "ws://localhost:8080")
DEFAULT_WS_PATH = os.getenv("RPSARENA_WS_PATH", "/ws")
DEFAULT_OPEN_TIMEOUT = float(os.getenv("RPSARENA_OPEN_TIMEOUT", "10"))
DEFAULT_TICK_INTERVAL = float(os.getenv("RPSARENA_TICK_INTERVAL", "1.0"))
DEFAULT_ROUND_TIMEOUT = int(os.getenv("RPSARENA_ROUND_TIMEOUT", "15"))

# Countdown shown before the first round_start arrives
DEFAULT_ROUND_SECONDS = 15


@dataclass(frozen=True)
class ClientConfig:
    """Settings for connecting to the game server."""
    server_url: str = DEFAULT_SERVER_URL
    endpoint_path: str = DEFAULT_WS_PATH
    open_timeout: float = DEFAULT_OPEN_TIMEOUT
    tick_interval: float = DEFAULT_TICK_INTERVAL

    @property
    def endpoint_url(self) -> str:
        """Full socket URL without connection parameters."""
        return self.server_url.rstrip("/") + "/" + self.endpoint_path.lstrip("/")

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Re-read the environment (module defaults are read at import)."""
        return cls(
            server_url=os.getenv("RPSARENA_SERVER_URL", DEFAULT_SERVER_URL),
            endpoint_path=os.getenv("RPSARENA_WS_PATH", DEFAULT_WS_PATH),
            open_timeout=float(os.getenv("RPSARENA_OPEN_TIMEOUT", str(DEFAULT_OPEN_TIMEOUT))),
            tick_interval=float(os.getenv("RPSARENA_TICK_INTERVAL", str(DEFAULT_TICK_INTERVAL))),
        )


@dataclass(frozen=True)
class PracticeConfig:
    """Rules and pacing for the practice server."""
    round_timeout_secs: int = DEFAULT_ROUND_TIMEOUT
    wins_needed: int = 2  # best of three
    max_rounds: int = 5
    bot_seed: int | None = None
    opponent_name: str = "practice-bot"
    opponent_rating: int = 1200
