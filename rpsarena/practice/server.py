"""
FastAPI Practice Server - The game socket with a bot on the other side.

Endpoints:
    GET    /health     Health check
    WS     /ws         Game socket (optional ?token=, ignored: practice is casual)

Match flow per connection:
    join_queue -> queued, match_found
    per round:   round_start, opponent_chose, (wait for choice or timeout),
                 round_result
    end:         match_complete (elo fields always null)

Malformed client frames get an `error` reply; the connection stays open.
"""

from typing import Callable, Optional
import asyncio
import logging
import uuid

from .. import __version__
from ..config import PracticeConfig
from ..errors import ProtocolDecodeError
from ..protocol import (
    ChoiceMessage,
    ErrorMessage,
    Gesture,
    JoinQueueMessage,
    MatchFoundMessage,
    OpponentChoseMessage,
    OpponentPayload,
    QueuedMessage,
    RoundStartMessage,
    decode_outbound,
    encode_inbound,
)
from .bot import BotPolicy, RandomPolicy
from .rules import PracticeMatch

logger = logging.getLogger(__name__)


class PracticeTable:
    """
    One player's seat at the practice server.

    Framework-agnostic: `websocket` only needs async send_text() and
    receive_text().
    """

    def __init__(self, websocket, config: PracticeConfig, policy: BotPolicy):
        self.websocket = websocket
        self.config = config
        self.policy = policy

    async def run(self) -> None:
        """Serve matches until the client disconnects."""
        while True:
            message = await self.receive()
            if isinstance(message, JoinQueueMessage):
                await self.send(QueuedMessage())
                await self.play_match()
            # leave_queue and stray choices outside a match need no reply

    async def play_match(self) -> PracticeMatch:
        match = PracticeMatch(config=self.config)
        session_id = str(uuid.uuid4())
        await self.send(MatchFoundMessage(
            opponent=OpponentPayload(
                username=self.config.opponent_name,
                rating=self.config.opponent_rating,
            ),
            session_id=session_id,
        ))
        logger.info("Practice match %s started against %s", session_id, self.policy.get_name())

        while not match.is_over:
            await self.send(RoundStartMessage(
                round=match.current_round,
                timeout_secs=self.config.round_timeout_secs,
            ))
            bot_choice = self.policy.select_gesture(match)
            await self.send(OpponentChoseMessage())
            player_choice = await self.await_choice()
            await self.send(match.resolve_round(player_choice, bot_choice))

        result = match.result()
        await self.send(result)
        logger.info(
            "Practice match %s finished: %s %d-%d",
            session_id, result.result.value, result.your_score, result.opponent_score,
        )
        return match

    async def await_choice(self) -> Optional[Gesture]:
        """Wait for the player's gesture until the round deadline."""
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.config.round_timeout_secs
        while True:
            remaining = deadline - loop.time()
            if remaining <= 0:
                return None
            try:
                message = await self.receive(timeout=remaining)
            except asyncio.TimeoutError:
                return None
            if isinstance(message, ChoiceMessage):
                return message.choice

    async def send(self, message) -> None:
        await self.websocket.send_text(encode_inbound(message))

    async def receive(self, timeout: Optional[float] = None):
        """Next decoded client message, or None after replying to a bad frame."""
        if timeout is None:
            raw = await self.websocket.receive_text()
        else:
            raw = await asyncio.wait_for(self.websocket.receive_text(), timeout)
        try:
            return decode_outbound(raw)
        except ProtocolDecodeError:
            await self.send(ErrorMessage(message="Invalid message"))
            return None


def create_app(
    config: PracticeConfig | None = None,
    policy_factory: Callable[[], BotPolicy] | None = None,
):
    """
    Create the FastAPI application.

    Args:
        config: Match rules and pacing (defaults from environment)
        policy_factory: Builds one bot per connection (random by default)

    Returns:
        FastAPI application instance
    """
    try:
        from fastapi import FastAPI, WebSocket, WebSocketDisconnect
    except ImportError:
        raise ImportError(
            "FastAPI not installed. Install with: pip install 'rpsarena[practice]'"
        )

    config = config or PracticeConfig()
    if policy_factory is None:
        def policy_factory() -> BotPolicy:
            return RandomPolicy(seed=config.bot_seed)

    app = FastAPI(
        title="RPS Arena Practice Server",
        description="Game socket with a bot opponent for local play.",
        version=__version__,
    )

    @app.get("/health", tags=["System"], summary="Health check")
    async def health_check() -> dict:
        """Health check endpoint for load balancers."""
        return {
            "status": "healthy",
            "service": "rpsarena-practice",
            "version": __version__,
        }

    @app.websocket("/ws")
    async def game_socket(websocket: WebSocket, token: Optional[str] = None):
        """Play practice matches; the token, if any, is accepted but unused."""
        await websocket.accept()
        table = PracticeTable(websocket, config, policy_factory())
        logger.info("Practice player connected (%s)", "authenticated" if token else "guest")
        try:
            await table.run()
        except WebSocketDisconnect:
            logger.info("Practice player disconnected")

    return app
