"""
Session Machine - Reconciles intents, server events and the local clock.

Event sources:
1. Player intents: join_queue(), leave_queue(), submit_choice(), reset()
2. Server messages: delivered by the transport to handle_message()
3. Countdown ticks: tick(), once per second while a round is open

Every event becomes an Action, is applied by the reducer to completion, and
only then is the next event processed. Outbound messages produced by intents
are handed to the transport in order.

Usage:
    transport = Transport(config)
    handle = await transport.connect(token, allow_anonymous=token is None)
    machine = SessionMachine(transport, handle)
    machine.subscribe(render)

    await machine.join_queue(ranked=True)
    await machine.submit_choice(Gesture.ROCK)
"""

from __future__ import annotations
from typing import Callable, TYPE_CHECKING
import logging

from ..engine_core import Action, ActionResult, Reducer, SessionPhase, SessionState
from ..protocol import Gesture
from .countdown import AsyncioTicker, Ticker

if TYPE_CHECKING:
    from ..transport import ConnectionHandle, Transport

logger = logging.getLogger(__name__)

Observer = Callable[[SessionState], None]


class SessionMachine:
    """
    Owns the SessionState of one connection.

    Callers never mutate the state; they read snapshots from `state` or get
    them pushed through subscribe().
    """

    def __init__(
        self,
        transport: Transport,
        handle: ConnectionHandle | None = None,
        ticker: Ticker | None = None,
        reducer: Reducer | None = None,
    ):
        self._transport = transport
        self._reducer = reducer or Reducer()
        self._ticker = ticker or AsyncioTicker(transport.config.tick_interval)
        self._state = SessionState()
        self._observers: tuple[Observer, ...] = ()
        self._handle: ConnectionHandle | None = None
        self._unsubscribe: Callable[[], None] | None = None
        if handle is not None:
            self.attach(handle)

    # -------------------------------------------------------------------------
    # Read-only view
    # -------------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        """Current immutable snapshot."""
        return self._state

    @property
    def connected(self) -> bool:
        return self._transport.connected

    @property
    def handle(self) -> ConnectionHandle | None:
        return self._handle

    @property
    def is_guest(self) -> bool:
        """Sessions without an identity token can only play casual matches."""
        return self._handle is None or self._handle.is_anonymous

    # -------------------------------------------------------------------------
    # Wiring
    # -------------------------------------------------------------------------

    def attach(self, handle: ConnectionHandle) -> None:
        """Start consuming messages from `handle` (replaces any previous handle)."""
        self.detach()
        self._handle = handle
        self._unsubscribe = self._transport.add_listener(handle, self.handle_message)

    def detach(self) -> None:
        """Stop consuming messages. State is kept until reset()."""
        if self._unsubscribe is not None:
            self._unsubscribe()
        self._unsubscribe = None
        self._handle = None

    def subscribe(self, observer: Observer) -> Callable[[], None]:
        """
        Get every new state snapshot after a change.

        Returns a function that removes this observer.
        """
        self._observers = self._observers + (observer,)

        def unsubscribe() -> None:
            self._observers = tuple(o for o in self._observers if o is not observer)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Intents
    # -------------------------------------------------------------------------

    async def join_queue(self, ranked: bool = True) -> bool:
        """Ask for an opponent. Ignored unless idle or after a finished match."""
        return await self._perform(Action.join_queue(ranked=ranked, guest=self.is_guest))

    async def leave_queue(self) -> bool:
        """Stop waiting for an opponent. Ignored unless queued."""
        return await self._perform(Action.leave_queue())

    async def submit_choice(self, choice: Gesture | str) -> bool:
        """
        Lock a gesture for the current round.

        At most one choice per round reaches the transport; later calls in the
        same round are ignored.
        """
        return await self._perform(Action.submit_choice(Gesture(choice)))

    def reset(self) -> None:
        """Back to Idle with every match-scoped field cleared."""
        self.dispatch(Action.reset())

    # -------------------------------------------------------------------------
    # Event sources
    # -------------------------------------------------------------------------

    def handle_message(self, message) -> None:
        """Transport listener: apply one decoded server message."""
        self.dispatch(Action.server_message(message))

    def tick(self) -> None:
        """One local second elapsed."""
        self.dispatch(Action.tick())

    def dispatch(self, action: Action) -> ActionResult:
        """
        Apply one action to completion.

        Ignored actions leave the state, the countdown and observers untouched.
        """
        result = self._reducer.apply(self._state, action)
        if not result.success:
            logger.debug("Ignored %s: %s", action.name, result.error)
            return result

        self._state = result.new_state
        for change in result.state_changes:
            logger.info(change)
        self._sync_countdown(action)
        self._notify()
        return result

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _perform(self, action: Action) -> bool:
        result = self.dispatch(action)
        for message in result.outbound:
            await self._transport.send(self._handle, message)
        return result.success

    def _sync_countdown(self, action: Action) -> None:
        state = self._state
        if state.phase != SessionPhase.PLAYING or state.seconds_remaining <= 0:
            if self._ticker.running:
                self._ticker.stop()
            return
        # A new round restarts the tick so it lines up with the server's deadline
        if action.name == "round_start" or not self._ticker.running:
            self._ticker.start(self.tick)

    def _notify(self) -> None:
        snapshot = self._state
        for observer in self._observers:
            try:
                observer(snapshot)
            except Exception:
                logger.exception("State observer failed")
