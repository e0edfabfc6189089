"""
Connection - Socket lifecycle, listener fan-out and message delivery.

LIFECYCLE:
1. connect() opens one socket (refused when there is no identity and
   anonymous play is not allowed)
2. A reader task decodes each frame and calls every listener, in arrival order
3. send() transmits only while the handle is open, otherwise drops silently
4. close() is idempotent; a remote close or socket error also ends the handle

There is no reconnection. A dropped handle is defunct; callers connect again
to get a new one.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable
from urllib.parse import urlencode
import asyncio
import contextlib
import logging

import websockets
from websockets.exceptions import ConnectionClosed, InvalidHandshake, InvalidURI

from ..config import ClientConfig
from ..errors import ProtocolDecodeError
from ..protocol import decode_inbound, encode_outbound

logger = logging.getLogger(__name__)

Listener = Callable[[Any], None]
Connector = Callable[..., Awaitable[Any]]


def build_endpoint_url(endpoint_url: str, identity: str | None) -> str:
    """Attach the identity token as a connection parameter, if present."""
    if not identity:
        return endpoint_url
    separator = "&" if "?" in endpoint_url else "?"
    return f"{endpoint_url}{separator}{urlencode({'token': identity})}"


@dataclass(eq=False)
class _Registration:
    """One listener registration; identity distinguishes duplicate callbacks."""
    callback: Listener


@dataclass(eq=False)
class ConnectionHandle:
    """
    One live or defunct socket.

    Owned by the Transport that created it. Listeners are only invoked through
    the handle, they never control its lifecycle.
    """
    url: str
    identity: str | None = None
    is_open: bool = False
    socket: Any = None
    reader: asyncio.Task | None = None
    # Copy-on-write: dispatch iterates whatever tuple was current when it began
    listeners: tuple[_Registration, ...] = field(default_factory=tuple)

    @property
    def is_anonymous(self) -> bool:
        return self.identity is None


class Transport:
    """
    Owns the session's single connection.

    Usage:
        transport = Transport(ClientConfig())
        handle = await transport.connect(token, allow_anonymous=False)
        unsubscribe = transport.add_listener(handle, on_message)
        await transport.send(handle, JoinQueueMessage(ranked=True))
        await transport.close(handle)
    """

    def __init__(
        self,
        config: ClientConfig | None = None,
        connector: Connector | None = None,
        decoder: Callable[[str | bytes], Any] = decode_inbound,
        encoder: Callable[[Any], str] = encode_outbound,
    ):
        self.config = config or ClientConfig()
        self._connector = connector or websockets.connect
        self._decode = decoder
        self._encode = encoder
        self._handle: ConnectionHandle | None = None
        self._connected = False

    @property
    def connected(self) -> bool:
        """True between a successful open and the next close or error."""
        return self._connected

    @property
    def handle(self) -> ConnectionHandle | None:
        """The most recent handle (may be defunct)."""
        return self._handle

    async def connect(
        self,
        identity: str | None,
        allow_anonymous: bool = False,
    ) -> ConnectionHandle | None:
        """
        Open the connection.

        Returns None without attempting anything when there is no identity and
        anonymous play is not allowed (the identity may simply not be known
        yet). A failed attempt returns a defunct handle and leaves
        `connected` False.
        """
        if not identity and not allow_anonymous:
            logger.debug("Connect skipped: no identity and anonymous play not allowed")
            return None

        if self._handle is not None and self._handle.is_open:
            await self.close(self._handle)

        url = build_endpoint_url(self.config.endpoint_url, identity or None)
        handle = ConnectionHandle(url=self.config.endpoint_url, identity=identity or None)
        self._handle = handle

        try:
            handle.socket = await self._connector(url, open_timeout=self.config.open_timeout)
        except (OSError, InvalidHandshake, InvalidURI, asyncio.TimeoutError) as e:
            logger.warning("Connection to %s failed: %s", handle.url, e)
            self._connected = False
            return handle

        handle.is_open = True
        self._connected = True
        handle.reader = asyncio.get_running_loop().create_task(self._read_loop(handle))
        logger.info(
            "Connected to %s (%s)",
            handle.url,
            "anonymous" if handle.is_anonymous else "authenticated",
        )
        return handle

    def add_listener(self, handle: ConnectionHandle, callback: Listener) -> Callable[[], None]:
        """
        Register a callback for every inbound message.

        Returns a function that removes exactly this registration; calling it
        more than once is harmless.
        """
        registration = _Registration(callback)
        handle.listeners = handle.listeners + (registration,)

        def unsubscribe() -> None:
            handle.listeners = tuple(r for r in handle.listeners if r is not registration)

        return unsubscribe

    async def send(self, handle: ConnectionHandle | None, message: Any) -> None:
        """Transmit if the handle is open; drop the message otherwise."""
        if handle is None or not handle.is_open:
            logger.debug("Dropped outbound %s: connection not open", getattr(message, "type", message))
            return
        try:
            await handle.socket.send(self._encode(message))
        except ConnectionClosed:
            logger.debug("Dropped outbound %s: connection closed", getattr(message, "type", message))
            self._mark_closed(handle)

    async def close(self, handle: ConnectionHandle | None) -> None:
        """Close the connection. Safe to call on closed or defunct handles."""
        if handle is None:
            return
        was_open = handle.is_open
        self._mark_closed(handle)
        if handle.socket is not None and was_open:
            await handle.socket.close()
            logger.info("Closed connection to %s", handle.url)

        reader = handle.reader
        if reader is not None and not reader.done() and reader is not asyncio.current_task():
            reader.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await reader

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    async def _read_loop(self, handle: ConnectionHandle) -> None:
        try:
            async for raw in handle.socket:
                if not handle.is_open:
                    break
                self._dispatch(handle, raw)
        except ConnectionClosed as e:
            logger.info("Connection to %s closed by remote: %s", handle.url, e)
        except OSError as e:
            logger.warning("Connection to %s failed: %s", handle.url, e)
        finally:
            self._mark_closed(handle)

    def _dispatch(self, handle: ConnectionHandle, raw: str | bytes) -> None:
        try:
            message = self._decode(raw)
        except ProtocolDecodeError:
            logger.debug("Ignoring undecodable frame from %s", handle.url)
            return

        for registration in handle.listeners:
            try:
                registration.callback(message)
            except Exception:
                logger.exception("Listener failed on %s message", getattr(message, "type", "?"))

    def _mark_closed(self, handle: ConnectionHandle) -> None:
        handle.is_open = False
        if handle is self._handle:
            self._connected = False
