"""
Tests for the transport layer.

Tests:
- Connect refusal, token attachment, failed opens
- Listener fan-out and unsubscribe
- Send on open and closed handles
- Remote close and idempotent close
"""

from ..config import ClientConfig
from ..protocol import (
    ChoiceMessage,
    Gesture,
    JoinQueueMessage,
    OpponentChoseMessage,
    QueuedMessage,
    RoundStartMessage,
)
from ..transport import Transport, build_endpoint_url

from .conftest import FakeConnector, run, settle


class TestEndpointUrl:
    """Tests for building the connection URL."""

    def test_token_attached_as_query_parameter(self):
        assert build_endpoint_url("ws://game.test/ws", "abc") == "ws://game.test/ws?token=abc"

    def test_token_is_url_encoded(self):
        url = build_endpoint_url("ws://game.test/ws", "a b&c")
        assert url == "ws://game.test/ws?token=a+b%26c"

    def test_existing_query_kept(self):
        url = build_endpoint_url("ws://game.test/ws?v=2", "abc")
        assert url == "ws://game.test/ws?v=2&token=abc"

    def test_no_identity(self):
        assert build_endpoint_url("ws://game.test/ws", None) == "ws://game.test/ws"

    def test_config_endpoint(self):
        config = ClientConfig(server_url="ws://game.test/", endpoint_path="/ws")
        assert config.endpoint_url == "ws://game.test/ws"


class TestConnect:
    """Tests for opening the connection."""

    def test_refused_without_identity(self, client_config, connector):
        """No identity and anonymous not allowed: nothing is attempted."""
        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect(None, allow_anonymous=False)
            return transport, handle

        transport, handle = run(scenario())

        assert handle is None
        assert connector.urls == []
        assert transport.connected is False

    def test_authenticated_connect(self, client_config, connector):
        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            connected = transport.connected
            await transport.close(handle)
            return handle, connected

        handle, connected = run(scenario())

        assert connected is True
        assert connector.urls == ["ws://game.test/ws?token=token-abc"]
        assert connector.kwargs[0]["open_timeout"] == 1.0
        assert handle.identity == "token-abc"
        assert not handle.is_anonymous

    def test_anonymous_connect(self, client_config, connector):
        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect(None, allow_anonymous=True)
            is_open = handle.is_open
            await transport.close(handle)
            return handle, is_open

        handle, is_open = run(scenario())

        assert is_open
        assert handle.is_anonymous
        assert connector.urls == ["ws://game.test/ws"]

    def test_failed_connect_returns_defunct_handle(self, client_config):
        connector = FakeConnector(fail=True)

        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            return transport, handle

        transport, handle = run(scenario())

        assert handle is not None
        assert handle.is_open is False
        assert transport.connected is False

    def test_send_on_failed_handle_dropped(self, client_config):
        connector = FakeConnector(fail=True)

        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            await transport.send(handle, JoinQueueMessage(ranked=True))

        run(scenario())

        assert connector.sockets == []

    def test_reconnect_closes_previous_handle(self, client_config, connector):
        async def scenario():
            transport = Transport(client_config, connector=connector)
            first = await transport.connect("token-abc")
            second = await transport.connect("token-abc")
            state = (first.is_open, second.is_open, transport.connected)
            await transport.close(second)
            return state

        first_open, second_open, connected = run(scenario())

        assert first_open is False
        assert second_open is True
        assert connected is True
        assert connector.sockets[0].closed


class TestListeners:
    """Tests for inbound fan-out."""

    def test_all_listeners_receive_every_message_in_order(self, client_config, connector):
        first, second = [], []

        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            transport.add_listener(handle, first.append)
            transport.add_listener(handle, second.append)
            connector.socket.feed_message(QueuedMessage())
            connector.socket.feed_message(RoundStartMessage(round=1, timeout_secs=15))
            connector.socket.feed_message(OpponentChoseMessage())
            await settle()
            await transport.close(handle)

        run(scenario())

        assert [m.type for m in first] == ["queued", "round_start", "opponent_chose"]
        assert [m.type for m in second] == ["queued", "round_start", "opponent_chose"]

    def test_unsubscribe_removes_only_that_registration(self, client_config, connector):
        """The same callback registered twice is removed once per unsubscribe."""
        received = []

        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            unsubscribe = transport.add_listener(handle, received.append)
            transport.add_listener(handle, received.append)
            unsubscribe()
            unsubscribe()
            connector.socket.feed_message(QueuedMessage())
            await settle()
            await transport.close(handle)

        run(scenario())

        assert len(received) == 1

    def test_unsubscribe_during_dispatch(self, client_config, connector):
        """A listener removing another mid-delivery does not break the current pass."""
        calls = []
        unsubscribers = {}

        def first(message):
            calls.append(("first", message.type))
            unsubscribers["second"]()

        def second(message):
            calls.append(("second", message.type))

        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            transport.add_listener(handle, first)
            unsubscribers["second"] = transport.add_listener(handle, second)
            connector.socket.feed_message(QueuedMessage())
            connector.socket.feed_message(OpponentChoseMessage())
            await settle()
            await transport.close(handle)

        run(scenario())

        assert calls == [
            ("first", "queued"),
            ("second", "queued"),
            ("first", "opponent_chose"),
        ]

    def test_malformed_frames_dropped(self, client_config, connector):
        received = []

        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            transport.add_listener(handle, received.append)
            connector.socket.feed("not json")
            connector.socket.feed('{"type": "teleport"}')
            connector.socket.feed('{"type": "round_start"}')
            connector.socket.feed_message(QueuedMessage())
            await settle()
            still_open = handle.is_open
            await transport.close(handle)
            return still_open

        still_open = run(scenario())

        assert still_open
        assert [m.type for m in received] == ["queued"]

    def test_failing_listener_isolated(self, client_config, connector):
        received = []

        def broken(message):
            raise RuntimeError("listener bug")

        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            transport.add_listener(handle, broken)
            transport.add_listener(handle, received.append)
            connector.socket.feed_message(QueuedMessage())
            connector.socket.feed_message(OpponentChoseMessage())
            await settle()
            await transport.close(handle)

        run(scenario())

        assert [m.type for m in received] == ["queued", "opponent_chose"]


class TestSendAndClose:
    """Tests for outbound delivery and shutdown."""

    def test_send_while_open(self, client_config, connector):
        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            await transport.send(handle, ChoiceMessage(choice=Gesture.ROCK))
            await transport.close(handle)

        run(scenario())

        assert connector.socket.sent == ['{"type":"choice","choice":"rock"}']

    def test_send_after_close_dropped(self, client_config, connector):
        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            await transport.close(handle)
            await transport.send(handle, JoinQueueMessage(ranked=False))

        run(scenario())

        assert connector.socket.sent == []

    def test_send_to_none_handle_dropped(self, client_config, connector):
        async def scenario():
            transport = Transport(client_config, connector=connector)
            await transport.send(None, JoinQueueMessage(ranked=False))

        run(scenario())

    def test_close_is_idempotent(self, client_config, connector):
        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            await transport.close(handle)
            await transport.close(handle)
            await transport.close(None)
            return transport, handle

        transport, handle = run(scenario())

        assert transport.connected is False
        assert handle.is_open is False
        assert connector.socket.closed

    def test_remote_close_flips_connected(self, client_config, connector):
        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            connector.socket.hang_up()
            await settle()
            state = (transport.connected, handle.is_open)
            await transport.send(handle, JoinQueueMessage(ranked=True))
            return state

        connected, is_open = run(scenario())

        assert connected is False
        assert is_open is False
        assert connector.socket.sent == []

    def test_close_stops_delivery(self, client_config, connector):
        received = []

        async def scenario():
            transport = Transport(client_config, connector=connector)
            handle = await transport.connect("token-abc")
            transport.add_listener(handle, received.append)
            await transport.close(handle)
            connector.socket.feed_message(QueuedMessage())
            await settle()

        run(scenario())

        assert received == []
