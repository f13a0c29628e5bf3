"""
Tests for frames and the Starlette-backed connection handle.
"""

import asyncio
from unittest.mock import AsyncMock

import pytest
from starlette.websockets import WebSocketDisconnect, WebSocketState

from relay.connection import Frame, FrameKind, WebSocketConnection
from relay.constants import CONNECTION_ID_LENGTH, WS_GOING_AWAY
from relay.exceptions import ConnectionClosed, RelayError, SendFailed
from relay.protocols import ConnectionHandle
from tests.mocks.websocket_mocks import FakeConnection, create_mock_websocket


class TestFrame:
    def test_text_frame(self):
        frame = Frame.text("offer")
        assert frame.kind is FrameKind.TEXT
        assert frame.payload == "offer"
        assert frame.size == 5

    def test_binary_frame(self):
        frame = Frame.binary(b"\x01\x02")
        assert frame.kind is FrameKind.BINARY
        assert frame.size == 2

    def test_same_payload_different_kind_not_equal(self):
        assert Frame.text("a") != Frame.binary(b"a")

    def test_empty_frame_is_truthy(self):
        """Test an empty payload still counts as a frame to relay."""
        frame = Frame.text("")

        assert frame
        assert frame.size == 0
        assert Frame.binary(b"")


class TestWebSocketConnection:
    """Tests for WebSocketConnection."""

    def test_satisfies_protocol(self, mock_websocket):
        """Test both handle implementations match ConnectionHandle."""
        assert isinstance(WebSocketConnection(mock_websocket), ConnectionHandle)
        assert isinstance(FakeConnection("fake"), ConnectionHandle)

    def test_connection_id(self, mock_websocket):
        """Test ids are generated short and unique, or taken as given."""
        first = WebSocketConnection(mock_websocket)
        second = WebSocketConnection(mock_websocket)

        assert len(first.connection_id) == CONNECTION_ID_LENGTH
        assert first.connection_id != second.connection_id
        assert WebSocketConnection(mock_websocket, "fixed").connection_id == "fixed"

    def test_client_address(self):
        """Test the peer address used in log lines."""
        conn = WebSocketConnection(create_mock_websocket(("10.0.0.7", 4242)))
        assert conn.client == "10.0.0.7:4242"

        assert WebSocketConnection(create_mock_websocket(None)).client == "unknown"

    @pytest.mark.asyncio
    async def test_receive_text(self, mock_websocket):
        """Test a text message becomes a TEXT frame."""
        mock_websocket.receive = AsyncMock(
            return_value={"type": "websocket.receive", "text": "hello"}
        )

        frame = await WebSocketConnection(mock_websocket).receive()

        assert frame == Frame.text("hello")

    @pytest.mark.asyncio
    async def test_receive_binary(self, mock_websocket):
        """Test a bytes message becomes a BINARY frame, even with text=None."""
        mock_websocket.receive = AsyncMock(
            return_value={
                "type": "websocket.receive",
                "text": None,
                "bytes": b"\xff",
            }
        )

        frame = await WebSocketConnection(mock_websocket).receive()

        assert frame == Frame.binary(b"\xff")

    @pytest.mark.asyncio
    async def test_receive_empty_text_is_a_frame(self, mock_websocket):
        """Test an empty text message is relayed rather than dropped."""
        mock_websocket.receive = AsyncMock(
            return_value={"type": "websocket.receive", "text": ""}
        )

        assert await WebSocketConnection(mock_websocket).receive() == Frame.text("")

    @pytest.mark.asyncio
    async def test_receive_disconnect(self, mock_websocket):
        """Test a disconnect message raises ConnectionClosed with its code."""
        mock_websocket.receive = AsyncMock(
            return_value={
                "type": "websocket.disconnect",
                "code": 1001,
                "reason": "bye",
            }
        )

        with pytest.raises(ConnectionClosed) as exc_info:
            await WebSocketConnection(mock_websocket).receive()

        assert exc_info.value.code == 1001
        assert exc_info.value.reason == "bye"

    @pytest.mark.asyncio
    async def test_receive_disconnect_without_code(self, mock_websocket):
        """Test a disconnect without a code is reported as 1005."""
        mock_websocket.receive = AsyncMock(
            return_value={"type": "websocket.disconnect"}
        )

        with pytest.raises(ConnectionClosed) as exc_info:
            await WebSocketConnection(mock_websocket).receive()

        assert exc_info.value.code == 1005

    @pytest.mark.asyncio
    async def test_receive_unknown_message(self, mock_websocket):
        """Test an unexpected ASGI message is a read fault."""
        mock_websocket.receive = AsyncMock(return_value={"type": "websocket.connect"})

        with pytest.raises(RelayError):
            await WebSocketConnection(mock_websocket).receive()

    @pytest.mark.asyncio
    async def test_send_keeps_kind(self, mock_websocket):
        """Test text goes out with send_text and binary with send_bytes."""
        conn = WebSocketConnection(mock_websocket)

        await conn.send(Frame.text("sdp"))
        await conn.send(Frame.binary(b"\x00"))

        mock_websocket.send_text.assert_awaited_once_with("sdp")
        mock_websocket.send_bytes.assert_awaited_once_with(b"\x00")

    @pytest.mark.parametrize(
        "error",
        [
            WebSocketDisconnect(code=1006),
            RuntimeError('Cannot call "send" once a close message has been sent.'),
            OSError("broken pipe"),
        ],
    )
    @pytest.mark.asyncio
    async def test_send_errors_become_send_failed(self, mock_websocket, error):
        """Test transport errors on send are reported as SendFailed."""
        mock_websocket.send_bytes = AsyncMock(side_effect=error)

        with pytest.raises(SendFailed) as exc_info:
            await WebSocketConnection(mock_websocket).send(Frame.binary(b"x"))

        assert exc_info.value.__cause__ is error

    @pytest.mark.asyncio
    async def test_close_once(self, mock_websocket):
        """Test only the first close sends a close frame."""
        conn = WebSocketConnection(mock_websocket)

        await conn.close(WS_GOING_AWAY)
        await conn.close()

        assert conn.closed
        mock_websocket.close.assert_awaited_once_with(code=WS_GOING_AWAY, reason="")

    @pytest.mark.asyncio
    async def test_close_skipped_when_already_closed(self, mock_websocket):
        """Test no close frame is sent on a socket closed by the application."""
        mock_websocket.application_state = WebSocketState.DISCONNECTED

        await WebSocketConnection(mock_websocket).close()

        mock_websocket.close.assert_not_called()

    @pytest.mark.asyncio
    async def test_close_transport_error_contained(self, mock_websocket):
        """Test a peer that is already gone does not make close raise."""
        mock_websocket.close = AsyncMock(side_effect=OSError("reset"))
        conn = WebSocketConnection(mock_websocket)

        await conn.close()

        assert conn.closed

    @pytest.mark.asyncio
    async def test_close_does_not_hang(self, mock_websocket, monkeypatch):
        """Test close gives up on a peer that never takes the close frame."""
        monkeypatch.setattr("relay.connection.WS_CLOSE_TIMEOUT_SECONDS", 0.01)

        async def stall(**kwargs):
            await asyncio.sleep(1)

        mock_websocket.close = AsyncMock(side_effect=stall)

        await WebSocketConnection(mock_websocket).close()
