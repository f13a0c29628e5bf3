"""
Frames and the Starlette-backed connection handle.

WebSocketConnection adapts a Starlette WebSocket to the ConnectionHandle
protocol: ASGI receive messages become Frame objects or ConnectionClosed,
and transport errors on send become SendFailed.
"""

import asyncio
import uuid
from dataclasses import dataclass
from enum import Enum

from starlette.websockets import WebSocket, WebSocketDisconnect, WebSocketState

from relay.constants import (
    CONNECTION_ID_LENGTH,
    WS_CLOSE_TIMEOUT_SECONDS,
    WS_NO_STATUS_RECEIVED,
    WS_NORMAL_CLOSURE,
)
from relay.exceptions import ConnectionClosed, RelayError, SendFailed
from relay.logging import logger


class FrameKind(str, Enum):
    """WebSocket data frame kinds. Relayed frames keep their kind."""

    TEXT = "text"
    BINARY = "binary"


@dataclass(frozen=True)
class Frame:
    """
    One message read from or written to a connection.

    Attributes:
        kind: TEXT frames carry a str payload, BINARY frames carry bytes.
        payload: The message body, never inspected by the relay.
    """

    kind: FrameKind
    payload: str | bytes

    @classmethod
    def text(cls, payload: str) -> "Frame":
        return cls(FrameKind.TEXT, payload)

    @classmethod
    def binary(cls, payload: bytes) -> "Frame":
        return cls(FrameKind.BINARY, payload)

    @property
    def size(self) -> int:
        """Payload length in characters (TEXT) or bytes (BINARY)."""
        return len(self.payload)


def new_connection_id() -> str:
    return uuid.uuid4().hex[:CONNECTION_ID_LENGTH]


class WebSocketConnection:
    """
    Connection handle over an accepted Starlette WebSocket.

    Args:
        websocket: A WebSocket whose handshake has already been accepted.
        connection_id: Optional id for log lines, generated when omitted.
    """

    def __init__(
        self, websocket: WebSocket, connection_id: str | None = None
    ) -> None:
        self.websocket = websocket
        self.connection_id = connection_id or new_connection_id()
        self._closed = False

    @property
    def client(self) -> str:
        """Peer address as host:port, or "unknown"."""
        if self.websocket.client is None:
            return "unknown"
        return f"{self.websocket.client.host}:{self.websocket.client.port}"

    @property
    def closed(self) -> bool:
        return self._closed

    async def receive(self) -> Frame:
        """
        Wait for the next data frame.

        Returns:
            Frame: TEXT or BINARY frame with the payload as received.

        Raises:
            ConnectionClosed: On a websocket.disconnect message, with the
                close code the peer sent (1005 when it sent none).
            RelayError: On an ASGI message the relay does not understand.
        """
        message = await self.websocket.receive()

        if message["type"] == "websocket.disconnect":
            raise ConnectionClosed(
                int(message.get("code") or WS_NO_STATUS_RECEIVED),
                message.get("reason") or "",
            )

        if message["type"] != "websocket.receive":
            raise RelayError(f"Unexpected ASGI message type {message['type']!r}")

        if message.get("text") is not None:
            return Frame.text(message["text"])
        if message.get("bytes") is not None:
            return Frame.binary(message["bytes"])

        raise RelayError("Received a websocket.receive message without payload")

    async def send(self, frame: Frame) -> None:
        """
        Write a frame to the peer.

        Raises:
            SendFailed: The socket is closed or the transport errored.
        """
        try:
            if frame.kind is FrameKind.TEXT:
                await self.websocket.send_text(frame.payload)
            else:
                await self.websocket.send_bytes(frame.payload)
        except (WebSocketDisconnect, RuntimeError, OSError) as exc:
            # WebSocketDisconnect: peer went away mid-send
            # RuntimeError: close already sent on this socket
            # OSError: transport error
            raise SendFailed(
                f"Send to connection {self.connection_id} failed: {exc!r}"
            ) from exc

    async def close(self, code: int = WS_NORMAL_CLOSURE, reason: str = "") -> None:
        """
        Send a close frame unless one was already sent.

        Only the first call does anything. A peer that is already gone is
        the usual reason for closing, so transport errors are logged and
        not raised.
        """
        if self._closed:
            return
        self._closed = True

        if self.websocket.application_state == WebSocketState.DISCONNECTED:
            return

        try:
            await asyncio.wait_for(
                self.websocket.close(code=code, reason=reason),
                timeout=WS_CLOSE_TIMEOUT_SECONDS,
            )
        except (
            WebSocketDisconnect,
            RuntimeError,
            OSError,
            asyncio.TimeoutError,
        ) as exc:
            logger.debug(
                f"Close of connection {self.connection_id} did not complete: {exc!r}"
            )

    def __repr__(self) -> str:
        return f"<WebSocketConnection {self.connection_id} {self.client}>"
