import asyncio
from enum import Enum
from types import TracebackType

from relay.constants import (
    WS_EXPECTED_CLOSE_CODES,
    WS_GOING_AWAY,
    WS_INTERNAL_ERROR,
    WS_NORMAL_CLOSURE,
)
from relay.exceptions import ConnectionClosed
from relay.logging import logger, set_log_context
from relay.protocols import ConnectionHandle
from relay.registry import ConnectionRegistry
from relay.utils.metrics import ws_messages_received_total


class SessionState(str, Enum):
    """Lifecycle states of a RelaySession."""

    CONNECTING = "connecting"
    REGISTERED = "registered"
    RECEIVING = "receiving"
    BROADCASTING = "broadcasting"
    CLOSING = "closing"
    CLOSED = "closed"


class RelaySession:
    """
    Lifecycle of one relayed connection, from registration to teardown.

    The session registers its handle before the first read, then relays
    every inbound frame to the other registered connections until the peer
    closes, the transport fails or the idle timeout fires. Teardown closes
    the handle and unregisters it on every exit path, exactly once.

    Use it as an async context manager around the receive loop, or call
    run() which does both:

        async with RelaySession(handle, registry) as session:
            await session.relay()
    """

    def __init__(
        self,
        handle: ConnectionHandle,
        registry: ConnectionRegistry,
        idle_timeout: float | None = None,
        log_payloads: bool = False,
    ) -> None:
        """
        Args:
            handle: Accepted connection, owned by this session from now on.
            registry: Registry shared by all sessions of the relay.
            idle_timeout: Seconds without an inbound frame after which the
                connection is closed. None or 0 disables it.
            log_payloads: Log every received payload at debug level.
        """
        self.handle = handle
        self.registry = registry
        self.idle_timeout = idle_timeout or None
        self.log_payloads = log_payloads
        self.state = SessionState.CONNECTING
        # Close code sent to the peer on teardown
        self.exit_code = WS_NORMAL_CLOSURE

    async def __aenter__(self) -> "RelaySession":
        set_log_context(connection_id=self.handle.connection_id)
        await self.registry.register(self.handle)
        self.state = SessionState.REGISTERED
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        if exc_type is not None and not issubclass(
            exc_type, asyncio.CancelledError
        ):
            self.exit_code = WS_INTERNAL_ERROR
        await self.teardown()

    async def run(self) -> None:
        """Register, relay until the connection ends, tear down."""
        async with self:
            await self.relay()

    async def relay(self) -> None:
        """
        Receive loop: every data frame is broadcast to the other
        connections. Returns once the connection has ended; never reads
        again after that.
        """
        while True:
            self.state = SessionState.RECEIVING
            try:
                frame = await self._receive()
            except ConnectionClosed as e:
                self._log_close(e)
                return
            except asyncio.TimeoutError:
                logger.info(
                    f"No message for {self.idle_timeout}s, closing idle connection"
                )
                self.exit_code = WS_GOING_AWAY
                return
            except Exception as e:
                logger.warning(f"Read error: {e!r}")
                self.exit_code = WS_INTERNAL_ERROR
                return

            self.state = SessionState.BROADCASTING
            ws_messages_received_total.labels(kind=frame.kind.value).inc()
            if self.log_payloads:
                logger.debug(f"Received message: {frame.payload!r}")
            else:
                logger.debug(f"Received {frame.kind.value} message ({frame.size})")

            await self.registry.broadcast(self.handle, frame)

    async def teardown(self) -> None:
        """
        Close the handle, then unregister it.

        Both steps run even if the close fails. Only the first call does
        anything, so an error path and an external shutdown may both call
        it.
        """
        if self.state in (SessionState.CLOSING, SessionState.CLOSED):
            return
        self.state = SessionState.CLOSING

        try:
            await self.handle.close(self.exit_code)
        except Exception as e:
            logger.warning(f"Error closing connection: {e!r}")
        finally:
            await self.registry.unregister(self.handle)
            self.state = SessionState.CLOSED
            logger.info(
                f"Client disconnected. Total clients: {len(self.registry)}"
            )

    async def _receive(self):
        if self.idle_timeout is None:
            return await self.handle.receive()
        return await asyncio.wait_for(self.handle.receive(), self.idle_timeout)

    def _log_close(self, closed: ConnectionClosed) -> None:
        if closed.code in WS_EXPECTED_CLOSE_CODES:
            logger.info(f"Connection closed with code {closed.code}")
        else:
            logger.warning(
                f"Unexpected close error: code {closed.code} {closed.reason!r}"
            )
