import asyncio
import time

from relay.connection import Frame
from relay.constants import WS_GOING_AWAY, WS_INTERNAL_ERROR
from relay.exceptions import SendFailed
from relay.logging import logger
from relay.protocols import ConnectionHandle
from relay.utils.metrics import (
    ws_broadcast_duration_seconds,
    ws_connections_active,
    ws_messages_relayed_total,
    ws_send_failures_total,
)


class ConnectionRegistry:
    """
    Registry of connections eligible to receive broadcasts.

    Membership changes and broadcast fan-outs are serialized by one
    asyncio.Lock. The lock is held for a whole fan-out, so every recipient
    of a message sees the same membership and fan-outs of different
    messages never interleave.

    The registry does not own the handles: sessions register and unregister
    their own. The registry only closes a handle when a write to it fails
    (pruning) or when the application shuts down.
    """

    def __init__(self, send_timeout: float | None = None) -> None:
        """
        Args:
            send_timeout: Seconds a single recipient may take to accept a
                frame before it is treated as failed and pruned. None or 0
                lets sends wait as long as the transport does.
        """
        self.connections: set[ConnectionHandle] = set()
        self.send_timeout = send_timeout or None
        self._lock = asyncio.Lock()

    def __len__(self) -> int:
        return len(self.connections)

    def __contains__(self, handle: object) -> bool:
        return handle in self.connections

    def snapshot(self) -> frozenset[ConnectionHandle]:
        """Point-in-time copy of the registered handles."""
        return frozenset(self.connections)

    async def register(self, handle: ConnectionHandle) -> None:
        """
        Adds a connection. Registering the same handle twice is a no-op.

        Args:
            handle: The connection to make eligible for broadcasts.
        """
        async with self._lock:
            if handle in self.connections:
                logger.debug(
                    f"Connection {handle.connection_id} is already registered"
                )
                return

            self.connections.add(handle)
            ws_connections_active.inc()
            total = len(self.connections)

        logger.info(f"New client connected. Total clients: {total}")

    async def unregister(self, handle: ConnectionHandle) -> bool:
        """
        Removes a connection. Removing an absent handle is a no-op, so a
        session's teardown may race with pruning without harm.

        Args:
            handle: The connection to remove.

        Returns:
            True if the handle was registered.
        """
        async with self._lock:
            return self._discard(handle)

    async def broadcast(self, sender: ConnectionHandle, frame: Frame) -> int:
        """
        Sends a frame to every registered connection except the sender.

        A recipient whose send fails or times out is closed and removed
        on the spot; the fan-out continues with the remaining recipients
        and nothing is raised to the caller.

        Args:
            sender: The originating connection, never written to.
            frame: The frame to relay unchanged.

        Returns:
            int: Number of recipients the frame was delivered to.
        """
        delivered = 0
        started = time.perf_counter()

        async with self._lock:
            # Copy: failed recipients are removed while iterating
            for recipient in list(self.connections):
                if recipient is sender:
                    continue

                try:
                    await self._send(recipient, frame)
                except (SendFailed, asyncio.TimeoutError) as e:
                    logger.warning(
                        f"Write error to connection {recipient.connection_id}: {e!r}"
                    )
                    await self._prune(recipient)
                except Exception as e:
                    # Catch-all for handle implementations raising their own errors
                    logger.warning(
                        f"Unexpected error sending to connection "
                        f"{recipient.connection_id}: {e!r}"
                    )
                    await self._prune(recipient)
                else:
                    delivered += 1

        ws_messages_relayed_total.inc(delivered)
        ws_broadcast_duration_seconds.observe(time.perf_counter() - started)
        return delivered

    async def close_all(self, code: int = WS_GOING_AWAY) -> int:
        """
        Closes and removes every registered connection.

        Used on application shutdown. Sessions still running notice the
        close on their next receive and tear down; their unregister is then
        a no-op.

        Args:
            code: WebSocket close code sent to each peer.

        Returns:
            int: Number of connections closed.
        """
        async with self._lock:
            handles = list(self.connections)
            for handle in handles:
                await self._close_quietly(handle, code)
                self._discard(handle)

        return len(handles)

    async def _send(self, recipient: ConnectionHandle, frame: Frame) -> None:
        if self.send_timeout is None:
            await recipient.send(frame)
        else:
            await asyncio.wait_for(recipient.send(frame), self.send_timeout)

    async def _prune(self, recipient: ConnectionHandle) -> None:
        """Force-close a recipient that failed a write and drop it. Lock held."""
        ws_send_failures_total.inc()
        await self._close_quietly(recipient, WS_INTERNAL_ERROR)
        self._discard(recipient)

    async def _close_quietly(self, handle: ConnectionHandle, code: int) -> None:
        try:
            await handle.close(code)
        except Exception as e:
            logger.warning(
                f"Error closing connection {handle.connection_id}: {e!r}"
            )

    def _discard(self, handle: ConnectionHandle) -> bool:
        """Remove a handle if present. Lock held."""
        if handle not in self.connections:
            return False

        self.connections.remove(handle)
        ws_connections_active.dec()
        logger.debug(
            f"Connection {handle.connection_id} removed. "
            f"Total clients: {len(self.connections)}"
        )
        return True
