"""
Protocol classes for structural subtyping.

The registry and the session only talk to connections through
ConnectionHandle, so tests can drive them with plain doubles and the
transport can be swapped without touching the core.

Example:
    ```python
    from relay.protocols import ConnectionHandle


    async def echo(handle: ConnectionHandle) -> None:
        frame = await handle.receive()
        await handle.send(frame)
    ```
"""

from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from relay.connection import Frame


@runtime_checkable
class ConnectionHandle(Protocol):
    """
    Protocol for one client's bidirectional message stream.

    A handle is owned by exactly one session, which reads from it and
    eventually closes it. The registry holds a non-owning reference and
    only writes to it.

    Attributes:
        connection_id: Short id used to tag log lines.
    """

    connection_id: str

    async def receive(self) -> "Frame":
        """
        Wait for the next inbound frame.

        Returns:
            The received frame, kind and payload untouched.

        Raises:
            ConnectionClosed: The peer or the transport closed the stream.
        """
        ...

    async def send(self, frame: "Frame") -> None:
        """
        Write a frame to the peer, keeping its kind.

        Raises:
            SendFailed: The frame could not be delivered.
        """
        ...

    async def close(self, code: int = ...) -> None:
        """
        Close the stream. Calling it more than once is a no-op.
        """
        ...
