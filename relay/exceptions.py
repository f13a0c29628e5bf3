"""
Exceptions raised by the relay core.

Each of them is contained within a single connection: the session or the
registry that catches it tears down or prunes that one connection and
carries on.
"""


class RelayError(Exception):
    """Base class for relay errors."""

    pass


class ConnectionClosed(RelayError):
    """
    The peer or the transport closed the connection.

    Raised by a connection handle's receive() when a close is signaled,
    whether orderly (close frame) or abnormal (socket dropped).
    """

    def __init__(self, code: int, reason: str = ""):
        self.code = code
        self.reason = reason
        super().__init__(f"connection closed with code {code}")


class SendFailed(RelayError):
    """
    Delivering a frame to a recipient failed or timed out.

    Raised by a connection handle's send(); the registry prunes the
    recipient when it sees this.
    """

    pass
