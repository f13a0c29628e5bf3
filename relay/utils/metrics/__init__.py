"""
Prometheus metrics used by the relay.

    from relay.utils.metrics import ws_connections_active
"""

from relay.utils.metrics.websocket import (
    ws_broadcast_duration_seconds,
    ws_connections_active,
    ws_connections_total,
    ws_messages_received_total,
    ws_messages_relayed_total,
    ws_send_failures_total,
)

__all__ = [
    "ws_broadcast_duration_seconds",
    "ws_connections_active",
    "ws_connections_total",
    "ws_messages_received_total",
    "ws_messages_relayed_total",
    "ws_send_failures_total",
]
