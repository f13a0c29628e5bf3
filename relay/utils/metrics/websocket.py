"""
Prometheus metrics for the relay's WebSocket connections and fan-out.
"""

from prometheus_client import Counter, Gauge, Histogram

from relay.utils.metrics._helpers import _get_or_create

ws_connections_active = _get_or_create(
    Gauge, "ws_connections_active", "Number of registered WebSocket connections"
)

ws_connections_total = _get_or_create(
    Counter,
    "ws_connections_total",
    "Total WebSocket connection attempts",
    ["status"],  # accepted, upgrade_failed
)

ws_messages_received_total = _get_or_create(
    Counter,
    "ws_messages_received_total",
    "Total WebSocket frames received for relaying",
    ["kind"],  # text, binary
)

ws_messages_relayed_total = _get_or_create(
    Counter,
    "ws_messages_relayed_total",
    "Total frames delivered to recipients",
)

ws_send_failures_total = _get_or_create(
    Counter,
    "ws_send_failures_total",
    "Total failed deliveries that pruned a recipient",
)

ws_broadcast_duration_seconds = _get_or_create(
    Histogram,
    "ws_broadcast_duration_seconds",
    "Duration of one full broadcast fan-out in seconds",
    buckets=(0.001, 0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 5.0),
)
