"""
Fixed protocol values for the relay.

These values are part of the WebSocket protocol (RFC 6455) or of the
service's public surface and are not configurable. Tunable values
(port, timeouts, logging) live in relay/settings.py.
"""

# ============================================================================
# WebSocket Close Codes (RFC 6455)
# ============================================================================

WS_NORMAL_CLOSURE = 1000
WS_GOING_AWAY = 1001
WS_NO_STATUS_RECEIVED = 1005
WS_ABNORMAL_CLOSURE = 1006
WS_INTERNAL_ERROR = 1011

# Close codes that count as an ordinary disconnect; anything else is
# logged as an unexpected close
WS_EXPECTED_CLOSE_CODES = frozenset(
    {
        WS_NORMAL_CLOSURE,
        WS_GOING_AWAY,
        WS_NO_STATUS_RECEIVED,
        WS_ABNORMAL_CLOSURE,
    }
)

# Timeout (seconds) for sending a close frame to a peer
# A peer that stopped reading must not hang teardown
WS_CLOSE_TIMEOUT_SECONDS = 5


# ============================================================================
# HTTP Surface
# ============================================================================

ROOT_BANNER = "WebRTC Signaling Server"
HEALTH_OK_BODY = "OK"

CORS_ALLOW_METHODS = ["GET", "POST", "OPTIONS"]
CORS_ALLOW_HEADERS = ["Content-Type"]


# ============================================================================
# Logging
# ============================================================================

# Connection ids are shortened to this many characters in log lines
CONNECTION_ID_LENGTH = 8
