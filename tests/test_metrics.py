"""Tests for Prometheus metrics helpers and relay instrumentation."""

import pytest
from prometheus_client import REGISTRY, Counter

from relay.connection import Frame
from relay.exceptions import SendFailed
from relay.utils.metrics import ws_messages_relayed_total
from relay.utils.metrics._helpers import _get_or_create
from tests.mocks.websocket_mocks import create_mock_handle


def sample(name, labels=None):
    return REGISTRY.get_sample_value(name, labels or {}) or 0.0


def test_get_or_create_returns_existing():
    """Test registering the same name twice yields the same collector."""
    assert (
        _get_or_create(
            Counter,
            "ws_messages_relayed_total",
            "Total frames delivered to recipients",
        )
        is ws_messages_relayed_total
    )


@pytest.mark.asyncio
async def test_active_gauge_follows_membership(registry, mock_handle):
    """Test ws_connections_active tracks register and unregister."""
    before = sample("ws_connections_active")

    await registry.register(mock_handle)
    assert sample("ws_connections_active") == before + 1

    await registry.unregister(mock_handle)
    assert sample("ws_connections_active") == before


@pytest.mark.asyncio
async def test_broadcast_counters(registry):
    """Test deliveries and failures are counted."""
    sender = create_mock_handle("sender")
    alive = create_mock_handle("alive")
    dead = create_mock_handle("dead")
    dead.send.side_effect = SendFailed("reset")
    for handle in (sender, alive, dead):
        await registry.register(handle)
    relayed = sample("ws_messages_relayed_total")
    failures = sample("ws_send_failures_total")

    await registry.broadcast(sender, Frame.text("x"))

    assert sample("ws_messages_relayed_total") == relayed + 1
    assert sample("ws_send_failures_total") == failures + 1
    await registry.close_all()
