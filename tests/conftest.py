"""
Pytest configuration and fixtures for testing.

This module provides shared fixtures for the registry, connection doubles
and the FastAPI application.
"""

import pytest
from fastapi.testclient import TestClient

from relay.registry import ConnectionRegistry
from tests.mocks.websocket_mocks import (
    FakeConnection,
    create_mock_handle,
    create_mock_websocket,
)


@pytest.fixture
def registry():
    """
    Provides an empty registry without a send timeout.

    Returns:
        ConnectionRegistry: Fresh registry instance
    """
    return ConnectionRegistry()


@pytest.fixture
def mock_handle():
    """
    Provides a mock connection handle.

    Returns:
        MagicMock: Mocked WebSocketConnection instance
    """
    return create_mock_handle()


@pytest.fixture
def mock_websocket():
    """
    Provides a mock Starlette WebSocket.

    Returns:
        MagicMock: Mocked WebSocket instance
    """
    return create_mock_websocket()


@pytest.fixture
def peers():
    """
    Provides three in-memory connections named a, b and c.

    Returns:
        tuple[FakeConnection, FakeConnection, FakeConnection]
    """
    return (
        FakeConnection("conn-a"),
        FakeConnection("conn-b"),
        FakeConnection("conn-c"),
    )


@pytest.fixture
def app():
    """
    Create a new relay application with its own registry.

    Returns:
        FastAPI: FastAPI application instance.
    """
    from relay import application

    return application()


@pytest.fixture
def client(app):
    """
    Create a test client with the application's lifespan running.

    WebSocket sessions opened from this client share one event loop, as
    they do under uvicorn.

    Yields:
        TestClient: FastAPI test client instance.
    """
    with TestClient(app) as test_client:
        yield test_client
