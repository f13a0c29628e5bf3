# Uvicorn application factory <https://www.uvicorn.org/#application-factories>
from contextlib import asynccontextmanager
from typing import AsyncIterator

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from relay.constants import CORS_ALLOW_HEADERS, CORS_ALLOW_METHODS, WS_GOING_AWAY
from relay.logging import logger
from relay.middlewares.correlation_id import CorrelationIDMiddleware
from relay.registry import ConnectionRegistry
from relay.routing import collect_subrouters
from relay.settings import app_settings
from relay.uvicorn_filters import install_access_log_filter


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """
    Application startup and shutdown.

    Startup quiets uvicorn's access log for monitoring endpoints. Shutdown
    closes every connection still registered with 1001 (going away); the
    sessions owning them then tear down on their own.
    """
    install_access_log_filter()
    logger.info(
        f"Server running on port {app_settings.PORT}, "
        f"relaying on {app_settings.WS_PATH}"
    )

    yield

    logger.info("Application shutdown initiated")
    closed = await app.state.registry.close_all(WS_GOING_AWAY)
    if closed:
        logger.info(f"Closed {closed} client connections")
    logger.info("Application shutdown complete")


def application() -> FastAPI:
    """
    Initializes and configures the FastAPI application.

    Each call builds its own ConnectionRegistry, stored on `app.state`, so
    several relays (one per test, for instance) can live in one process.

    Routers are collected by `relay.routing.collect_subrouters()`. The
    middlewares are:
    - `CORSMiddleware`: any origin, GET/POST/OPTIONS, Content-Type header.
    - `CorrelationIDMiddleware`: X-Correlation-ID on HTTP requests.
    """
    app = FastAPI(
        title="WebSocket signaling relay",
        description="Relays every WebSocket message to all other connected clients",
        version="1.0.0",
        lifespan=lifespan,
    )

    app.state.registry = ConnectionRegistry(
        send_timeout=app_settings.WS_SEND_TIMEOUT_SECONDS
    )

    app.include_router(collect_subrouters())

    # Middlewares (execute in REVERSE order of registration)
    # Execution flow: CorrelationIDMiddleware → CORSMiddleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=app_settings.CORS_ALLOW_ORIGINS,
        allow_methods=CORS_ALLOW_METHODS,
        allow_headers=CORS_ALLOW_HEADERS,
    )
    app.add_middleware(CorrelationIDMiddleware)

    return app
