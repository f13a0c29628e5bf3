from fastapi import APIRouter
from starlette.endpoints import WebSocketEndpoint
from starlette.websockets import WebSocket, WebSocketDisconnect

from relay.connection import WebSocketConnection
from relay.logging import logger
from relay.registry import ConnectionRegistry
from relay.session import RelaySession
from relay.settings import app_settings
from relay.utils.metrics import ws_connections_total

router = APIRouter()


@router.websocket_route(app_settings.WS_PATH)
class Signaling(WebSocketEndpoint):
    """
    WebSocket endpoint relaying every message to all other clients.

    The whole connection lifecycle is handed to a RelaySession, so the
    on_connect/on_receive/on_disconnect hooks of WebSocketEndpoint are not
    used; dispatch() is replaced instead.
    """

    encoding = None

    async def dispatch(self) -> None:
        """
        Accept the upgrade and run a relay session on the connection.

        If the handshake cannot be completed the attempt is abandoned and
        no session is created.
        """
        websocket = WebSocket(self.scope, receive=self.receive, send=self.send)
        logger.debug("Attempting to upgrade connection")

        try:
            await websocket.accept()
        except (WebSocketDisconnect, RuntimeError, OSError) as e:
            # RuntimeError: client went away before completing the handshake
            logger.warning(f"Upgrade error: {e!r}")
            ws_connections_total.labels(status="upgrade_failed").inc()
            return

        ws_connections_total.labels(status="accepted").inc()
        handle = WebSocketConnection(websocket)
        logger.info(
            f"WebSocket connection {handle.connection_id} established "
            f"from {handle.client}"
        )

        registry: ConnectionRegistry = websocket.app.state.registry
        session = RelaySession(
            handle,
            registry,
            idle_timeout=app_settings.WS_IDLE_TIMEOUT_SECONDS,
            log_payloads=app_settings.WS_LOG_PAYLOADS,
        )
        await session.run()
        logger.debug("Exiting relay loop")
