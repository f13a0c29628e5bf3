"""
Middleware for HTTP request correlation IDs.

WebSocket sessions are tagged with their connection id instead, see
relay.session.
"""

import uuid
from contextvars import ContextVar

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import Response

from relay.constants import CONNECTION_ID_LENGTH

correlation_id: ContextVar[str] = ContextVar("correlation_id", default="")

CORRELATION_ID_HEADER = "X-Correlation-ID"


class CorrelationIDMiddleware(BaseHTTPMiddleware):
    """
    Tags every HTTP request with a short correlation id.

    The id is taken from the X-Correlation-ID request header when present,
    otherwise generated. It is stored in request.state.request_id, in the
    correlation_id context variable for logging, and echoed back in the
    response headers.
    """

    async def dispatch(self, request: Request, call_next) -> Response:
        cid = request.headers.get(CORRELATION_ID_HEADER) or uuid.uuid4().hex
        cid = cid[:CONNECTION_ID_LENGTH]

        request.state.request_id = cid
        token = correlation_id.set(cid)
        try:
            response = await call_next(request)
        finally:
            correlation_id.reset(token)

        response.headers[CORRELATION_ID_HEADER] = cid
        return response


def get_correlation_id() -> str:
    """
    Get the correlation ID for the current request context.

    Returns:
        The correlation ID string, or empty string if not set.
    """
    return correlation_id.get()
