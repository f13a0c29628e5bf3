"""Liveness probe, answered without looking at relay state."""

from fastapi import APIRouter, status
from fastapi.responses import PlainTextResponse

from relay.constants import HEALTH_OK_BODY

router = APIRouter()


@router.get(
    "/health",
    response_class=PlainTextResponse,
    status_code=status.HTTP_200_OK,
    summary="Health check endpoint",
    tags=["health"],
)
async def health_check() -> str:
    return HEALTH_OK_BODY
