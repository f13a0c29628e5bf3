from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

from relay.constants import ROOT_BANNER

router = APIRouter()


@router.get("/", response_class=PlainTextResponse, include_in_schema=False)
async def root() -> str:
    """Banner identifying the service."""
    return ROOT_BANNER
