"""
Root route.

``GET /`` answers with a fixed plain-text body and is used as a liveness check.
"""

from fastapi import APIRouter
from fastapi.responses import PlainTextResponse

LIVENESS_MESSAGE = "App is running"

router = APIRouter(tags=["Health"])


@router.api_route(
    "/",
    methods=["GET", "HEAD"],
    response_class=PlainTextResponse,
    summary="Liveness check",
    description="Confirm the process is running and responsive",
)
async def root() -> PlainTextResponse:
    """Return the fixed liveness message."""
    return PlainTextResponse(LIVENESS_MESSAGE)
