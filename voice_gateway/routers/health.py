"""Health check endpoint.

Never rate limited. Reports whether the HTTP source is running and how
many commands are waiting for the pipeline.
"""

from __future__ import annotations

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from voice_gateway.models import HealthResponse
from voice_gateway.routers.dependencies import get_http_source
from voice_gateway.services.http_source import HTTPSource

router = APIRouter(tags=["health"])


@router.get("/health")
async def health_check(source: HTTPSource = Depends(get_http_source)) -> JSONResponse:
    """Liveness/readiness probe.

    Returns:
        HTTP 200 with ``{status, running, queue_size}`` while running,
        HTTP 503 with ``status="not_ready"`` otherwise
    """
    running = source.running
    body = HealthResponse(
        status="ok" if running else "not_ready",
        running=running,
        queue_size=source.queue.qsize(),
    )
    status_code = status.HTTP_200_OK if running else status.HTTP_503_SERVICE_UNAVAILABLE
    return JSONResponse(status_code=status_code, content=body.model_dump())
