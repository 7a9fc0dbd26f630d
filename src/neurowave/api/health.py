"""Health check endpoints for the neurowave API.

Health endpoints:
- GET /health         - Simple health check (always 200 if process alive)
- GET /health/live    - Liveness probe (process alive)
- GET /health/ready   - Readiness probe (coordinator accepting activations)
- GET /health/metrics - Prometheus metrics endpoint
"""

import logging
import time

from fastapi import APIRouter, Request, Response, status
from fastapi.responses import PlainTextResponse
from pydantic import BaseModel, Field

from neurowave.observability.metrics import get_metrics_exporter

logger = logging.getLogger(__name__)

# Health check router
router = APIRouter(prefix="/health", tags=["health"])


class SimpleHealthStatus(BaseModel):
    """Simple health status response for basic health check."""

    status: str


class LivenessStatus(BaseModel):
    """Liveness status response - just confirms process is running."""

    status: str = Field(description="Always 'alive' if process is responsive")
    timestamp: float = Field(description="Unix timestamp of response")


class ReadinessStatus(BaseModel):
    """Readiness status response."""

    ready: bool = Field(description="Whether activations are accepted")
    status: str = Field(description="'ready' or 'not_ready'")
    timestamp: float = Field(description="Unix timestamp of response")
    actors: int = Field(description="Number of registered actors")
    running_loops: int = Field(description="Number of running evaluation loops")
    active_actor_id: str | None = Field(default=None, description="Currently stimulated actor")


@router.get("", response_model=SimpleHealthStatus)
async def health_check() -> SimpleHealthStatus:
    """Simple health check endpoint."""
    return SimpleHealthStatus(status="healthy")


@router.get("/live", response_model=LivenessStatus)
async def live() -> LivenessStatus:
    """Liveness probe endpoint. No dependency checks."""
    return LivenessStatus(status="alive", timestamp=time.time())


@router.get("/ready", response_model=ReadinessStatus)
async def ready(request: Request, response: Response) -> ReadinessStatus:
    """Readiness probe endpoint.

    Returns 503 once the coordinator has been shut down.
    """
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        return ReadinessStatus(
            ready=False,
            status="not_ready",
            timestamp=time.time(),
            actors=0,
            running_loops=0,
        )

    is_ready = not coordinator.scheduler.is_closed
    if not is_ready:
        response.status_code = status.HTTP_503_SERVICE_UNAVAILABLE
    return ReadinessStatus(
        ready=is_ready,
        status="ready" if is_ready else "not_ready",
        timestamp=time.time(),
        actors=len(coordinator),
        running_loops=len(coordinator.scheduler.running_actors()),
        active_actor_id=coordinator.active_actor_id,
    )


@router.get("/metrics", response_class=PlainTextResponse)
async def metrics(request: Request) -> str:
    """Prometheus metrics endpoint.

    Exports the application's metrics in Prometheus text format, or the
    process-wide exporter's when the application has none.
    """
    metrics_exporter = getattr(request.app.state, "metrics", None) or get_metrics_exporter()
    return metrics_exporter.get_metrics_text()
