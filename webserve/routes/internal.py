"""Health and metrics endpoints, kept off the served namespace."""
from datetime import datetime

from fastapi import APIRouter, Request, Response

from ..metrics import get_metrics, get_metrics_content_type
from ..schemas import HealthResponse

router = APIRouter(prefix="/_webserve", tags=["Internal"])


@router.get("/health", response_model=HealthResponse)
async def health_check(request: Request):
    """Health check endpoint."""
    state = request.app.state
    watcher = state.watcher
    return HealthResponse(
        root=str(state.config.root),
        spa=state.config.spa,
        watch=state.config.watch,
        watching=bool(watcher and watcher.running),
        reload_channels=len(state.broadcaster),
        timestamp=datetime.utcnow().isoformat(),
    )


@router.get("/metrics")
async def metrics():
    """Prometheus metrics endpoint."""
    return Response(
        content=get_metrics(),
        media_type=get_metrics_content_type()
    )
