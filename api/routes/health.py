"""Health check endpoints."""

from datetime import datetime, timezone
from typing import Any, Dict

from fastapi import APIRouter
from pydantic import BaseModel

from connectors.netsuite import current_environment
from core.observability import get_metrics


router = APIRouter()

API_VERSION = "1.0.0"


class HealthResponse(BaseModel):
    """Health check response."""
    status: str
    timestamp: str
    version: str
    environment: str
    services: Dict[str, str]


@router.get("/health", response_model=HealthResponse)
async def health_check() -> HealthResponse:
    """Liveness of the API itself; NetSuite is checked by POST /connectors/netsuite/test."""
    return HealthResponse(
        status="healthy",
        timestamp=datetime.now(timezone.utc).isoformat(),
        version=API_VERSION,
        environment=current_environment(),
        services={
            "api": "up",
            "netsuite": "unknown",
        },
    )


@router.get("/metrics")
async def metrics_summary() -> Dict[str, Any]:
    """In-process sync counters and timings since startup."""
    return get_metrics().get_summary()
