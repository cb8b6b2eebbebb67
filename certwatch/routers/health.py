import logging

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from certwatch.config import get_settings
from certwatch.schemas.health import HealthResponse
from certwatch.services.collector import get_collector
from certwatch.services.metrics import get_metrics_publisher
from certwatch.services.providers import default_registry

logger = logging.getLogger(__name__)
router = APIRouter()


@router.get("/api/health", response_model=HealthResponse)
async def health_check():
    settings = get_settings()
    collector = get_collector()
    return HealthResponse(
        status="healthy",
        service=settings.service_name,
        version=settings.version,
        scheduler_enabled=settings.scheduler_enabled,
        certificate_sources=len(settings.certificates),
        supported_types=default_registry().types(),
        last_update=collector.last_update_time(),
    )


@router.get("/metrics")
async def metrics():
    """Prometheus scrape endpoint."""
    registry = get_metrics_publisher().registry
    return Response(content=generate_latest(registry), media_type=CONTENT_TYPE_LATEST)
