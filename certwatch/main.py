import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI

from certwatch.config import get_settings
from certwatch.routers import dashboard, health

logging.basicConfig(
    level=get_settings().log_level.upper(),
    format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(application: FastAPI):
    settings = get_settings()
    logger.info(
        "Starting %s (port=%d, sources=%d, interval=%s, scheduler=%s)",
        settings.service_name,
        settings.server_port,
        len(settings.certificates),
        settings.check_interval,
        "enabled" if settings.scheduler_enabled else "disabled",
    )

    # Start background scheduler if enabled
    if settings.scheduler_enabled:
        try:
            from certwatch.tasks.scheduler import start_scheduler

            start_scheduler()
        except Exception as e:
            logger.warning("Failed to start scheduler: %s", e)

    yield

    # Shutdown
    logger.info("Shutting down %s", settings.service_name)
    from certwatch.tasks.scheduler import stop_scheduler

    stop_scheduler()


app = FastAPI(
    title="certwatch",
    description="Certificate expiry monitoring with Prometheus metrics and a dashboard",
    version=get_settings().version,
    lifespan=lifespan,
)

# Register routers
app.include_router(health.router, tags=["health"])
app.include_router(dashboard.router, tags=["dashboard"])


def run():
    """Console entry point: serve the app with uvicorn on the configured port."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=get_settings().server_port)
