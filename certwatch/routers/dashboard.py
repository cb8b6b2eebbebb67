"""Dashboard endpoints: HTML page and its JSON equivalent."""

import logging
from datetime import datetime, timezone
from pathlib import Path

from fastapi import APIRouter, Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from certwatch.config import get_settings
from certwatch.schemas.certificate import DashboardResponse
from certwatch.services.collector import get_collector
from certwatch.services.dashboard import build_dashboard

logger = logging.getLogger(__name__)
router = APIRouter()

templates = Jinja2Templates(directory=str(Path(__file__).resolve().parent.parent / "templates"))


def _current_dashboard() -> DashboardResponse:
    records, last_update = get_collector().state()
    return build_dashboard(records, last_update, datetime.now(timezone.utc), get_settings())


@router.get("/", response_class=HTMLResponse)
async def dashboard(request: Request):
    return templates.TemplateResponse(request, "dashboard.html", {"dashboard": _current_dashboard()})


@router.get("/api/certificates", response_model=DashboardResponse)
async def list_certificates():
    """Current certificate table as rendered on the dashboard."""
    return _current_dashboard()
