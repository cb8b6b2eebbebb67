from datetime import datetime

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: str
    service: str
    version: str
    scheduler_enabled: bool
    certificate_sources: int
    supported_types: list[str]
    last_update: datetime | None = None
