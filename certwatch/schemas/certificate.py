from datetime import datetime

from pydantic import BaseModel

from certwatch.models.certificate import Status


class CertificateView(BaseModel):
    """One dashboard row."""
    name: str
    type: str
    path: str
    file_name: str
    alias: str
    subject: str  # subject DN or error message
    status: Status
    not_before: datetime | None = None
    not_after: datetime | None = None
    not_before_formatted: str
    expiry_date_formatted: str
    time_remaining: str
    status_class: str  # status-ok / status-warn / status-crit / status-error

    @property
    def status_fragment_name(self) -> str:
        return f"cert-{self.status.value.lower()}-icon"


class DashboardResponse(BaseModel):
    last_update: datetime | None = None
    last_update_formatted: str
    version: str
    check_interval: str | None = None
    certificates: list[CertificateView]
