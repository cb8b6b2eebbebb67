"""Read-only view transform from collector state to dashboard rows."""

from collections.abc import Iterable
from datetime import datetime

from certwatch.config import DashboardSettings, Settings
from certwatch.models.certificate import CertificateRecord, Status
from certwatch.schemas.certificate import CertificateView, DashboardResponse
from certwatch.services.time_utils import format_duration, format_period

NO_DATE_PLACEHOLDER = "—"
NEVER_PLACEHOLDER = "never"
EXPIRED_PLACEHOLDER = "expired"


def format_instant(ts: datetime | None, date_format: str, placeholder: str) -> str:
    return ts.astimezone().strftime(date_format) if ts is not None else placeholder


def format_remaining(end: datetime | None, now: datetime) -> str:
    if end is None:
        return NO_DATE_PLACEHOLDER
    if end < now:
        return EXPIRED_PLACEHOLDER
    return format_period(now, end)


def determine_status_class(not_after: datetime | None, now: datetime, dashboard: DashboardSettings) -> str:
    """Map remaining lifetime onto the configured warning/critical thresholds."""
    if not_after is None:
        return "status-crit"
    remaining = not_after - now
    if remaining <= dashboard.critical_threshold:
        return "status-crit"
    if remaining <= dashboard.warning_threshold:
        return "status-warn"
    return "status-ok"


def to_view(record: CertificateRecord, now: datetime, dashboard: DashboardSettings) -> CertificateView:
    if record.status is Status.INVALID:
        status_class = "status-error"
    else:
        status_class = determine_status_class(record.not_after, now, dashboard)

    return CertificateView(
        name=record.name,
        type=record.type,
        path=record.path,
        file_name=record.file_name,
        alias=record.alias,
        subject=record.subject,
        status=record.status,
        not_before=record.not_before,
        not_after=record.not_after,
        not_before_formatted=format_instant(record.not_before, dashboard.date_format, NO_DATE_PLACEHOLDER),
        expiry_date_formatted=format_instant(record.not_after, dashboard.date_format, NO_DATE_PLACEHOLDER),
        time_remaining=format_remaining(record.not_after, now),
        status_class=status_class,
    )


def build_dashboard(
    records: Iterable[CertificateRecord],
    last_update: datetime | None,
    now: datetime,
    settings: Settings,
) -> DashboardResponse:
    dashboard = settings.dashboard
    return DashboardResponse(
        last_update=last_update,
        last_update_formatted=format_instant(last_update, dashboard.date_format, NEVER_PLACEHOLDER),
        version=settings.version,
        check_interval=format_duration(settings.check_interval),
        certificates=[to_view(record, now, dashboard) for record in records],
    )
