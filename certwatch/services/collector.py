"""Certificate collector: the polling cycle that keeps the certificate table current.

Each cycle derives a fresh table from every configured source, diffs it
against the previous table by identity, notifies the metrics publisher once
per created or changed record and swaps the fresh table in. Identities that
were not derived again are dropped by the swap.
"""

import logging
import threading
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from functools import lru_cache

from cryptography import x509

from certwatch.config import CertificateEntry, get_settings
from certwatch.errors import CertWatchError
from certwatch.models.certificate import CertificateRecord, Identity
from certwatch.services import secret_resolver
from certwatch.services.classifier import classify, classify_error
from certwatch.services.metrics import CertificateMetricsPublisher, get_metrics_publisher
from certwatch.services.providers import LoadedCertificates, ProviderRegistry, default_registry

logger = logging.getLogger(__name__)

UNKNOWN_ALIAS = "unknown"

CREATED = "created"
CHANGED = "changed"
UNCHANGED = "unchanged"


@dataclass(frozen=True)
class CycleReport:
    started_at: datetime
    created: tuple[Identity, ...] = ()
    changed: tuple[Identity, ...] = ()
    unchanged: tuple[Identity, ...] = ()
    removed: tuple[Identity, ...] = ()
    failed_entries: tuple[str, ...] = ()

    @property
    def notifications(self) -> int:
        return len(self.created) + len(self.changed)


def _as_utc(now: datetime | None) -> datetime:
    if now is None:
        return datetime.now(timezone.utc)
    if now.tzinfo is None:
        return now.replace(tzinfo=timezone.utc)
    return now.astimezone(timezone.utc)


def _error_message(e: Exception) -> str:
    if isinstance(e, CertWatchError):
        return str(e) or type(e).__name__
    return f"{type(e).__name__}: {e}" if str(e) else type(e).__name__


class CertificateCollector:
    """Owns the certificate table; run_cycle() is called by a single scheduler job.

    Readers may call snapshot() and last_update_time() from any thread. Source
    I/O happens on a private working table; the lock only guards the swap.
    """

    def __init__(
        self,
        entries: Iterable[CertificateEntry],
        metrics_publisher: CertificateMetricsPublisher,
        providers: ProviderRegistry | None = None,
        resolve_secret: Callable[[str | None], str | None] = secret_resolver.resolve,
    ):
        self._entries = list(entries)
        self._metrics = metrics_publisher
        self._providers = providers if providers is not None else default_registry()
        self._resolve_secret = resolve_secret

        self._lock = threading.Lock()
        self._table: dict[Identity, CertificateRecord] = {}
        self._last_update: datetime | None = None

        logger.info("Initialized; monitoring %d certificate sources", len(self._entries))

    def snapshot(self) -> tuple[CertificateRecord, ...]:
        with self._lock:
            return tuple(self._table.values())

    def last_update_time(self) -> datetime | None:
        with self._lock:
            return self._last_update

    def state(self) -> tuple[tuple[CertificateRecord, ...], datetime | None]:
        """Snapshot and last update time taken together."""
        with self._lock:
            return tuple(self._table.values()), self._last_update

    def run_cycle(self, now: datetime | None = None) -> CycleReport:
        """Poll every source once, evaluating all certificates against now."""
        now = _as_utc(now)
        previous = self._table  # only run_cycle replaces it, never concurrently
        working: dict[Identity, CertificateRecord] = {}
        outcomes: dict[Identity, str] = {}
        failed_entries: list[str] = []

        for entry in self._entries:
            try:
                loaded = self._load_entry(entry)
            except Exception as e:
                if not isinstance(e, CertWatchError):
                    logger.debug("Unexpected error loading %s", entry.name, exc_info=True)
                failed_entries.append(entry.name)
                record = classify_error(entry.name, UNKNOWN_ALIAS, entry.path, entry.type, _error_message(e))
                self._merge(record, previous, working, outcomes)
                continue

            for alias, certificate in loaded:
                record = self._build_record(entry, alias, certificate, now)
                self._merge(record, previous, working, outcomes)

        removed = tuple(identity for identity in previous if identity not in working)

        with self._lock:
            self._table = working
            self._last_update = now

        report = CycleReport(
            started_at=now,
            created=tuple(i for i, o in outcomes.items() if o == CREATED),
            changed=tuple(i for i, o in outcomes.items() if o == CHANGED),
            unchanged=tuple(i for i, o in outcomes.items() if o == UNCHANGED),
            removed=removed,
            failed_entries=tuple(failed_entries),
        )
        for identity in removed:
            logger.info("Certificate %s no longer present, removed", identity)
        logger.info(
            "Cycle complete: %d certificates (%d created, %d changed, %d removed, %d failed sources)",
            len(working),
            len(report.created),
            len(report.changed),
            len(report.removed),
            len(report.failed_entries),
        )
        return report

    def _load_entry(self, entry: CertificateEntry) -> LoadedCertificates:
        provider = self._providers.get(entry.type)
        password = None
        if provider.uses_password and entry.password is not None:
            password = self._resolve_secret(entry.password)
        return provider.load(entry, password)

    def _build_record(
        self,
        entry: CertificateEntry,
        alias: str,
        certificate: x509.Certificate | None,
        now: datetime,
    ) -> CertificateRecord:
        try:
            return classify(entry.name, alias, entry.path, entry.type, certificate, now)
        except Exception as e:
            logger.debug("Could not classify %s:%s", entry.name, alias, exc_info=True)
            return classify_error(entry.name, alias, entry.path, entry.type, _error_message(e))

    def _merge(
        self,
        record: CertificateRecord,
        previous: dict[Identity, CertificateRecord],
        working: dict[Identity, CertificateRecord],
        outcomes: dict[Identity, str],
    ) -> None:
        identity = record.identity
        # A second derivation of the same identity within one cycle compares
        # against the first one
        existing = working.get(identity, previous.get(identity))
        working[identity] = record

        if existing is None:
            outcomes[identity] = CREATED
            if record.not_after is None:
                logger.error("Error loading %s %s", identity, record.subject)
            else:
                logger.debug("New certificate %s expires %s", identity, record.not_after.isoformat())
            self._metrics.publish(record)
            return

        if existing == record:
            outcomes.setdefault(identity, UNCHANGED)
            return

        if outcomes.get(identity) != CREATED:
            outcomes[identity] = CHANGED
        if record.not_after is None and existing.subject != record.subject:
            logger.warning("Error for %s changed %s", identity, record.subject)
        else:
            logger.info("Certificate %s changed %s → %s", identity, existing.status.value, record.status.value)
        self._metrics.publish(record)


@lru_cache
def get_collector() -> CertificateCollector:
    settings = get_settings()
    return CertificateCollector(settings.certificates, get_metrics_publisher())
