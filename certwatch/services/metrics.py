"""Prometheus gauges fed by the collector on every created or changed record."""

import logging
from functools import lru_cache

from prometheus_client import CollectorRegistry, Gauge

from certwatch.models.certificate import CertificateRecord

logger = logging.getLogger(__name__)

LABEL_NAMES = ["certificate_name", "alias"]


class CertificateMetricsPublisher:
    """Two gauges per identity: expiry as epoch seconds and a validity flag.

    Label sets are never removed, so a pruned certificate keeps its last
    published values.
    """

    def __init__(self, registry: CollectorRegistry | None = None):
        self.registry = registry if registry is not None else CollectorRegistry()
        self.expiration = Gauge(
            "certwatch_certificate_expiration_seconds",
            "Certificate expiration time in epoch seconds",
            LABEL_NAMES,
            registry=self.registry,
        )
        self.validity = Gauge(
            "certwatch_certificate_validity",
            "Indicates if a certificate is valid (1 = valid, 0 = expired or invalid)",
            LABEL_NAMES,
            registry=self.registry,
        )

    def publish_expiration(self, record: CertificateRecord) -> None:
        if record.not_after is None:
            return
        self.expiration.labels(record.name, record.alias).set(record.not_after.timestamp())

    def publish_validity(self, name: str, alias: str, is_valid: bool) -> None:
        self.validity.labels(name, alias).set(1 if is_valid else 0)

    def publish(self, record: CertificateRecord) -> None:
        self.publish_expiration(record)
        self.publish_validity(record.name, record.alias, record.is_valid)
        logger.debug("Published metrics for %s (%s)", record.identity, record.status.value)


@lru_cache
def get_metrics_publisher() -> CertificateMetricsPublisher:
    return CertificateMetricsPublisher()
