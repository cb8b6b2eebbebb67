"""Shared fixtures: generated certificates, PEM writers and a recording metrics publisher."""

from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID
from prometheus_client import CollectorRegistry

from certwatch.config import CertificateEntry
from certwatch.services.collector import CertificateCollector
from certwatch.services.metrics import CertificateMetricsPublisher

T0 = datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc)


def make_certificate(
    common_name: str = "svc.example.test",
    not_before: datetime = T0 - timedelta(days=1),
    not_after: datetime = T0 + timedelta(days=30),
):
    key = ec.generate_private_key(ec.SECP256R1())
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, common_name)])
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(not_before)
        .not_valid_after(not_after)
        .sign(key, hashes.SHA256())
    )
    return cert, key


def write_pem(path: Path, *certs: x509.Certificate) -> Path:
    path.write_bytes(b"".join(c.public_bytes(serialization.Encoding.PEM) for c in certs))
    return path


class RecordingPublisher(CertificateMetricsPublisher):
    """Real gauges on a private registry, plus a log of every published record."""

    def __init__(self):
        super().__init__(CollectorRegistry())
        self.published = []

    def publish(self, record):
        self.published.append(record)
        super().publish(record)

    def reset(self):
        self.published.clear()


@pytest.fixture
def now():
    return T0


@pytest.fixture
def publisher():
    return RecordingPublisher()


@pytest.fixture
def cert_factory():
    return make_certificate


@pytest.fixture
def pem_file(tmp_path):
    """Write certificates into a PEM file under tmp_path and return its path."""

    def _write(filename: str, *certs: x509.Certificate) -> Path:
        return write_pem(tmp_path / filename, *certs)

    return _write


@pytest.fixture
def make_collector(publisher):
    def _make(entries, **kwargs):
        entries = [e if isinstance(e, CertificateEntry) else CertificateEntry(**e) for e in entries]
        return CertificateCollector(entries, publisher, **kwargs)

    return _make
