from datetime import timedelta

from certwatch.models.certificate import Status
from certwatch.services.classifier import MISSING_CERTIFICATE, classify, classify_error


def test_valid_until_expiry_instant(now, cert_factory):
    cert, _ = cert_factory(not_after=now + timedelta(seconds=1))
    record = classify("svc", "default", "/certs/svc.pem", "pem", cert, now)

    assert record.status is Status.VALID
    assert record.subject == "CN=svc.example.test"
    assert record.not_after == now + timedelta(seconds=1)
    assert record.file_name == "svc.pem"


def test_expired_at_expiry_instant(now, cert_factory):
    cert, _ = cert_factory(not_after=now)
    assert classify("svc", "default", "/c.pem", "pem", cert, now).status is Status.EXPIRED


def test_not_yet_valid_counts_as_valid(now, cert_factory):
    cert, _ = cert_factory(not_before=now + timedelta(days=1), not_after=now + timedelta(days=10))
    assert classify("svc", "default", "/c.pem", "pem", cert, now).status is Status.VALID


def test_missing_certificate(now):
    record = classify("store", "orphan", "/s.jks", "jks", None, now)

    assert record.status is Status.INVALID
    assert record.subject == MISSING_CERTIFICATE
    assert record.not_before is None
    assert record.not_after is None


def test_error_record():
    record = classify_error("store", "unknown", "/s.jks", "jks", "Keystore file does not exist: /s.jks")

    assert record.status is Status.INVALID
    assert record.subject == "Keystore file does not exist: /s.jks"
    assert not record.is_valid
