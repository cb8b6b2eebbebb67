"""Certificate -> CertificateRecord classification."""

import os
from datetime import datetime

from cryptography import x509

from certwatch.models.certificate import CertificateRecord, Status

MISSING_CERTIFICATE = "certificate is missing"


def classify(
    name: str,
    alias: str,
    path: str,
    source_type: str,
    certificate: x509.Certificate | None,
    now: datetime,
) -> CertificateRecord:
    """Build the record for one certificate evaluated at now.

    EXPIRED starts at not_after inclusive. A certificate whose not_before lies
    in the future is still VALID. An absent certificate is INVALID.
    """
    if certificate is None:
        return classify_error(name, alias, path, source_type, MISSING_CERTIFICATE)

    not_before = certificate.not_valid_before_utc
    not_after = certificate.not_valid_after_utc
    status = Status.EXPIRED if now >= not_after else Status.VALID

    return CertificateRecord(
        name=name,
        alias=alias,
        path=path,
        file_name=os.path.basename(path),
        type=source_type,
        subject=certificate.subject.rfc4514_string(),
        not_before=not_before,
        not_after=not_after,
        status=status,
    )


def classify_error(name: str, alias: str, path: str, source_type: str, message: str) -> CertificateRecord:
    """INVALID record carrying the failure text in place of the subject."""
    return CertificateRecord(
        name=name,
        alias=alias,
        path=path,
        file_name=os.path.basename(path),
        type=source_type,
        subject=message,
        not_before=None,
        not_after=None,
        status=Status.INVALID,
    )
