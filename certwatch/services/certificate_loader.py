"""Loading X.509 certificates from standalone PEM/CRT files.

Handles single certificates, PEM bundles holding a full chain, DER files and
PKCS#7 containers.
"""

import logging
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives.serialization import pkcs7

from certwatch.errors import DecodeFailed, SourceUnreadable

logger = logging.getLogger(__name__)

PEM_MARKER = b"-----BEGIN"
PKCS7_PEM_MARKER = b"-----BEGIN PKCS7-----"


def normalize_path(path: str) -> Path:
    return Path(path).expanduser().resolve()


def read_source(path: str, label: str = "Certificate file") -> tuple[Path, bytes]:
    """Read a source file, mapping every filesystem problem to SourceUnreadable."""
    normalized = normalize_path(path)
    if not normalized.is_file():
        raise SourceUnreadable(f"{label} does not exist: {normalized}")
    try:
        return normalized, normalized.read_bytes()
    except OSError as e:
        raise SourceUnreadable(f"{label} is not readable: {normalized} ({e.strerror})") from e


def _parse_pem(data: bytes) -> list[x509.Certificate]:
    if PKCS7_PEM_MARKER in data:
        return pkcs7.load_pem_pkcs7_certificates(data)
    return x509.load_pem_x509_certificates(data)


def _parse_der(data: bytes) -> list[x509.Certificate]:
    try:
        return [x509.load_der_x509_certificate(data)]
    except ValueError:
        # Not a bare certificate; a DER PKCS#7 bundle is the only other option
        return pkcs7.load_der_pkcs7_certificates(data)


def parse_certificates(data: bytes) -> list[x509.Certificate]:
    """Decode every certificate in data, in file order."""
    parser = _parse_pem if PEM_MARKER in data else _parse_der
    try:
        return list(parser(data))
    except ValueError as e:
        raise DecodeFailed(f"Could not parse certificate data: {e}") from e


def load_all(path: str) -> list[x509.Certificate]:
    """Load all certificates from path; never returns an empty list.

    Raises:
        SourceUnreadable: path is missing, not a regular file or unreadable
        DecodeFailed: the file holds no parseable certificate
    """
    normalized, data = read_source(path)
    try:
        certs = parse_certificates(data)
    except DecodeFailed as e:
        raise DecodeFailed(f"No certificates found in file: {normalized} ({e})") from e
    if not certs:
        raise DecodeFailed(f"No certificates found in file: {normalized}")

    logger.debug("Loaded %d certificate(s) from %s", len(certs), normalized)
    return certs
