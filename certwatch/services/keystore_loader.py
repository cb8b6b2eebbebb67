"""Loading keystore containers into alias -> certificate lookups."""

import hashlib
import logging
from dataclasses import dataclass, field

import jks
from cryptography import x509
from cryptography.hazmat.primitives.serialization import pkcs12
from jks.util import KeystoreException

from certwatch.errors import DecodeFailed, UnsupportedType
from certwatch.services.certificate_loader import read_source

logger = logging.getLogger(__name__)

# Java keystores end with SHA-1(utf16be(password) + whitening + body)
SIGNATURE_WHITENING = b"Mighty Aphrodite"
SIGNATURE_SIZE = hashlib.sha1().digest_size


@dataclass
class Keystore:
    """Decoded keystore; aliases keep the container's enumeration order."""

    type: str
    path: str
    entries: dict[str, x509.Certificate | None] = field(default_factory=dict)

    def aliases(self) -> list[str]:
        return list(self.entries)

    def get_certificate(self, alias: str) -> x509.Certificate | None:
        return self.entries.get(alias)


def _without_integrity_check(data: bytes) -> bytes:
    """Re-sign the store for the empty password so it opens without the real one."""
    body = data[:-SIGNATURE_SIZE]
    return body + hashlib.sha1(SIGNATURE_WHITENING + body).digest()


def _read_java_keystore(data: bytes, password: str | None) -> dict[str, x509.Certificate | None]:
    """JKS and JCEKS: first chain certificate of key entries, the cert of trusted entries."""
    if password is None:
        # Certificates are stored in the clear, only the integrity check needs the password
        data = _without_integrity_check(data)
        password = ""
    try:
        store = jks.KeyStore.loads(data, password, try_decrypt_keys=False)
    except KeystoreException as e:
        raise DecodeFailed(f"Failed to load keystore: {e}") from e

    entries: dict[str, x509.Certificate | None] = {}
    for alias, entry in store.entries.items():
        der = None
        if isinstance(entry, jks.PrivateKeyEntry) and entry.cert_chain:
            der = entry.cert_chain[0][1]
        elif isinstance(entry, jks.TrustedCertEntry):
            der = entry.cert
        # Secret key entries carry no certificate
        entries[alias] = x509.load_der_x509_certificate(der) if der else None
    return entries


def _read_pkcs12(data: bytes, password: str | None) -> dict[str, x509.Certificate | None]:
    """PKCS#12: key certificate first, then additional certificates; alias is the friendly name."""
    try:
        bundle = pkcs12.load_pkcs12(data, password.encode("utf-8") if password is not None else None)
    except ValueError as e:
        raise DecodeFailed(f"Failed to load keystore: {e}") from e

    items = ([bundle.cert] if bundle.cert else []) + list(bundle.additional_certs)
    entries: dict[str, x509.Certificate | None] = {}
    for index, item in enumerate(items, start=1):
        alias = item.friendly_name.decode("utf-8", "replace") if item.friendly_name else str(index)
        if alias in entries:
            alias = f"{alias}-{index}"
        entries[alias] = item.certificate
    return entries


KEYSTORE_READERS = {
    "jks": _read_java_keystore,
    "jceks": _read_java_keystore,
    "p12": _read_pkcs12,
    "pkcs12": _read_pkcs12,
}


def load(keystore_type: str, path: str, password: str | None) -> Keystore:
    """Load a keystore of the given type from path.

    Raises:
        SourceUnreadable: the keystore file is missing or unreadable
        UnsupportedType: no reader exists for keystore_type on this platform
        DecodeFailed: wrong password, failed integrity check or corrupt container
    """
    normalized, data = read_source(path, label="Keystore file")

    reader = KEYSTORE_READERS.get(keystore_type.lower())
    if reader is None:
        raise UnsupportedType(f"Unsupported keystore type: {keystore_type}")

    entries = reader(data, password)
    logger.debug("Loaded %s keystore %s with %d alias(es)", keystore_type, normalized, len(entries))
    return Keystore(type=keystore_type, path=str(normalized), entries=entries)
