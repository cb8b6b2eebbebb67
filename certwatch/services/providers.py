"""Source providers and the registry mapping source types to them.

A provider turns one configured entry into ordered ``(alias, certificate)``
pairs; ``None`` stands for an alias without a certificate. New formats are
added by registering another provider.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Iterable

from cryptography import x509

from certwatch.config import CertificateEntry
from certwatch.errors import UnsupportedType
from certwatch.services import certificate_loader, keystore_loader

logger = logging.getLogger(__name__)

SINGLE_FILE_TYPES = ("pem", "crt")
KEYSTORE_TYPES = ("jks", "jceks", "dks", "p12", "pkcs12", "pkcs11")

LoadedCertificates = list[tuple[str, x509.Certificate | None]]


class SourceProvider(ABC):
    # Whether the entry's password is resolved and handed to load()
    uses_password: bool = False

    @abstractmethod
    def load(self, entry: CertificateEntry, password: str | None) -> LoadedCertificates:
        """Load every certificate of entry or raise a CertWatchError."""


class FileCertificateProvider(SourceProvider):
    """PEM/CRT files; one certificate is 'default', a bundle is cert1..certN in file order."""

    def load(self, entry: CertificateEntry, password: str | None = None) -> LoadedCertificates:
        certs = certificate_loader.load_all(entry.path)
        if len(certs) == 1:
            return [("default", certs[0])]
        return [(f"cert{index}", cert) for index, cert in enumerate(certs, start=1)]


class KeystoreProvider(SourceProvider):
    """Keystore containers; one pair per alias in the keystore's enumeration order."""

    uses_password = True

    def load(self, entry: CertificateEntry, password: str | None) -> LoadedCertificates:
        keystore = keystore_loader.load(entry.type, entry.path, password)
        return [(alias, keystore.get_certificate(alias)) for alias in keystore.aliases()]


class ProviderRegistry:
    def __init__(self):
        self._providers: dict[str, SourceProvider] = {}

    def register(self, source_types: Iterable[str], provider: SourceProvider) -> None:
        for source_type in source_types:
            self._providers[source_type.lower()] = provider

    def get(self, source_type: str) -> SourceProvider:
        provider = self._providers.get(source_type.lower())
        if provider is None:
            raise UnsupportedType(f"Unsupported certificate type: {source_type}")
        return provider

    def types(self) -> list[str]:
        return sorted(self._providers)


def default_registry() -> ProviderRegistry:
    registry = ProviderRegistry()
    registry.register(SINGLE_FILE_TYPES, FileCertificateProvider())
    registry.register(KEYSTORE_TYPES, KeystoreProvider())
    return registry
