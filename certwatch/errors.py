"""Failures raised while loading a configured certificate source.

Every error here is local to one source entry: the collector turns it into an
INVALID record at that entry's identity and moves on to the next entry.
"""


class CertWatchError(Exception):
    """Base class for source entry failures."""


class SourceUnreadable(CertWatchError):
    """Certificate file or keystore is missing or cannot be read."""


class UnsupportedType(CertWatchError):
    """No provider is registered for the configured source type."""


class SecretResolutionFailed(CertWatchError):
    """A scheme-prefixed secret reference could not be resolved."""


class DecodeFailed(CertWatchError):
    """Source was read but yielded no usable certificates (corrupt data, bad password)."""
