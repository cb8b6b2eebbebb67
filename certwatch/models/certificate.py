"""In-memory certificate records tracked by the collector."""

import enum
from dataclasses import dataclass
from datetime import datetime
from typing import NamedTuple


class Status(str, enum.Enum):
    VALID = "VALID"
    EXPIRED = "EXPIRED"
    INVALID = "INVALID"


class Identity(NamedTuple):
    """Merge key of a tracked certificate: configured source name plus alias."""

    name: str
    alias: str

    def __str__(self) -> str:
        return f"{self.name}:{self.alias}"


@dataclass(frozen=True)
class CertificateRecord:
    """One certificate (or failure) observed at an identity.

    Records are immutable; a changed certificate replaces the stored record
    wholesale. Equality covers every field and drives change detection.
    """

    name: str
    alias: str
    path: str
    file_name: str
    type: str
    subject: str
    not_before: datetime | None
    not_after: datetime | None
    status: Status

    @property
    def identity(self) -> Identity:
        return Identity(self.name, self.alias)

    @property
    def is_valid(self) -> bool:
        return self.status is Status.VALID
