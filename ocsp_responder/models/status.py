"""
Domain types for revocation status and OCSP decisions.
"""
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

from cryptography import x509

INT64_MIN = -(2 ** 63)
INT64_MAX = 2 ** 63 - 1


def fits_int64(serial: int) -> bool:
    return INT64_MIN <= serial <= INT64_MAX


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC and convert aware ones to UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


class CertificateStatus(str, Enum):
    GOOD = "good"
    REVOKED = "revoked"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class RevocationRecord:
    """
    A tracked certificate.

    revoked_at=None with revoked=False is "not revoked". revoked=True with
    revoked_at=None asks the store to stamp the current time on upsert.
    """
    serial: int
    revoked_at: Optional[datetime] = None
    revoked: Optional[bool] = None

    def __post_init__(self):
        if not fits_int64(self.serial):
            raise ValueError(f"Serial number {self.serial} does not fit in 64 bits")
        revoked = self.revoked
        if revoked is None:
            revoked = self.revoked_at is not None
        object.__setattr__(self, "revoked", revoked)
        object.__setattr__(self, "revoked_at", as_utc(self.revoked_at) if revoked else None)

    @classmethod
    def not_revoked(cls, serial: int) -> "RevocationRecord":
        return cls(serial=serial, revoked=False)

    @classmethod
    def revoked_on(cls, serial: int, revoked_at: Optional[datetime] = None) -> "RevocationRecord":
        return cls(serial=serial, revoked_at=revoked_at, revoked=True)


@dataclass(frozen=True)
class RevocationState:
    """Outcome of a store lookup"""
    status: CertificateStatus
    revoked_at: Optional[datetime] = None

    @classmethod
    def unknown(cls) -> "RevocationState":
        return cls(CertificateStatus.UNKNOWN)

    @classmethod
    def good(cls) -> "RevocationState":
        return cls(CertificateStatus.GOOD)

    @classmethod
    def revoked(cls, revoked_at: datetime) -> "RevocationState":
        return cls(CertificateStatus.REVOKED, as_utc(revoked_at))


@dataclass(frozen=True)
class StatusQuery:
    """What a parsed OCSP request asks about"""
    serial: int
    hash_algorithm: str = "sha1"
    issuer_name_hash: Optional[bytes] = None
    issuer_key_hash: Optional[bytes] = None


@dataclass(frozen=True)
class StatusDecision:
    status: CertificateStatus
    revocation_time: Optional[datetime] = None
    revocation_reason: Optional[x509.ReasonFlags] = None


@dataclass(frozen=True)
class ResponseTemplate:
    """Everything the signer needs besides key material"""
    query: StatusQuery
    decision: StatusDecision
    this_update: datetime
    next_update: Optional[datetime] = None
