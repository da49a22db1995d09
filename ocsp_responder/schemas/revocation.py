from pydantic import BaseModel, Field, field_validator
from typing import Optional
from datetime import datetime, timezone

from ocsp_responder.models.status import INT64_MAX, INT64_MIN, RevocationRecord

# Older synchronisation clients send the zero time for "not revoked"
ZERO_TIME = datetime(1, 1, 1, tzinfo=timezone.utc)


class RevocationRecordIn(BaseModel):
    """Record supplied to /update and /init"""
    serial: int = Field(..., ge=INT64_MIN, le=INT64_MAX)
    revoked_at: Optional[datetime] = Field(
        default=None,
        description="Revocation time. Null or 0001-01-01T00:00:00Z means not revoked.",
    )
    revoked: Optional[bool] = Field(
        default=None,
        description="Set true without revoked_at to have the server stamp the current time.",
    )

    @field_validator("revoked_at")
    @classmethod
    def zero_time_is_not_revoked(cls, v: Optional[datetime]) -> Optional[datetime]:
        if v is None:
            return None
        if v.tzinfo is None:
            v = v.replace(tzinfo=timezone.utc)
        try:
            v = v.astimezone(timezone.utc)
        except OverflowError:
            raise ValueError("revoked_at is outside the representable range in UTC") from None
        if v == ZERO_TIME:
            return None
        return v

    def to_record(self) -> RevocationRecord:
        return RevocationRecord(serial=self.serial, revoked_at=self.revoked_at, revoked=self.revoked)

    class Config:
        json_schema_extra = {
            "example": {"serial": 3, "revoked_at": "2019-10-12T07:20:50Z"}
        }


class RevocationRecordResponse(BaseModel):
    serial: int
    revoked: bool
    revoked_at: Optional[datetime] = None

    @classmethod
    def from_record(cls, record: RevocationRecord) -> "RevocationRecordResponse":
        return cls(serial=record.serial, revoked=record.revoked, revoked_at=record.revoked_at)


class BulkReplaceResponse(BaseModel):
    count: int
