from __future__ import annotations

from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Table name used when a more specific one isn't provided.
DEFAULT_TABLE_NAME = "scs.session"

# Attribute names on the wire
TOKEN_ATTR = "token"
DATA_ATTR = "data"
TTL_ATTR = "ttl"

# TableStatus values reported by DescribeTable
STATUS_CREATING = "CREATING"
STATUS_UPDATING = "UPDATING"
STATUS_DELETING = "DELETING"
STATUS_ACTIVE = "ACTIVE"

READY_STATUSES = frozenset({STATUS_ACTIVE, STATUS_UPDATING})


def as_utc(dt: datetime) -> datetime:
    """Return `dt` as an aware UTC datetime; naive values are taken to be UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


class SessionRecord(BaseModel):
    """
    One persisted session.

    Fields
    - token: session token, the table's partition key.
    - payload: opaque session bytes; never inspected by the store.
    - expiry: instant after which the record is treated as absent.

    Notes
    - `expiry` is normalized to aware UTC. The table stores it as decimal
      epoch seconds to the microsecond, so it reads back unchanged.
    """

    model_config = ConfigDict(frozen=True)

    token: str = Field(..., description="Session token (partition key)")
    payload: bytes = Field(default=b"", description="Opaque session data")
    expiry: datetime = Field(..., description="Absolute expiry instant (UTC)")

    @field_validator("expiry")
    @classmethod
    def _normalize_expiry(cls, v: datetime) -> datetime:
        return as_utc(v)

    def is_expired(self, now: datetime) -> bool:
        """True when `now` is at or past the expiry instant."""
        return self.expiry <= as_utc(now)


__all__ = [
    "DEFAULT_TABLE_NAME",
    "TOKEN_ATTR",
    "DATA_ATTR",
    "TTL_ATTR",
    "STATUS_CREATING",
    "STATUS_UPDATING",
    "STATUS_DELETING",
    "STATUS_ACTIVE",
    "READY_STATUSES",
    "SessionRecord",
    "as_utc",
]
