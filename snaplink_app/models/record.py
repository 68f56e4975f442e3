from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def as_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Return value as an aware UTC datetime; naive values are taken to be UTC"""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class UrlRecord(BaseModel):
    """
    Immutable snapshot of a stored short link.

    Store adapters build these from ORM rows (from_attributes=True).
    Lifecycle changes never mutate a record; they return a copy
    (see services/lifecycle.py).
    """

    id: str
    original_url: str
    short_code: str
    owner_id: Optional[str] = None
    is_active: bool = True
    expires_at: Optional[datetime] = None
    click_count: int = Field(0, ge=0)
    created_at: datetime
    updated_at: datetime

    model_config = ConfigDict(frozen=True, from_attributes=True)

    @field_validator("expires_at", "created_at", "updated_at")
    @classmethod
    def _normalize_timezone(cls, value: Optional[datetime]) -> Optional[datetime]:
        return as_utc(value)
