"""
Lifecycle rules for URL records.

Pure functions, no I/O. Every "change" returns a new UrlRecord and leaves the
input untouched.
"""

from datetime import datetime
from typing import Optional

from snaplink_app.models.record import UrlRecord, as_utc, utcnow


def _resolve_now(now: Optional[datetime]) -> datetime:
    return utcnow() if now is None else as_utc(now)


def is_expired(record: UrlRecord, now: Optional[datetime] = None) -> bool:
    # The exact expiry instant already counts as expired
    if record.expires_at is None:
        return False
    return _resolve_now(now) >= record.expires_at


def can_be_accessed(record: UrlRecord, now: Optional[datetime] = None) -> bool:
    return record.is_active and not is_expired(record, now)


def increment_click_count(record: UrlRecord, now: Optional[datetime] = None) -> UrlRecord:
    return record.model_copy(
        update={"click_count": record.click_count + 1, "updated_at": _resolve_now(now)}
    )


def activate(record: UrlRecord, now: Optional[datetime] = None) -> UrlRecord:
    return record.model_copy(update={"is_active": True, "updated_at": _resolve_now(now)})


def deactivate(record: UrlRecord, now: Optional[datetime] = None) -> UrlRecord:
    return record.model_copy(update={"is_active": False, "updated_at": _resolve_now(now)})
