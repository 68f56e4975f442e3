import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, Integer, String, Text, DateTime, Boolean
from snaplink_app.database.connection import Base


def _new_id() -> str:
    return str(uuid.uuid4())


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class URL(Base):
    """
    URL row: the single table behind the record store.

    Timestamps are written from Python in UTC so that comparisons against
    expires_at behave the same on SQLite (which drops tzinfo) and PostgreSQL.
    """
    __tablename__ = "urls"

    id = Column(String(36), primary_key=True, default=_new_id)
    original_url = Column(Text, nullable=False)
    # unique=True makes the engine reject duplicate codes even when two
    # creations race past the existence check
    short_code = Column(String(10), unique=True, nullable=False, index=True)
    owner_id = Column(String(255), nullable=True, index=True)
    is_active = Column(Boolean, nullable=False, default=True)
    expires_at = Column(DateTime(timezone=True), nullable=True)
    click_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, index=True)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow, onupdate=_utcnow)
