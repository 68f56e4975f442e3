"""
URL record store strategies using Strategy Pattern.

Allows switching between storage engines behind one contract:
- SQLAlchemy: any relational database SQLAlchemy supports (SQLite by default)
- In-memory: tests and throwaway local runs
"""

import logging
import threading
import uuid
from abc import ABC, abstractmethod
from collections import defaultdict
from datetime import datetime
from typing import Dict, List, Optional

from sqlalchemy import func, or_, update as sql_update
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from snaplink_app.exceptions import ConflictError
from snaplink_app.models.record import UrlRecord, as_utc, utcnow
from snaplink_app.models.url import URL
from snaplink_app.services import lifecycle
from snaplink_app.storage.models import DailyClicks


logger = logging.getLogger(__name__)

SHORT_CODE_TAKEN = "Short code already exists"


class UrlStore(ABC):
    """
    Abstract base class for URL record stores.

    Every adapter must enforce short code uniqueness on its own: create()
    raises ConflictError instead of overwriting, whatever the caller checked
    beforehand.
    """

    # CRUD

    @abstractmethod
    def create(
        self,
        original_url: str,
        short_code: str,
        owner_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        is_active: bool = True,
        click_count: int = 0,
    ) -> UrlRecord:
        """
        Persist a new record. The store assigns id, created_at and updated_at.

        Raises:
            ConflictError: If short_code is already stored
        """
        pass

    @abstractmethod
    def find_by_id(self, record_id: str) -> Optional[UrlRecord]:
        pass

    @abstractmethod
    def find_by_short_code(self, short_code: str) -> Optional[UrlRecord]:
        """Case-sensitive lookup"""
        pass

    @abstractmethod
    def find_by_owner(self, owner_id: str) -> List[UrlRecord]:
        """Records stored for an owner, newest first"""
        pass

    @abstractmethod
    def exists_by_short_code(self, short_code: str) -> bool:
        pass

    @abstractmethod
    def update(self, record: UrlRecord) -> Optional[UrlRecord]:
        """
        Overwrite the stored record with the same id.

        Returns:
            The stored record, or None if no record has that id
        """
        pass

    @abstractmethod
    def delete(self, record_id: str) -> bool:
        """Returns True if a record was deleted"""
        pass

    @abstractmethod
    def increment_click_count(self, short_code: str) -> Optional[UrlRecord]:
        """
        Add exactly one click to a record.

        Returns:
            The updated record, or None if the code is not stored
        """
        pass

    # Queries

    @abstractmethod
    def find_active(self, now: datetime) -> List[UrlRecord]:
        """Records that can be accessed at `now`"""
        pass

    @abstractmethod
    def find_expired(self, now: datetime) -> List[UrlRecord]:
        pass

    @abstractmethod
    def find_created_between(self, start: datetime, end: datetime) -> List[UrlRecord]:
        pass

    # Aggregates

    @abstractmethod
    def count_urls(self) -> int:
        pass

    @abstractmethod
    def total_clicks(self) -> int:
        """Sum of click counts over all records"""
        pass

    @abstractmethod
    def count_accessible(self, now: datetime) -> int:
        pass

    @abstractmethod
    def count_expired(self, now: datetime) -> int:
        pass

    @abstractmethod
    def top_urls(self, limit: int = 10) -> List[UrlRecord]:
        """Records ordered by click count, highest first"""
        pass

    @abstractmethod
    def clicks_by_date(self, start: datetime, end: datetime) -> List[DailyClicks]:
        """Click counts of records created in [start, end], bucketed by creation day"""
        pass


class SQLAlchemyUrlStore(UrlStore):
    """
    SQLAlchemy implementation, one instance per request Session.

    Uniqueness comes from the unique index on urls.short_code and click
    increments are a single UPDATE ... SET click_count = click_count + 1,
    so concurrent redirects do not lose clicks.
    """

    def __init__(self, db: Session):
        self.db = db

    def _to_record(self, row: Optional[URL]) -> Optional[UrlRecord]:
        return UrlRecord.model_validate(row) if row is not None else None

    def _to_records(self, rows: List[URL]) -> List[UrlRecord]:
        return [UrlRecord.model_validate(row) for row in rows]

    def create(
        self,
        original_url: str,
        short_code: str,
        owner_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        is_active: bool = True,
        click_count: int = 0,
    ) -> UrlRecord:
        now = utcnow()
        row = URL(
            original_url=original_url,
            short_code=short_code,
            owner_id=owner_id,
            is_active=is_active,
            expires_at=as_utc(expires_at),
            click_count=click_count,
            created_at=now,
            updated_at=now,
        )
        self.db.add(row)
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            logger.info("Rejected duplicate short code %s", short_code)
            raise ConflictError(SHORT_CODE_TAKEN)
        self.db.refresh(row)
        return self._to_record(row)

    def find_by_id(self, record_id: str) -> Optional[UrlRecord]:
        return self._to_record(self.db.get(URL, record_id))

    def find_by_short_code(self, short_code: str) -> Optional[UrlRecord]:
        row = self.db.query(URL).filter(URL.short_code == short_code).first()
        return self._to_record(row)

    def find_by_owner(self, owner_id: str) -> List[UrlRecord]:
        rows = (
            self.db.query(URL)
            .filter(URL.owner_id == owner_id)
            .order_by(URL.created_at.desc())
            .all()
        )
        return self._to_records(rows)

    def exists_by_short_code(self, short_code: str) -> bool:
        return self.db.query(URL.id).filter(URL.short_code == short_code).first() is not None

    def update(self, record: UrlRecord) -> Optional[UrlRecord]:
        row = self.db.get(URL, record.id)
        if row is None:
            return None

        row.original_url = record.original_url
        row.short_code = record.short_code
        row.owner_id = record.owner_id
        row.is_active = record.is_active
        row.expires_at = record.expires_at
        row.click_count = record.click_count
        row.updated_at = record.updated_at
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(SHORT_CODE_TAKEN)
        self.db.refresh(row)
        return self._to_record(row)

    def delete(self, record_id: str) -> bool:
        row = self.db.get(URL, record_id)
        if row is None:
            return False
        self.db.delete(row)
        self.db.commit()
        return True

    def increment_click_count(self, short_code: str) -> Optional[UrlRecord]:
        result = self.db.execute(
            sql_update(URL)
            .where(URL.short_code == short_code)
            .values(click_count=URL.click_count + 1, updated_at=utcnow())
        )
        self.db.commit()
        if result.rowcount == 0:
            return None
        return self.find_by_short_code(short_code)

    def find_active(self, now: datetime) -> List[UrlRecord]:
        rows = (
            self.db.query(URL)
            .filter(URL.is_active.is_(True))
            .filter(or_(URL.expires_at.is_(None), URL.expires_at > now))
            .order_by(URL.created_at.desc())
            .all()
        )
        return self._to_records(rows)

    def find_expired(self, now: datetime) -> List[UrlRecord]:
        rows = (
            self.db.query(URL)
            .filter(URL.expires_at.isnot(None), URL.expires_at <= now)
            .order_by(URL.created_at.desc())
            .all()
        )
        return self._to_records(rows)

    def find_created_between(self, start: datetime, end: datetime) -> List[UrlRecord]:
        rows = (
            self.db.query(URL)
            .filter(URL.created_at >= start, URL.created_at <= end)
            .order_by(URL.created_at.desc())
            .all()
        )
        return self._to_records(rows)

    def count_urls(self) -> int:
        return self.db.query(func.count(URL.id)).scalar() or 0

    def total_clicks(self) -> int:
        return int(self.db.query(func.coalesce(func.sum(URL.click_count), 0)).scalar() or 0)

    def count_accessible(self, now: datetime) -> int:
        return (
            self.db.query(func.count(URL.id))
            .filter(URL.is_active.is_(True))
            .filter(or_(URL.expires_at.is_(None), URL.expires_at > now))
            .scalar()
            or 0
        )

    def count_expired(self, now: datetime) -> int:
        return (
            self.db.query(func.count(URL.id))
            .filter(URL.expires_at.isnot(None), URL.expires_at <= now)
            .scalar()
            or 0
        )

    def top_urls(self, limit: int = 10) -> List[UrlRecord]:
        rows = self.db.query(URL).order_by(URL.click_count.desc()).limit(limit).all()
        return self._to_records(rows)

    def clicks_by_date(self, start: datetime, end: datetime) -> List[DailyClicks]:
        day = func.date(URL.created_at)
        rows = (
            self.db.query(day.label("day"), func.coalesce(func.sum(URL.click_count), 0))
            .filter(URL.created_at >= start, URL.created_at <= end)
            .group_by(day)
            .order_by(day)
            .all()
        )
        # func.date returns a string on SQLite and a date on PostgreSQL
        return [DailyClicks(date=str(row[0]), clicks=int(row[1])) for row in rows]


class InMemoryUrlStore(UrlStore):
    """
    In-memory implementation using Python dicts.

    Pros:
    - No database needed
    - Good for unit tests and demos

    Cons:
    - Lost on restart
    - Not shared between processes
    """

    def __init__(self):
        self._records: Dict[str, UrlRecord] = {}
        self._ids_by_code: Dict[str, str] = {}
        self._lock = threading.Lock()

    def create(
        self,
        original_url: str,
        short_code: str,
        owner_id: Optional[str] = None,
        expires_at: Optional[datetime] = None,
        is_active: bool = True,
        click_count: int = 0,
    ) -> UrlRecord:
        now = utcnow()
        with self._lock:
            if short_code in self._ids_by_code:
                raise ConflictError(SHORT_CODE_TAKEN)
            record = UrlRecord(
                id=str(uuid.uuid4()),
                original_url=original_url,
                short_code=short_code,
                owner_id=owner_id,
                is_active=is_active,
                expires_at=expires_at,
                click_count=click_count,
                created_at=now,
                updated_at=now,
            )
            self._records[record.id] = record
            self._ids_by_code[short_code] = record.id
        return record

    def find_by_id(self, record_id: str) -> Optional[UrlRecord]:
        return self._records.get(record_id)

    def find_by_short_code(self, short_code: str) -> Optional[UrlRecord]:
        record_id = self._ids_by_code.get(short_code)
        return self._records.get(record_id) if record_id else None

    def find_by_owner(self, owner_id: str) -> List[UrlRecord]:
        records = [r for r in self._records.values() if r.owner_id == owner_id]
        return sorted(records, key=lambda r: r.created_at, reverse=True)

    def exists_by_short_code(self, short_code: str) -> bool:
        return short_code in self._ids_by_code

    def update(self, record: UrlRecord) -> Optional[UrlRecord]:
        with self._lock:
            current = self._records.get(record.id)
            if current is None:
                return None
            if record.short_code != current.short_code:
                if record.short_code in self._ids_by_code:
                    raise ConflictError(SHORT_CODE_TAKEN)
                del self._ids_by_code[current.short_code]
                self._ids_by_code[record.short_code] = record.id
            self._records[record.id] = record
        return record

    def delete(self, record_id: str) -> bool:
        with self._lock:
            record = self._records.pop(record_id, None)
            if record is None:
                return False
            del self._ids_by_code[record.short_code]
        return True

    def increment_click_count(self, short_code: str) -> Optional[UrlRecord]:
        with self._lock:
            record_id = self._ids_by_code.get(short_code)
            if record_id is None:
                return None
            updated = lifecycle.increment_click_count(self._records[record_id])
            self._records[record_id] = updated
        return updated

    def find_active(self, now: datetime) -> List[UrlRecord]:
        return [r for r in self._newest_first() if lifecycle.can_be_accessed(r, now)]

    def find_expired(self, now: datetime) -> List[UrlRecord]:
        return [r for r in self._newest_first() if lifecycle.is_expired(r, now)]

    def find_created_between(self, start: datetime, end: datetime) -> List[UrlRecord]:
        start, end = as_utc(start), as_utc(end)
        return [r for r in self._newest_first() if start <= r.created_at <= end]

    def count_urls(self) -> int:
        return len(self._records)

    def total_clicks(self) -> int:
        return sum(r.click_count for r in self._records.values())

    def count_accessible(self, now: datetime) -> int:
        return len(self.find_active(now))

    def count_expired(self, now: datetime) -> int:
        return len(self.find_expired(now))

    def top_urls(self, limit: int = 10) -> List[UrlRecord]:
        # sorted() is stable, so ties keep insertion order
        return sorted(self._records.values(), key=lambda r: r.click_count, reverse=True)[:limit]

    def clicks_by_date(self, start: datetime, end: datetime) -> List[DailyClicks]:
        buckets: Dict[str, int] = defaultdict(int)
        for record in self.find_created_between(start, end):
            buckets[record.created_at.date().isoformat()] += record.click_count
        return [DailyClicks(date=day, clicks=buckets[day]) for day in sorted(buckets)]

    def _newest_first(self) -> List[UrlRecord]:
        return sorted(self._records.values(), key=lambda r: r.created_at, reverse=True)
