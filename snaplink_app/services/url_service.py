import logging
from typing import Callable, List, Optional

from pydantic import ValidationError as PydanticValidationError

from snaplink_app.cache.strategies import CacheStrategy
from snaplink_app.config import settings
from snaplink_app.exceptions import (
    ConflictError,
    GoneError,
    InternalError,
    NotFoundError,
    ValidationError,
)
from snaplink_app.models.record import UrlRecord, as_utc, utcnow
from snaplink_app.schemas.url import RedirectResult, URLCreate, URLCreated, URLInfo, URLListItem
from snaplink_app.services import lifecycle
from snaplink_app.services.short_codes import generate_short_code, is_valid_short_code, is_valid_url
from snaplink_app.storage.strategies import UrlStore


logger = logging.getLogger(__name__)

INVALID_SHORT_CODE = (
    "Invalid short code format. Use 3-10 alphanumeric characters, hyphens, or underscores."
)


class URLService:
    """
    Creation and redirect workflows, plus the per-link lookups around them.

    The store and cache are injected (see dependencies.py), so tests can run
    the workflows against InMemoryUrlStore without a database.

    Known limitation: both "check the code is free, then create" paths are
    not atomic. A concurrent creation can still pick the same code; the
    store's own uniqueness check then rejects the second insert with
    ConflictError.
    """

    def __init__(
        self,
        store: UrlStore,
        cache: Optional[CacheStrategy] = None,
        code_generator: Callable[[int], str] = generate_short_code,
    ):
        """
        Args:
            store: URL record store
            cache: Cache strategy for redirect lookups (optional)
            code_generator: Produces a random code of the given length
        """
        self.store = store
        self.cache = cache
        self.code_generator = code_generator
        self.code_length = settings.short_code_length
        self.max_attempts = settings.max_code_generation_attempts

    async def create_short_url(self, request: URLCreate) -> URLCreated:
        """Create a new short URL

        Process:
        1. Validate the original URL
        2. Validate and reserve the custom code, or generate one
        3. Persist the record and cache it for redirects
        """
        if not request.original_url:
            raise ValidationError("Original URL is required")

        if not is_valid_url(request.original_url):
            raise ValidationError("Invalid URL format")

        if request.custom_short_code:
            short_code = request.custom_short_code
            if not is_valid_short_code(short_code):
                raise ValidationError(INVALID_SHORT_CODE)
            if self.store.exists_by_short_code(short_code):
                raise ConflictError("Short code already exists")
        else:
            short_code = self._generate_unique_code()

        record = self.store.create(
            original_url=request.original_url,
            short_code=short_code,
            owner_id=request.owner_id or None,
            expires_at=as_utc(request.expires_at),
        )
        await self._cache_record(record)

        logger.info("Created short code %s for %s", record.short_code, record.original_url)
        return URLCreated.model_validate(record)

    def _generate_unique_code(self) -> str:
        """Try up to max_attempts random codes until one is not stored yet"""
        for attempt in range(1, self.max_attempts + 1):
            short_code = self.code_generator(self.code_length)
            if not self.store.exists_by_short_code(short_code):
                return short_code
            logger.debug("Generated short code %s collided (attempt %d)", short_code, attempt)

        logger.error("No free short code after %d attempts", self.max_attempts)
        raise InternalError("Unable to generate unique short code")

    async def redirect(self, short_code: str) -> RedirectResult:
        """
        Resolve a short code and count the click.

        Only a successful redirect increments the counter; unknown, inactive
        and expired codes leave the store untouched.
        """
        if not short_code:
            raise ValidationError("Short code is required")

        record = await self._lookup(short_code)
        if record is None:
            raise NotFoundError("URL not found")

        now = utcnow()
        if not record.is_active:
            raise NotFoundError("URL is not active")
        if lifecycle.is_expired(record, now):
            raise GoneError("URL has expired")

        if self.store.increment_click_count(short_code) is None:
            # Deleted after it was cached
            await self._forget(short_code)
            raise NotFoundError("URL not found")

        return RedirectResult(
            original_url=record.original_url,
            is_active=record.is_active,
            is_expired=False,
        )

    async def get_url_info(self, short_code: str) -> URLInfo:
        """Current state of a short URL; does not count as a click"""
        if not short_code:
            raise ValidationError("Short code is required")

        record = self.store.find_by_short_code(short_code)
        if record is None:
            raise NotFoundError("URL not found")
        return self._to_info(record)

    async def list_owner_urls(self, owner_id: str) -> List[URLListItem]:
        """All short URLs stored for an owner, newest first"""
        if not owner_id:
            raise ValidationError("Owner ID is required")
        return [URLListItem.model_validate(r) for r in self.store.find_by_owner(owner_id)]

    async def activate_url(self, short_code: str) -> URLInfo:
        return await self._set_active(short_code, lifecycle.activate)

    async def deactivate_url(self, short_code: str) -> URLInfo:
        return await self._set_active(short_code, lifecycle.deactivate)

    async def _set_active(
        self,
        short_code: str,
        transition: Callable[[UrlRecord], UrlRecord],
    ) -> URLInfo:
        record = self.store.find_by_short_code(short_code)
        if record is None:
            raise NotFoundError("URL not found")

        stored = self.store.update(transition(record))
        if stored is None:
            raise NotFoundError("URL not found")

        await self._forget(short_code)
        logger.info("Short code %s is now %s", short_code, "active" if stored.is_active else "inactive")
        return self._to_info(stored)

    def _to_info(self, record: UrlRecord) -> URLInfo:
        return URLInfo(
            short_code=record.short_code,
            original_url=record.original_url,
            is_active=record.is_active,
            is_expired=lifecycle.is_expired(record),
            click_count=record.click_count,
            created_at=record.created_at,
            expires_at=record.expires_at,
        )

    # Cache-aside helpers

    @staticmethod
    def _cache_key(short_code: str) -> str:
        return f"url:{short_code}"

    async def _lookup(self, short_code: str) -> Optional[UrlRecord]:
        """
        Find a record, cache first.

        Cached snapshots carry a stale click_count; callers only use the
        routing fields (original_url, is_active, expires_at).
        """
        if self.cache:
            cached = await self.cache.get(self._cache_key(short_code))
            if cached:
                try:
                    return UrlRecord.model_validate_json(cached)
                except PydanticValidationError:
                    logger.warning("Dropping unreadable cache entry for %s", short_code)
                    await self._forget(short_code)

        record = self.store.find_by_short_code(short_code)
        if record is not None:
            await self._cache_record(record)
        return record

    async def _cache_record(self, record: UrlRecord):
        if self.cache:
            await self.cache.set(
                self._cache_key(record.short_code),
                record.model_dump_json(),
                ttl=settings.cache_ttl,
            )

    async def _forget(self, short_code: str):
        if self.cache:
            await self.cache.delete(self._cache_key(short_code))
