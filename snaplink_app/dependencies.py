"""
FastAPI dependencies for dependency injection.

The cache is a process-wide singleton; the store wraps the request's
database session, and the services are built per request on top of both.
Tests swap any of these through app.dependency_overrides.
"""

from functools import lru_cache

from fastapi import Depends
from sqlalchemy.orm import Session

from snaplink_app.cache.factory import CacheFactory, CacheBackend
from snaplink_app.cache.strategies import CacheStrategy
from snaplink_app.config import settings
from snaplink_app.database.connection import get_db
from snaplink_app.services.analytics_service import AnalyticsService
from snaplink_app.services.url_service import URLService
from snaplink_app.storage.factory import UrlStoreFactory, UrlStoreBackend
from snaplink_app.storage.strategies import UrlStore


@lru_cache()
def get_cache() -> CacheStrategy:
    """
    Get cache instance (singleton).

    Backend comes from settings; @lru_cache ensures the factory runs once.
    """
    backend = CacheBackend(settings.cache_backend)
    return CacheFactory.create(backend)


def get_url_store(db: Session = Depends(get_db)) -> UrlStore:
    """Get the URL store for this request"""
    backend = UrlStoreBackend(settings.url_store_backend)
    return UrlStoreFactory.create(backend, db=db)


def get_url_service(
    store: UrlStore = Depends(get_url_store),
    cache: CacheStrategy = Depends(get_cache),
) -> URLService:
    """Get URLService with store and cache injected"""
    return URLService(store=store, cache=cache)


def get_analytics_service(store: UrlStore = Depends(get_url_store)) -> AnalyticsService:
    return AnalyticsService(store=store)
