"""
URL record store module.

Implements the Strategy Pattern so the services never depend on a specific
persistence engine.
"""

from .strategies import UrlStore, SQLAlchemyUrlStore, InMemoryUrlStore
from .factory import UrlStoreFactory, UrlStoreBackend
from .models import DailyClicks

__all__ = [
    "UrlStore",
    "SQLAlchemyUrlStore",
    "InMemoryUrlStore",
    "UrlStoreFactory",
    "UrlStoreBackend",
    "DailyClicks",
]
