"""
Factory for creating URL store instances.
"""

import logging
from enum import Enum
from typing import Optional

from sqlalchemy.orm import Session

from .strategies import UrlStore, SQLAlchemyUrlStore, InMemoryUrlStore


logger = logging.getLogger(__name__)


class UrlStoreBackend(Enum):
    """Available URL store backends"""
    SQLALCHEMY = "sqlalchemy"
    MEMORY = "memory"


class UrlStoreFactory:
    """
    Factory for URL stores.

    SQLAlchemy stores wrap the request's Session, so a new one is built per
    request. The in-memory store is a singleton, otherwise every request
    would see an empty store.
    """

    _memory_instance: Optional[InMemoryUrlStore] = None

    @classmethod
    def create(cls, backend: UrlStoreBackend, db: Optional[Session] = None) -> UrlStore:
        """
        Create a store for the given backend.

        Args:
            backend: Type of store backend (from enum)
            db: Database session, required for the SQLAlchemy backend

        Returns:
            UrlStore instance
        """
        if backend == UrlStoreBackend.SQLALCHEMY:
            if db is None:
                raise ValueError("SQLAlchemy URL store needs a database session")
            return SQLAlchemyUrlStore(db)

        if backend == UrlStoreBackend.MEMORY:
            if cls._memory_instance is None:
                cls._memory_instance = InMemoryUrlStore()
                logger.info("In-memory URL store initialized")
            return cls._memory_instance

        raise ValueError(f"Unknown URL store backend: {backend}")

    @classmethod
    def clear_instance(cls):
        """Clear cached in-memory store (for testing)"""
        cls._memory_instance = None
