"""
Test configuration and fixtures for the SnapLink API.
This centralizes all test setup, making individual tests clean.
"""

import os

# Must be set before the app (and its settings) are imported
os.environ.setdefault("DATABASE_URL", "sqlite:///./test.db")
os.environ.setdefault("CACHE_BACKEND", "memory")
os.environ.setdefault("LOG_LEVEL", "WARNING")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from main import app
from snaplink_app.cache.strategies import InMemoryCache
from snaplink_app.database.connection import Base, get_db
from snaplink_app.dependencies import get_cache
from snaplink_app.storage.strategies import InMemoryUrlStore, SQLAlchemyUrlStore

# Test database configuration
SQLALCHEMY_DATABASE_URL = os.environ["DATABASE_URL"]
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    Base.metadata.create_all(bind=engine)

    db = TestingSessionLocal()

    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture(scope="function")
def sql_store(db_session):
    return SQLAlchemyUrlStore(db_session)


@pytest.fixture(scope="function")
def memory_store():
    return InMemoryUrlStore()


@pytest.fixture(params=["sqlalchemy", "memory"])
def store(request):
    """Every store adapter, so contract tests run against both"""
    if request.param == "sqlalchemy":
        return request.getfixturevalue("sql_store")
    return request.getfixturevalue("memory_store")


@pytest.fixture(scope="function")
def cache():
    return InMemoryCache()


@pytest.fixture(scope="function")
def client(db_session, cache):
    """
    Create a test client with database and cache dependencies overridden.
    This is the main fixture that tests will use.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_cache] = lambda: cache

    with TestClient(app) as test_client:
        yield test_client

    app.dependency_overrides.clear()
