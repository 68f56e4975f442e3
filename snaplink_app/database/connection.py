"""
Database connection setup.

One engine per process; each request gets its own Session through get_db().
"""

from sqlalchemy import create_engine
from sqlalchemy.orm import declarative_base, sessionmaker

from snaplink_app.config import settings


# SQLite needs check_same_thread disabled because FastAPI runs sync
# dependencies in a thread pool
connect_args = {"check_same_thread": False} if settings.database_url.startswith("sqlite") else {}

engine = create_engine(settings.database_url, connect_args=connect_args)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


def get_db():
    """Yield a database session and always close it afterwards"""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
