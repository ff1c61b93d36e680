"""
Application database setup (challenges, submissions, learner progress)
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from typing import Iterator

from sqlquest.config import settings

# check_same_thread=False is needed only for SQLite with multiple threads
_connect_args = {"check_same_thread": False} if settings.DATABASE_URL.startswith("sqlite") else {}

engine = create_engine(settings.DATABASE_URL, connect_args=_connect_args)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base = declarative_base()


def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables registered on the declarative base"""
    # Import models so they are registered on Base.metadata
    import sqlquest.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
