"""
Database engine, session management, and initialization.
"""

import logging
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker, Session
from contextlib import contextmanager
from typing import Callable, Generator, Optional

from config.settings import settings
from db.models import Base

logger = logging.getLogger(__name__)

engine = create_engine(
    settings.DATABASE_URL,
    connect_args={"check_same_thread": False} if "sqlite" in settings.DATABASE_URL else {},
    echo=settings.DEBUG,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None) -> None:
    """Create all tables."""
    Base.metadata.create_all(bind=bind or engine)
    logger.info("✅ Database initialized.")


@contextmanager
def get_db(session_factory: Optional[Callable[[], Session]] = None) -> Generator[Session, None, None]:
    """Context manager for database sessions."""
    db = (session_factory or SessionLocal)()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def get_db_dependency() -> Generator[Session, None, None]:
    """FastAPI dependency injector."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
