"""
Database Session Management

One lazily built engine per process. The URL comes from settings:
DATABASE_URL when present, otherwise a local SQLite file.
"""

import logging
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from rankboard.utils.config import get_settings
from .models import Base

logger = logging.getLogger(__name__)

_engine: Optional[Engine] = None
_session_factory: Optional[sessionmaker] = None


def get_database_url() -> str:
    """Resolve the connection URL, normalising postgres:// to postgresql://."""
    settings = get_settings()
    if settings.DATABASE_URL:
        return settings.DATABASE_URL.replace("postgres://", "postgresql://", 1)
    return f"sqlite:///{settings.SQLITE_PATH}"


def _enable_sqlite_foreign_keys(dbapi_conn, connection_record):
    # Assignment and rank rows cascade off their keyword
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def get_engine() -> Engine:
    """Build the engine on first use."""
    global _engine
    if _engine is not None:
        return _engine

    url = get_database_url()
    echo = get_settings().SQL_DEBUG
    if url.startswith("sqlite"):
        _engine = create_engine(url, connect_args={"check_same_thread": False}, echo=echo)
        event.listen(_engine, "connect", _enable_sqlite_foreign_keys)
    else:
        _engine = create_engine(url, pool_pre_ping=True, echo=echo)
    logger.info(f"Database engine ready ({_engine.dialect.name})")
    return _engine


def reset_engine() -> None:
    """Drop the cached engine and settings; the next call re-reads the environment."""
    global _engine, _session_factory
    if _engine is not None:
        _engine.dispose()
    _engine = None
    _session_factory = None
    get_settings.cache_clear()


@contextmanager
def get_db_context() -> Generator[Session, None, None]:
    """
    Session scope that commits on success and rolls back on any error.

    Usage:
        with get_db_context() as db:
            db.query(GlobalKeyword).all()
    """
    global _session_factory
    if _session_factory is None:
        _session_factory = sessionmaker(bind=get_engine(), autoflush=False, expire_on_commit=False)

    db = _session_factory()
    try:
        yield db
        db.commit()
    except Exception:
        db.rollback()
        raise
    finally:
        db.close()


def init_db(drop_all: bool = False) -> None:
    """Create the tables, optionally dropping existing ones first."""
    engine = get_engine()
    if drop_all:
        logger.warning("Dropping all rankboard tables")
        Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    logger.info("Rankboard tables ready")


def check_db_connection() -> bool:
    """True when a trivial query succeeds."""
    try:
        with get_engine().connect() as conn:
            conn.execute(text("SELECT 1"))
    except SQLAlchemyError as e:
        logger.error(f"Database connection failed: {e}")
        return False
    return True
