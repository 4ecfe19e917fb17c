"""
Database utilities and connection management.

WHAT: SQLAlchemy engine and session management for the SQL store backend
WHY: Store suppliers, products, orders and local accounts
HOW: SQLAlchemy sync engine v2, WAL mode on sqlite, contextmanager sessions
"""

from sqlalchemy import create_engine, text, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from contextlib import contextmanager
from pathlib import Path

from .config import settings
from ..utils.logger import get_logger

logger = get_logger(__name__)

# Base for models
Base = declarative_base()


def build_engine(url: str, **kwargs) -> Engine:
    """
    Create an engine, preparing sqlite files and pragmas.

    Args:
        url: SQLAlchemy database URL
        **kwargs: Extra create_engine arguments (e.g. poolclass for tests)

    Returns:
        Engine
    """
    is_sqlite = url.startswith("sqlite")
    if is_sqlite and ":memory:" not in url:
        data_dir = Path(url.replace("sqlite:///", "")).parent
        data_dir.mkdir(parents=True, exist_ok=True)

    connect_args = kwargs.pop("connect_args", {})
    if is_sqlite:
        connect_args.setdefault("check_same_thread", False)

    new_engine = create_engine(url, connect_args=connect_args, echo=settings.DEBUG, future=True, **kwargs)

    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def set_sqlite_pragma(dbapi_conn, connection_record):
            """Enable WAL mode and FK constraints."""
            cursor = dbapi_conn.cursor()
            if ":memory:" not in url:
                cursor.execute("PRAGMA journal_mode=WAL")
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine


def build_session_factory(bind: Engine) -> sessionmaker:
    """Session factory with the settings every store session uses."""
    return sessionmaker(bind=bind, expire_on_commit=False, autoflush=False, autocommit=False)


engine = build_engine(settings.DATABASE_URL)
SessionLocal = build_session_factory(engine)


@contextmanager
def get_db(session_factory: sessionmaker | None = None):
    """
    Context manager for database session.

    Usage:
        with get_db() as db:
            # use db session
            pass

    Yields:
        Session: SQLAlchemy session
    """
    session = (session_factory or SessionLocal)()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def ping_database(bind: Engine | None = None) -> dict:
    """
    Check database connectivity.

    Returns:
        Dict with status and info
    """
    target = bind or engine
    try:
        with target.connect() as conn:
            conn.execute(text("SELECT 1")).fetchone()
        return {"available": True, "url": target.url.render_as_string(hide_password=True), "error": None}
    except Exception as e:
        logger.error(f"Database ping failed: {e}")
        return {"available": False, "url": target.url.render_as_string(hide_password=True), "error": str(e)}


def init_db(bind: Engine | None = None):
    """Create all tables."""
    # Register models on Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)
    logger.info("Database initialized")


def close_db():
    """Close database connections."""
    engine.dispose()
    logger.info("Database connections closed")
