"""
Database connection and session management for the digest cache
"""

from pathlib import Path
from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import declarative_base, sessionmaker

from ..config import get_database_url
from .logging import get_logger

logger = get_logger(__name__)

# Global variables
engine = None
SessionLocal = None
Base = declarative_base()


def _sqlite_path(database_url: str) -> Path | None:
    """Return the file path of a file-backed SQLite URL"""
    if not database_url.startswith("sqlite:///") or database_url.endswith(":memory:"):
        return None
    return Path(database_url.replace("sqlite:///", "", 1))


def get_engine() -> Engine:
    """
    Get database engine instance

    Returns:
        SQLAlchemy engine instance
    """
    global engine

    if engine is None:
        database_url = get_database_url()

        db_path = _sqlite_path(database_url)
        if db_path is not None:
            db_path.parent.mkdir(parents=True, exist_ok=True)

        engine = create_engine(
            database_url,
            connect_args={"check_same_thread": False} if database_url.startswith("sqlite") else {},
            echo=False,
            pool_pre_ping=True,
        )

        if database_url.startswith("sqlite"):
            @event.listens_for(engine, "connect")
            def set_sqlite_pragma(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA journal_mode=WAL")
                cursor.execute("PRAGMA synchronous=NORMAL")
                cursor.close()

        Base.metadata.create_all(bind=engine)

    return engine


def get_session_local() -> sessionmaker:
    """
    Get session local factory

    Returns:
        Session factory instance
    """
    global SessionLocal

    if SessionLocal is None:
        SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=get_engine())

    return SessionLocal


def reset_engine() -> None:
    """
    Dispose the current engine so the next call rebuilds it from settings
    """
    global engine, SessionLocal

    if engine is not None:
        engine.dispose()
    engine = None
    SessionLocal = None


def check_database_connection() -> bool:
    """
    Check if database connection is working

    Returns:
        True if connection is successful, False otherwise
    """
    try:
        with get_engine().connect() as connection:
            connection.execute(text("SELECT 1"))
        return True
    except Exception:
        logger.exception("Database connection check failed")
        return False


def get_database_info() -> dict:
    """
    Get cache database information

    Returns:
        Dictionary with database information
    """
    database_url = get_database_url()

    info = {
        "database_url": database_url,
        "driver": get_engine().driver,
    }

    db_path = _sqlite_path(database_url)
    if db_path is not None:
        info["file_path"] = str(db_path.absolute())
        if db_path.exists():
            info["file_size"] = f"{db_path.stat().st_size / 1024:.1f} KB"
        else:
            info["file_size"] = "Not created"

    return info
