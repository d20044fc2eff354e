"""
Database configuration and initialization for the Test Case Manager.

Uses SQLite as the default storage backend with SQLAlchemy ORM. The URL
comes from settings so deployments can point at another file or server.
"""

from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, DeclarativeBase

from .config import get_settings

settings = get_settings()

DATABASE_URL = settings.database_url


def _engine_kwargs(url: str) -> dict:
    if url.startswith("sqlite"):
        # Required for SQLite with FastAPI's threadpool
        return {"connect_args": {"check_same_thread": False}}
    return {"pool_pre_ping": True}


engine = create_engine(
    DATABASE_URL,
    echo=settings.sql_echo,
    **_engine_kwargs(DATABASE_URL),
)


def enable_sqlite_foreign_keys(target_engine) -> None:
    """Turn on foreign key enforcement for every new SQLite connection."""
    if target_engine.dialect.name != "sqlite":
        return

    @event.listens_for(target_engine, "connect")
    def set_sqlite_pragma(dbapi_connection, connection_record):
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()


enable_sqlite_foreign_keys(engine)

# Session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


class Base(DeclarativeBase):
    """Base class for all SQLAlchemy models."""
    pass


def init_db():
    """
    Initialize the database by creating all tables.

    This function should be called at application startup to ensure
    the database schema exists. It will create tables if they don't exist.
    """
    # Import models so they register with Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=engine)


def get_db():
    """
    Dependency function for FastAPI to get database sessions.

    Yields a database session and ensures it's closed after use.

    Usage:
        @app.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
