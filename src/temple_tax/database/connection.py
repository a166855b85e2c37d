"""
Database Connection Module

Provides sync SQLAlchemy engine and session management.

Usage:
    # Scripts and services
    with get_db_session() as session:
        result = session.execute(query)

    # FastAPI routes
    def endpoint(session: Session = Depends(get_session)):
        ...
"""

from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker
from sqlalchemy.pool import NullPool, QueuePool

from temple_tax.config.database import DatabaseSettings, get_database_settings
from temple_tax.database.models import Base
from temple_tax.services.logging_config import get_logger

logger = get_logger(__name__)

# Global sync engine and session factory (lazy initialization)
_sync_engine: Optional[Engine] = None
_sync_session_factory: Optional[sessionmaker] = None


def configure_sqlite_transactions(engine: Engine) -> None:
    """
    Let SQLAlchemy, not pysqlite, decide when transactions begin.

    pysqlite defers BEGIN until the first DML statement, which breaks
    SAVEPOINT handling and lets a SELECT run outside the transaction.
    """

    @event.listens_for(engine, "connect")
    def _on_connect(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine, "begin")
    def _on_begin(conn):
        conn.exec_driver_sql("BEGIN")


def get_sync_engine(settings: Optional[DatabaseSettings] = None) -> Engine:
    """
    Get or create the SQLAlchemy engine.

    Args:
        settings: Database settings. If None, loads from environment.

    Returns:
        Engine: Synchronous SQLAlchemy engine.
    """
    global _sync_engine

    if _sync_engine is None:
        settings = settings or get_database_settings()

        logger.info(
            "Creating database engine",
            extra={"extra_data": {
                "driver": settings.driver,
                "database": settings.name if settings.is_postgres else str(settings.sqlite_path),
            }},
        )

        # Pool configuration differs for SQLite vs PostgreSQL
        if settings.is_sqlite:
            pool_class = NullPool
            pool_kwargs = {}
        else:
            pool_class = QueuePool
            pool_kwargs = {
                "pool_size": settings.pool_size,
                "max_overflow": settings.max_overflow,
                "pool_timeout": settings.pool_timeout,
                "pool_recycle": settings.pool_recycle,
                "pool_pre_ping": settings.pool_pre_ping,
            }

        _sync_engine = create_engine(
            settings.sync_url,
            echo=settings.echo_sql,
            poolclass=pool_class,
            connect_args=settings.get_connect_args(),
            **pool_kwargs,
        )
        if settings.is_sqlite:
            configure_sqlite_transactions(_sync_engine)

    return _sync_engine


def get_sync_session_factory(
    settings: Optional[DatabaseSettings] = None
) -> sessionmaker:
    """
    Get or create the session factory.

    Args:
        settings: Optional database settings.

    Returns:
        sessionmaker: Factory for creating sessions.
    """
    global _sync_session_factory

    if _sync_session_factory is None:
        engine = get_sync_engine(settings)
        _sync_session_factory = sessionmaker(
            bind=engine,
            expire_on_commit=False,
            autoflush=False,
        )

    return _sync_session_factory


@contextmanager
def get_db_session(
    settings: Optional[DatabaseSettings] = None
) -> Generator[Session, None, None]:
    """
    Get a database session as a context manager.

    Yields:
        Session: SQLAlchemy session that auto-commits on success, rollbacks on error.
    """
    session_factory = get_sync_session_factory(settings)
    session = session_factory()

    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


def init_database(engine: Optional[Engine] = None) -> None:
    """Create all tables that do not exist yet."""
    engine = engine or get_sync_engine()
    Base.metadata.create_all(engine)
    logger.info("Database schema ensured")


def check_database_connection(engine: Optional[Engine] = None) -> bool:
    """Run a trivial query; False when the database cannot be reached."""
    engine = engine or get_sync_engine()
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


def close_sync_engine() -> None:
    """
    Close the database engine and cleanup connections.

    Should be called during application shutdown.
    """
    global _sync_engine, _sync_session_factory

    if _sync_engine is not None:
        logger.info("Closing database engine")
        _sync_engine.dispose()
        _sync_engine = None
        _sync_session_factory = None


def get_session() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    with get_db_session() as session:
        yield session
