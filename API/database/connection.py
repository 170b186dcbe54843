"""
Database connection management.

A DatabaseConnection owns one engine and its session factory. The web app
uses the module-level `db`; batch jobs open their own connection scoped to
the run:

    with DatabaseConnection(url) as conn:
        with conn.get_session() as session:
            ...
"""

from contextlib import contextmanager
from typing import Generator, Optional

from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from core.config import settings
from .base import Base


class DatabaseConnection:
    """Engine + session factory for one database URL."""

    def __init__(self, database_url: Optional[str] = None, echo: Optional[bool] = None):
        self.database_url = database_url or settings.database_url
        self._echo = settings.debug if echo is None else echo
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            self._engine = self._create_engine()
            self._session_factory = sessionmaker(
                bind=self._engine,
                autoflush=False,
                expire_on_commit=False,
            )
        return self._engine

    def _create_engine(self) -> Engine:
        if self.database_url.startswith("sqlite"):
            engine = create_engine(
                self.database_url,
                echo=self._echo,
                connect_args={"check_same_thread": False, "timeout": 30},
            )

            @event.listens_for(engine, "connect")
            def _sqlite_pragmas(dbapi_connection, connection_record):
                cursor = dbapi_connection.cursor()
                cursor.execute("PRAGMA foreign_keys=ON")
                cursor.close()

            return engine

        return create_engine(
            self.database_url,
            echo=self._echo,
            pool_pre_ping=True,
            pool_size=5,
            max_overflow=10,
        )

    @property
    def session_factory(self) -> sessionmaker:
        self.engine
        return self._session_factory

    @contextmanager
    def get_session(self) -> Generator[Session, None, None]:
        """Session that commits on success and rolls back on error."""
        session = self.session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def get_session_direct(self) -> Session:
        """Plain session; caller must close it."""
        return self.session_factory()

    def create_all(self):
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self):
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self):
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None

    def __enter__(self) -> "DatabaseConnection":
        return self

    def __exit__(self, exc_type, exc, tb):
        self.dispose()
        return False


# Global instance used by the web app
db = DatabaseConnection()


def get_db() -> Generator[Session, None, None]:
    """FastAPI dependency: one session per request."""
    session = db.get_session_direct()
    try:
        yield session
    finally:
        session.close()


def init_db():
    """Create missing tables (migrations are the source of truth in production)."""
    from . import models  # noqa: F401
    db.create_all()
    logger.info("Database tables ensured")


def reset_db():
    """Drop and recreate all tables. Development only."""
    from . import models  # noqa: F401
    if settings.is_production:
        raise RuntimeError("reset_db is disabled in production")
    db.drop_all()
    db.create_all()
    logger.warning("Database reset")
