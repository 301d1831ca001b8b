"""
Database resource: owns the SQLAlchemy engine and session factory.

Created once per process (FastAPI lifespan) and passed to the stores; there
is no module-level engine. SQLite is used when no server URL is configured.
"""

from __future__ import annotations

from contextlib import contextmanager
from typing import Iterator

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from backend_quickpay.database.models import Base
from backend_quickpay.quickpay_logging import get_logger

logger = get_logger(__name__)


def _redact(url: str) -> str:
    """Drop credentials and query string for logging."""
    return url.split("?")[0].split("@")[-1].split("//")[-1]


class Database:
    def __init__(self, url: str) -> None:
        self.url = url
        self._engine: Engine | None = None
        self._session_factory: sessionmaker | None = None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not connected; call connect() first")
        return self._engine

    @property
    def connected(self) -> bool:
        return self._engine is not None

    def connect(self) -> "Database":
        """Create the engine (idempotent). pool_pre_ping replaces dead connections."""
        if self._engine is not None:
            return self
        connect_args = {}
        if self.url.startswith("sqlite"):
            connect_args["check_same_thread"] = False
        self._engine = create_engine(self.url, connect_args=connect_args, pool_pre_ping=True)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self._engine)
        logger.info("database_connected", url=_redact(self.url))
        return self

    def init_schema(self) -> None:
        """Create tables if they do not exist. Safe to call on every startup."""
        try:
            Base.metadata.create_all(bind=self.engine)
            logger.info("database_schema_ready", url=_redact(self.url))
        except Exception as e:
            logger.exception("database_init_schema_failed", error=str(e))
            raise

    def close(self) -> None:
        if self._engine is None:
            return
        self._engine.dispose()
        self._engine = None
        self._session_factory = None
        logger.info("database_closed", url=_redact(self.url))

    @contextmanager
    def session(self) -> Iterator[Session]:
        """Context manager for a single session. Commits on success, rolls back on error."""
        if self._session_factory is None:
            raise RuntimeError("Database is not connected; call connect() first")
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()
