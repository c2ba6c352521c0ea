"""Engine and connection-pool management for one database."""

import logging
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

from sqlalchemy import Engine, create_engine, text
from sqlalchemy.engine import Connection
from sqlalchemy.pool import QueuePool

from ..models.migration import DatabaseConfig

logger = logging.getLogger(__name__)


class DatabaseManager:
    """
    Owns the engine (and its pool) for one database.

    The engine is created lazily by ``initialize()`` and released exactly
    once by ``close()``; both are safe to call repeatedly. Use as a context
    manager to guarantee release.
    """

    def __init__(self, config: DatabaseConfig, name: str = "database"):
        if not config:
            raise ValueError("DatabaseConfig is required")

        self.config = config
        self.name = name
        self._engine: Optional[Engine] = None
        self._closed = False

    def initialize(self) -> "DatabaseManager":
        """Create the engine and check connectivity."""
        if self._engine is not None:
            logger.warning(f"{self.name} already initialized")
            return self

        url = self.config.get_url()
        logger.info(f"Connecting to {self.name} at {url.render_as_string(hide_password=True)}")

        try:
            self._engine = create_engine(url, **self._engine_options(url.get_backend_name()))
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except Exception as e:
            logger.error(f"Failed to connect to {self.name}: {e}")
            if self._engine is not None:
                self._engine.dispose()
                self._engine = None
            raise

        self._closed = False
        logger.info(f"Connected to {self.name} successfully")
        return self

    def _engine_options(self, backend: str) -> Dict[str, Any]:
        options: Dict[str, Any] = {"echo": self.config.echo}
        if backend == "sqlite":
            # SQLite picks its own pool class
            return options

        options.update(
            poolclass=QueuePool,
            pool_size=self.config.pool_size,
            max_overflow=self.config.max_overflow,
            pool_timeout=self.config.pool_timeout,
            pool_recycle=self.config.pool_recycle,
            pool_pre_ping=True,
        )
        return options

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError(f"{self.name} not initialized. Call initialize() first.")
        return self._engine

    @property
    def dialect_name(self) -> str:
        return self.engine.dialect.name

    @contextmanager
    def connect(self) -> Iterator[Connection]:
        """Borrow a pooled connection for reads."""
        with self.engine.connect() as conn:
            yield conn

    @contextmanager
    def begin(self) -> Iterator[Connection]:
        """Borrow a connection inside a transaction; commit on success, roll back on error."""
        with self.engine.begin() as conn:
            yield conn

    def health_check(self) -> bool:
        try:
            with self.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.error(f"{self.name} health check failed: {e}")
            return False

    def close(self) -> None:
        """Dispose of the engine and its pool."""
        if self._closed or self._engine is None:
            self._closed = True
            return

        self._engine.dispose()
        self._engine = None
        self._closed = True
        logger.info(f"Closed {self.name} connection")

    def __enter__(self) -> "DatabaseManager":
        if self._engine is None:
            self.initialize()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()
