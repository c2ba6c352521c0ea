"""Migration execution and configuration models."""

import os
import uuid
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional

from sqlalchemy.engine import URL, make_url

from ..exceptions import ConfigurationError
from ..logger import DEFAULT_REDACT_KEYS
from .record import FailedOrder, ValidationFailure


DEFAULT_MSSQL_ODBC_DRIVER = "ODBC Driver 18 for SQL Server"


class MigrationStatus(str, Enum):
    """Status of a migration run."""
    PENDING = "pending"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class DatabaseConfig:
    """Connection settings for one database."""
    url: Optional[str] = None
    drivername: str = ""
    host: Optional[str] = None
    port: Optional[int] = None
    database: Optional[str] = None
    username: Optional[str] = None
    password: Optional[str] = None
    query: Dict[str, str] = field(default_factory=dict)

    # Pool options
    pool_size: int = 5
    max_overflow: int = 10
    pool_timeout: int = 30
    pool_recycle: int = 3600
    echo: bool = False

    def get_url(self) -> URL:
        """Build the SQLAlchemy URL, preferring an explicit ``url``."""
        if self.url:
            return make_url(self.url)
        if not self.drivername:
            raise ConfigurationError("Database drivername or url is required")
        return URL.create(
            drivername=self.drivername,
            username=self.username,
            password=self.password,
            host=self.host,
            port=self.port,
            database=self.database,
            query=self.query,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation (password hidden)."""
        try:
            url = self.get_url().render_as_string(hide_password=True)
        except ConfigurationError:
            url = None
        return {
            "url": url,
            "pool_size": self.pool_size,
            "max_overflow": self.max_overflow,
            "pool_timeout": self.pool_timeout,
            "pool_recycle": self.pool_recycle,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "DatabaseConfig":
        """Create from dictionary representation."""
        port = data.get("port")
        return cls(
            url=data.get("url"),
            drivername=data.get("drivername", ""),
            host=data.get("host"),
            port=int(port) if port else None,
            database=data.get("database"),
            username=data.get("username") or data.get("user"),
            password=data.get("password"),
            query=data.get("query", {}),
            pool_size=data.get("pool_size", 5),
            max_overflow=data.get("max_overflow", 10),
            pool_timeout=data.get("pool_timeout", 30),
            pool_recycle=data.get("pool_recycle", 3600),
            echo=data.get("echo", False),
        )

    @classmethod
    def mssql_from_env(cls, env: Mapping[str, str]) -> "DatabaseConfig":
        """Source store settings from ``SOURCE_DATABASE_URL`` or ``MSSQL_*``."""
        if env.get("SOURCE_DATABASE_URL"):
            return cls(url=env["SOURCE_DATABASE_URL"])
        return cls(
            drivername="mssql+pyodbc",
            host=env.get("MSSQL_SERVER"),
            port=_int_or_none(env.get("MSSQL_PORT"), "MSSQL_PORT"),
            database=env.get("MSSQL_DATABASE"),
            username=env.get("MSSQL_USER"),
            password=env.get("MSSQL_PASSWORD"),
            query={
                "driver": env.get("MSSQL_DRIVER", DEFAULT_MSSQL_ODBC_DRIVER),
                "Encrypt": "yes",
                "TrustServerCertificate": "yes",
            },
        )

    @classmethod
    def mysql_from_env(cls, env: Mapping[str, str]) -> "DatabaseConfig":
        """Destination store settings from ``DEST_DATABASE_URL`` or ``MYSQL_*``."""
        if env.get("DEST_DATABASE_URL"):
            return cls(url=env["DEST_DATABASE_URL"], pool_size=10, max_overflow=0)
        return cls(
            drivername="mysql+pymysql",
            host=env.get("MYSQL_HOST"),
            port=_int_or_none(env.get("MYSQL_PORT"), "MYSQL_PORT"),
            database=env.get("MYSQL_DATABASE"),
            username=env.get("MYSQL_USER"),
            password=env.get("MYSQL_PASSWORD"),
            query={"charset": "utf8mb4"},
            pool_size=10,
            max_overflow=0,
        )


@dataclass
class MigrationStats:
    """Running counters for one migration run."""
    total_processed: int = 0
    success_count: int = 0
    failure_count: int = 0
    validation_failure_count: int = 0

    def to_dict(self) -> Dict[str, int]:
        """Convert to dictionary representation."""
        return {
            "total_processed": self.total_processed,
            "success_count": self.success_count,
            "failure_count": self.failure_count,
            "validation_failure_count": self.validation_failure_count,
        }


@dataclass
class MigrationRun:
    """A complete migration run."""
    id: str = field(default_factory=lambda: str(uuid.uuid4()))
    name: str = ""
    status: MigrationStatus = MigrationStatus.PENDING
    store_id: str = ""
    batch_size: int = 100

    # Timing
    created_at: datetime = field(default_factory=datetime.utcnow)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    # Progress
    stats: MigrationStats = field(default_factory=MigrationStats)
    pages_fetched: int = 0
    last_offset: int = 0

    # Details for reporting
    failed_orders: List[FailedOrder] = field(default_factory=list)
    validation_failures: List[ValidationFailure] = field(default_factory=list)

    report_path: Optional[str] = None
    error: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "id": self.id,
            "name": self.name,
            "status": self.status.value,
            "store_id": self.store_id,
            "batch_size": self.batch_size,
            "created_at": self.created_at.isoformat(),
            "started_at": self.started_at.isoformat() if self.started_at else None,
            "completed_at": self.completed_at.isoformat() if self.completed_at else None,
            "duration_seconds": self.duration_seconds,
            "stats": self.stats.to_dict(),
            "pages_fetched": self.pages_fetched,
            "last_offset": self.last_offset,
            "failed_orders": [f.to_dict() for f in self.failed_orders],
            "validation_failures": [v.to_dict() for v in self.validation_failures],
            "report_path": self.report_path,
            "error": self.error,
        }

    @property
    def duration_seconds(self) -> Optional[float]:
        """Get duration in seconds."""
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return None


@dataclass
class MigrationConfig:
    """Configuration for a migration."""
    name: str = "order-migration"
    source: DatabaseConfig = field(default_factory=DatabaseConfig)
    destination: DatabaseConfig = field(default_factory=DatabaseConfig)

    # Execution options
    store_id: str = "MTB"
    batch_size: int = 100
    start_offset: int = 0
    max_orders: Optional[int] = None
    workers: int = 1

    # Output
    report_dir: str = "./reports"
    log_dir: Optional[str] = "./logs"
    log_level: str = "INFO"
    redact_keys: List[str] = field(default_factory=list)

    def validate(self) -> None:
        """Raise ConfigurationError on values the pipeline cannot run with."""
        if self.batch_size <= 0:
            raise ConfigurationError(f"batch_size must be positive, got {self.batch_size}")
        if self.start_offset < 0:
            raise ConfigurationError(f"start_offset must not be negative, got {self.start_offset}")
        if self.workers <= 0:
            raise ConfigurationError(f"workers must be positive, got {self.workers}")
        if self.max_orders is not None and self.max_orders < 0:
            raise ConfigurationError(f"max_orders must not be negative, got {self.max_orders}")
        if not self.store_id:
            raise ConfigurationError("store_id is required")

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary representation."""
        return {
            "name": self.name,
            "source": self.source.to_dict(),
            "destination": self.destination.to_dict(),
            "store_id": self.store_id,
            "batch_size": self.batch_size,
            "start_offset": self.start_offset,
            "max_orders": self.max_orders,
            "workers": self.workers,
            "report_dir": self.report_dir,
            "log_dir": self.log_dir,
            "log_level": self.log_level,
            "redact_keys": self.redact_keys,
        }

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "MigrationConfig":
        """Create from dictionary representation."""
        return cls(
            name=data.get("name", "order-migration"),
            source=DatabaseConfig.from_dict(data.get("source", {})),
            destination=DatabaseConfig.from_dict(data.get("destination", {})),
            store_id=data.get("store_id", "MTB"),
            batch_size=data.get("batch_size", 100),
            start_offset=data.get("start_offset", 0),
            max_orders=data.get("max_orders"),
            workers=data.get("workers", 1),
            report_dir=data.get("report_dir", "./reports"),
            log_dir=data.get("log_dir", "./logs"),
            log_level=data.get("log_level", "INFO"),
            redact_keys=data.get("redact_keys", []),
        )

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> "MigrationConfig":
        """
        Create from environment variables.

        Args:
            env: Mapping to read instead of ``os.environ``

        Returns:
            MigrationConfig populated from the environment
        """
        env = os.environ if env is None else env

        redact_keys = [k.strip() for k in env.get("LOG_REDACT_KEYS", "").split(",") if k.strip()]
        if env.get("APP_ENV", "").lower() == "production" and not redact_keys:
            redact_keys = list(DEFAULT_REDACT_KEYS)

        max_orders = _int_or_none(env.get("MAX_ORDERS"), "MAX_ORDERS")

        return cls(
            name=env.get("MIGRATION_NAME", "order-migration"),
            source=DatabaseConfig.mssql_from_env(env),
            destination=DatabaseConfig.mysql_from_env(env),
            store_id=env.get("STORE_ID", "MTB"),
            batch_size=_int_or_none(env.get("BATCH_SIZE"), "BATCH_SIZE") or 100,
            start_offset=_int_or_none(env.get("START_OFFSET"), "START_OFFSET") or 0,
            max_orders=max_orders,
            workers=_int_or_none(env.get("WORKERS"), "WORKERS") or 1,
            report_dir=env.get("REPORT_DIR", "./reports"),
            log_dir=env.get("LOG_DIR", "./logs"),
            log_level=env.get("LOG_LEVEL", "INFO"),
            redact_keys=redact_keys,
        )


def _int_or_none(value: Optional[str], name: str) -> Optional[int]:
    if value is None or str(value).strip() == "":
        return None
    try:
        return int(value)
    except ValueError:
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
