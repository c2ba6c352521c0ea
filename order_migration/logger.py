"""
Logging setup for the migration.

Provides:
- configure_logging: console + daily-rotating file handlers
- RedactingFilter: masks sensitive values in messages and context fields
- log_with_context: emit a record carrying structured fields
"""

import logging
import sys
from logging.handlers import TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Iterable, Optional

SERVICE_NAME = "order-migration"
REDACTED = "[REDACTED]"
LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"

# Redacted when running in production
DEFAULT_REDACT_KEYS = (
    "clientsecret", "secret", "password", "pwd", "new_pwd", "confirmed_pwd", "old_pwd",
    "work_email", "email", "user_email", "loggedin_email", "auth_email_id",
    "first_name", "last_name", "name", "firstname", "lastname", "customername",
    "telephone", "contact1", "emp_id", "user_input", "userinput",
    "auth_company_encryption_key", "otp", "resetlink", "pin",
)

# LogRecord attributes that are never treated as context fields
_RESERVED_ATTRS = frozenset(
    vars(logging.LogRecord("", logging.INFO, "", 0, "", (), None)).keys()
) | {"message", "asctime"}


class RedactingFilter(logging.Filter):
    """Replace the values of sensitive keys with ``[REDACTED]``."""

    def __init__(self, keys: Iterable[str] = ()):
        super().__init__()
        self.keys = frozenset(k.lower() for k in keys)

    def filter(self, record: logging.LogRecord) -> bool:
        if not self.keys:
            return True

        if isinstance(record.args, dict):
            record.args = self.redact(record.args)
        elif isinstance(record.args, tuple):
            record.args = tuple(self.redact(a) for a in record.args)

        for attr, value in list(vars(record).items()):
            if attr in _RESERVED_ATTRS:
                continue
            if attr.lower() in self.keys:
                setattr(record, attr, REDACTED)
            else:
                setattr(record, attr, self.redact(value))
        return True

    def redact(self, value: Any, key: Optional[str] = None) -> Any:
        """Return a copy of ``value`` with sensitive keys masked, recursively."""
        if key is not None and key.lower() in self.keys:
            return REDACTED
        if isinstance(value, dict):
            return {k: self.redact(v, str(k)) for k, v in value.items()}
        if isinstance(value, list):
            return [self.redact(v) for v in value]
        if isinstance(value, tuple):
            return tuple(self.redact(v) for v in value)
        return value


class ContextFormatter(logging.Formatter):
    """Standard format with any context fields appended as ``key=value``."""

    def format(self, record: logging.LogRecord) -> str:
        base = super().format(record)
        context = {
            k: v for k, v in vars(record).items()
            if k not in _RESERVED_ATTRS and not k.startswith("_")
        }
        if not context:
            return base
        parts = " ".join(f"{k}={v}" for k, v in context.items())
        return f"{base} | {parts}"


def configure_logging(
    level: str = "INFO",
    log_dir: Optional[str] = None,
    redact_keys: Iterable[str] = (),
    backup_count: int = 5,
) -> logging.Logger:
    """
    Configure the root logger for a migration run.

    Args:
        level: Log level name
        log_dir: Directory for the daily log file; no file logging when None
        redact_keys: Keys whose values are masked in every record
        backup_count: Number of daily files to keep

    Returns:
        The configured root logger
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))

    for handler in list(root.handlers):
        root.removeHandler(handler)
        handler.close()

    formatter = ContextFormatter(LOG_FORMAT)
    redactor = RedactingFilter(redact_keys)

    console = logging.StreamHandler(sys.stdout)
    console.setFormatter(formatter)
    console.addFilter(redactor)
    root.addHandler(console)

    if log_dir:
        Path(log_dir).mkdir(parents=True, exist_ok=True)
        file_handler = TimedRotatingFileHandler(
            Path(log_dir) / f"{SERVICE_NAME}.log",
            when="midnight",
            backupCount=backup_count,
            encoding="utf-8",
        )
        file_handler.namer = _dated_name
        file_handler.setFormatter(formatter)
        file_handler.addFilter(redactor)
        root.addHandler(file_handler)

    return root


def _dated_name(default_name: str) -> str:
    # order-migration.log.2024-01-31 -> order-migration_2024-01-31.log
    path = Path(default_name)
    stem, _, date = path.name.partition(".log.")
    if not date:
        return default_name
    return str(path.with_name(f"{stem}_{date}.log"))


def log_with_context(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log ``message`` with ``context`` attached as record attributes."""
    if logger.isEnabledFor(level):
        record = logger.makeRecord(logger.name, level, "", 0, message, (), None)
        for key, value in context.items():
            setattr(record, key, value)
        logger.handle(record)
