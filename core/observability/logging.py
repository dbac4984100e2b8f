"""
Structured Logging with Correlation IDs

Provides logging utilities that automatically include:
- operation: The named data client operation (e.g., "TimeToGetCategories")
- table_name: The sync table being read, written or pulled
- entity_id: The account/order/category the operation concerns
- store_path: The local cache file in use

Usage:
    from core.observability.logging import get_logger, with_correlation

    logger = get_logger(__name__)

    with with_correlation(operation="TimeToSynchronizeOrders", table_name="Order"):
        logger.info("Pulling table")  # Automatically includes correlation IDs
"""

import json
import logging
import sys
from contextvars import ContextVar
from dataclasses import dataclass, asdict
from datetime import datetime
from typing import Optional, Dict, Any
from contextlib import contextmanager


# =============================================================================
# Correlation Context
# =============================================================================

@dataclass
class CorrelationContext:
    """Context for correlating logs across one data client operation."""
    operation: Optional[str] = None
    table_name: Optional[str] = None
    entity_id: Optional[str] = None
    store_path: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dict, excluding None values."""
        return {k: v for k, v in asdict(self).items() if v is not None}

    def merge(self, **kwargs) -> "CorrelationContext":
        """Create a new context with merged values."""
        data = self.to_dict()
        data.update({k: v for k, v in kwargs.items() if v is not None})
        return CorrelationContext(**data)


# Context variable for async/thread-safe correlation
_correlation_context: ContextVar[CorrelationContext] = ContextVar(
    "correlation_context",
    default=CorrelationContext()
)


def get_correlation_context() -> CorrelationContext:
    """Get the current correlation context."""
    return _correlation_context.get()


@contextmanager
def with_correlation(**kwargs):
    """
    Context manager to set correlation IDs for logging.

    Usage:
        with with_correlation(operation="TimeToGetProducts", entity_id="cat-1"):
            logger.info("Reading")  # Will include operation and entity_id
    """
    old_ctx = get_correlation_context()
    new_ctx = old_ctx.merge(**kwargs)
    token = _correlation_context.set(new_ctx)
    try:
        yield new_ctx
    finally:
        _correlation_context.reset(token)


# =============================================================================
# Formatters
# =============================================================================

class StructuredFormatter(logging.Formatter):
    """
    JSON formatter that includes correlation context.

    Output format:
    {
        "timestamp": "2024-01-09T12:00:00.000Z",
        "level": "ERROR",
        "logger": "data_client.fault_boundary",
        "message": "Operation failed: TimeToGetAccountList",
        "operation": "TimeToGetAccountList",
        "error_kind": "transient"
    }
    """

    def format(self, record: logging.LogRecord) -> str:
        log_data = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }

        ctx = get_correlation_context()
        log_data.update(ctx.to_dict())

        if hasattr(record, "extra_fields"):
            log_data.update(record.extra_fields)

        if record.exc_info:
            log_data["exception"] = self.formatException(record.exc_info)

        return json.dumps(log_data, default=str)


class HumanReadableFormatter(logging.Formatter):
    """
    Human-readable formatter that includes key correlation IDs.

    Output format:
    2024-01-09 12:00:00 [INFO ] local_store.sync_table [TimeToSyncDB/Order]: Pulled 12 rows
    """

    def format(self, record: logging.LogRecord) -> str:
        ctx = get_correlation_context()

        correlation_parts = []
        if ctx.operation:
            correlation_parts.append(ctx.operation)
        if ctx.table_name:
            correlation_parts.append(ctx.table_name)
        if ctx.entity_id:
            correlation_parts.append(f"id:{ctx.entity_id}")

        correlation = "/".join(correlation_parts) if correlation_parts else "-"

        timestamp = datetime.utcnow().strftime("%Y-%m-%d %H:%M:%S")

        msg = f"{timestamp} [{record.levelname:5}] {record.name} [{correlation}]: {record.getMessage()}"

        if record.exc_info:
            msg += "\n" + self.formatException(record.exc_info)

        return msg


# =============================================================================
# Logger with Correlation Support
# =============================================================================

class CorrelatedLogger:
    """
    Thin wrapper over a stdlib logger.

    Accepts an ``extra_fields`` mapping on every call; the formatters add
    those fields and the active correlation context to each line.
    """

    def __init__(self, logger: logging.Logger):
        self._logger = logger

    @property
    def name(self) -> str:
        return self._logger.name

    def log(self, level: int, msg: str, *args, extra_fields: Optional[Dict[str, Any]] = None, exc_info=None):
        if not self._logger.isEnabledFor(level):
            return
        if exc_info is True:
            exc_info = sys.exc_info()
        record = self._logger.makeRecord(
            self._logger.name, level, "(unknown file)", 0, msg, args, exc_info or None,
        )
        record.extra_fields = dict(extra_fields or {})
        self._logger.handle(record)

    def debug(self, msg: str, *args, **kwargs):
        self.log(logging.DEBUG, msg, *args, **kwargs)

    def info(self, msg: str, *args, **kwargs):
        self.log(logging.INFO, msg, *args, **kwargs)

    def warning(self, msg: str, *args, **kwargs):
        self.log(logging.WARNING, msg, *args, **kwargs)

    def error(self, msg: str, *args, **kwargs):
        self.log(logging.ERROR, msg, *args, **kwargs)

    def exception(self, msg: str, *args, **kwargs):
        kwargs["exc_info"] = True
        self.log(logging.ERROR, msg, *args, **kwargs)

    def setLevel(self, level):
        self._logger.setLevel(level)

    def isEnabledFor(self, level):
        return self._logger.isEnabledFor(level)


# =============================================================================
# Logger Factory
# =============================================================================

_loggers: Dict[str, CorrelatedLogger] = {}
_handler: Optional[logging.Handler] = None

# Package loggers that follow the configured level
_PACKAGE_LOGGERS = ("data_client", "local_store", "connectors", "core", "scripts")


def configure_logging(level=logging.INFO, json_format: bool = False, force: bool = False):
    """
    Install one stdout handler on the root logger.

    ``level`` may be a level number or name ("DEBUG"). Calling again is a
    no-op unless ``force`` is set, in which case the previous handler is
    replaced.
    """
    global _handler

    if _handler is not None and not force:
        return

    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown log level: {level}")

    root = logging.getLogger()
    if _handler is not None:
        root.removeHandler(_handler)

    _handler = logging.StreamHandler(sys.stdout)
    _handler.setLevel(level)
    _handler.setFormatter(StructuredFormatter() if json_format else HumanReadableFormatter())
    root.setLevel(level)
    root.addHandler(_handler)

    for logger_name in _PACKAGE_LOGGERS:
        logging.getLogger(logger_name).setLevel(level)

    # aiohttp logs every connection at DEBUG
    logging.getLogger("aiohttp").setLevel(logging.WARNING)
    logging.getLogger("asyncio").setLevel(logging.WARNING)


def get_logger(name: str) -> CorrelatedLogger:
    """Correlated logger for ``name``; configure_logging() is called separately."""
    if name not in _loggers:
        _loggers[name] = CorrelatedLogger(logging.getLogger(name))
    return _loggers[name]
