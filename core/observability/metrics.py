"""
Telemetry for the CRM Data Client

Collects and exposes:
- Operation lifecycle (started, completed, failed) per named operation
- Operation durations (average, p95)
- Reported errors by severity and by error type

Every data client operation is timed with track_time() and every caught
failure is sent to report_error(). Both are fire-and-forget: a telemetry
problem never changes the outcome of the operation being measured.

Metrics are stored in-memory, with optional SQLite snapshot persistence.
"""

import json
import sqlite3
import statistics
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path
from threading import Lock
from typing import Any, Deque, Dict, Iterator, List, Optional, Protocol, Union

from core.observability.logging import get_correlation_context

# Innermost timed operation of the running task
_current_operation: ContextVar[Optional[str]] = ContextVar("current_operation", default=None)


# =============================================================================
# Severity
# =============================================================================

class Severity(str, Enum):
    """Severity attached to a reported error."""
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class TelemetrySink(Protocol):
    """What the data client needs from a telemetry backend."""

    def track_time(self, name: str):
        """Return a context manager that measures the enclosed block."""
        ...

    def report_error(self, error: BaseException, severity: Severity = Severity.ERROR) -> None:
        """Record a caught failure."""
        ...


# =============================================================================
# Metric Data Classes
# =============================================================================

@dataclass
class OperationMetrics:
    """Lifecycle counts for named operations."""
    started: int = 0
    completed: int = 0
    failed: int = 0

    by_name: Dict[str, Dict[str, int]] = field(default_factory=lambda: defaultdict(lambda: {"started": 0, "completed": 0, "failed": 0}))


@dataclass
class TimingMetrics:
    """Operation duration metrics."""
    samples: List[float] = field(default_factory=list)
    max_samples: int = 1000

    by_operation: Dict[str, List[float]] = field(default_factory=lambda: defaultdict(list))

    def add_sample(self, duration_ms: float, operation: str = None):
        """Add a timing sample."""
        self.samples.append(duration_ms)
        if len(self.samples) > self.max_samples:
            self.samples = self.samples[-self.max_samples:]

        if operation:
            self.by_operation[operation].append(duration_ms)
            if len(self.by_operation[operation]) > self.max_samples:
                self.by_operation[operation] = self.by_operation[operation][-self.max_samples:]

    def get_average(self, operation: str = None) -> float:
        """Get average duration."""
        samples = self.by_operation.get(operation, []) if operation else self.samples
        return statistics.mean(samples) if samples else 0.0

    def get_p95(self, operation: str = None) -> float:
        """Get 95th percentile duration."""
        samples = self.by_operation.get(operation, []) if operation else self.samples
        if not samples:
            return 0.0
        sorted_samples = sorted(samples)
        idx = int(len(sorted_samples) * 0.95)
        return sorted_samples[min(idx, len(sorted_samples) - 1)]


@dataclass
class ErrorRecord:
    """A single reported error."""
    error_type: str
    message: str
    severity: Severity
    reported_at: str
    operation: Optional[str] = None


@dataclass
class ErrorMetrics:
    """Reported error metrics."""
    total: int = 0
    by_severity: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    by_type: Dict[str, int] = field(default_factory=lambda: defaultdict(int))
    recent: Deque[ErrorRecord] = field(default_factory=lambda: deque(maxlen=50))


# =============================================================================
# Metrics Collector
# =============================================================================

class MetricsCollector:
    """
    Thread-safe telemetry sink for the data client.

    Usage:
        metrics = MetricsCollector()
        with metrics.track_time("TimeToGetCategories"):
            ...
        metrics.report_error(exc, Severity.ERROR)

    A process-wide default is available via MetricsCollector.instance()
    or get_metrics(); clients may also be given their own collector.
    """

    _instance: Optional["MetricsCollector"] = None
    _instance_lock = Lock()

    def __init__(self, db_path: Optional[Union[str, Path]] = None):
        self.operations = OperationMetrics()
        self.timings = TimingMetrics()
        self.errors = ErrorMetrics()
        self.db_path = Path(db_path) if db_path else None
        self._lock = Lock()

        if self.db_path:
            self._init_db()

    @classmethod
    def instance(cls) -> "MetricsCollector":
        """Get the process default instance."""
        if cls._instance is None:
            with cls._instance_lock:
                if cls._instance is None:
                    cls._instance = cls()
        return cls._instance

    def _init_db(self):
        """Initialize metrics snapshot table."""
        conn = sqlite3.connect(str(self.db_path))
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS metrics_snapshots (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    timestamp TEXT NOT NULL,
                    metric_type TEXT NOT NULL,
                    metric_name TEXT NOT NULL,
                    metric_value REAL NOT NULL,
                    labels TEXT
                )
            """)

            cursor.execute("""
                CREATE INDEX IF NOT EXISTS idx_metrics_type_time
                ON metrics_snapshots(metric_type, timestamp)
            """)

            conn.commit()
        finally:
            conn.close()

    # =========================================================================
    # Operation Timing
    # =========================================================================

    @contextmanager
    def track_time(self, name: str) -> Iterator[None]:
        """Time the enclosed block as the named operation.

        The measurement is always recorded on exit, whether the block
        completes or raises.
        """
        with self._lock:
            self.operations.started += 1
            self.operations.by_name[name]["started"] += 1
        token = _current_operation.set(name)
        start = time.perf_counter()
        succeeded = False
        try:
            yield
            succeeded = True
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            _current_operation.reset(token)
            with self._lock:
                self.timings.add_sample(duration_ms, name)
                if succeeded:
                    self.operations.completed += 1
                    self.operations.by_name[name]["completed"] += 1
                else:
                    self.operations.failed += 1
                    self.operations.by_name[name]["failed"] += 1
            self._persist_metric("operation", name, duration_ms, {"succeeded": succeeded})

    def get_timing_stats(self, operation: str = None) -> Dict[str, float]:
        """Get timing statistics for an operation."""
        with self._lock:
            return {
                "average_ms": self.timings.get_average(operation),
                "p95_ms": self.timings.get_p95(operation),
                "sample_count": len(self.timings.by_operation.get(operation, []) if operation else self.timings.samples),
            }

    # =========================================================================
    # Error Reporting
    # =========================================================================

    def report_error(self, error: BaseException, severity: Severity = Severity.ERROR) -> None:
        """Record a caught failure."""
        error_type = type(error).__name__
        record = ErrorRecord(
            error_type=error_type,
            message=str(error),
            severity=severity,
            reported_at=datetime.utcnow().isoformat(),
            operation=_current_operation.get() or get_correlation_context().operation,
        )
        with self._lock:
            self.errors.total += 1
            self.errors.by_severity[severity.value] += 1
            self.errors.by_type[error_type] += 1
            self.errors.recent.append(record)

        self._persist_metric("error", error_type, 1, {"severity": severity.value, "message": str(error)})

    def error_count(self, error_type: str = None) -> int:
        """Number of reported errors, optionally of one exception type."""
        with self._lock:
            if error_type:
                return self.errors.by_type.get(error_type, 0)
            return self.errors.total

    # =========================================================================
    # Summary
    # =========================================================================

    def get_summary(self) -> Dict[str, Any]:
        """Get a summary of all metrics."""
        with self._lock:
            return {
                "operations": {
                    "started": self.operations.started,
                    "completed": self.operations.completed,
                    "failed": self.operations.failed,
                    "by_name": {k: dict(v) for k, v in self.operations.by_name.items()},
                },
                "timings": {
                    "overall": {
                        "average_ms": self.timings.get_average(),
                        "p95_ms": self.timings.get_p95(),
                    },
                    "by_operation": {
                        operation: {
                            "average_ms": self.timings.get_average(operation),
                            "p95_ms": self.timings.get_p95(operation),
                        }
                        for operation in self.timings.by_operation.keys()
                    },
                },
                "errors": {
                    "total": self.errors.total,
                    "by_severity": dict(self.errors.by_severity),
                    "by_type": dict(self.errors.by_type),
                    "recent": [
                        {
                            "error_type": r.error_type,
                            "message": r.message,
                            "severity": r.severity.value,
                            "reported_at": r.reported_at,
                            "operation": r.operation,
                        }
                        for r in self.errors.recent
                    ],
                },
            }

    def reset(self):
        """Reset all in-memory metrics."""
        with self._lock:
            self.operations = OperationMetrics()
            self.timings = TimingMetrics()
            self.errors = ErrorMetrics()

    # =========================================================================
    # Persistence
    # =========================================================================

    def _persist_metric(self, metric_type: str, metric_name: str, value: float, labels: Dict[str, Any] = None):
        """Persist a metric to the snapshot table, if one is configured."""
        if not self.db_path:
            return
        try:
            conn = sqlite3.connect(str(self.db_path))
            try:
                conn.execute("""
                    INSERT INTO metrics_snapshots (timestamp, metric_type, metric_name, metric_value, labels)
                    VALUES (?, ?, ?, ?, ?)
                """, (
                    datetime.utcnow().isoformat(),
                    metric_type,
                    metric_name,
                    value,
                    json.dumps(labels) if labels else None,
                ))
                conn.commit()
            finally:
                conn.close()
        except sqlite3.Error:
            pass  # Telemetry never fails the operation being measured


# =============================================================================
# Module-level convenience functions
# =============================================================================

def get_metrics() -> MetricsCollector:
    """Get the process default metrics collector."""
    return MetricsCollector.instance()


def track_time(name: str):
    """Time a block against the default collector."""
    return get_metrics().track_time(name)


def report_error(error: BaseException, severity: Severity = Severity.ERROR) -> None:
    """Report an error to the default collector."""
    get_metrics().report_error(error, severity)
