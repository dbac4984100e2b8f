"""
Observability Module for the CRM Data Client

Provides:
- Structured logging with correlation IDs (operation, table, entity)
- Telemetry: per-operation timing and error reporting
"""

from core.observability.metrics import (
    MetricsCollector,
    Severity,
    TelemetrySink,
    get_metrics,
    track_time,
    report_error,
)

from core.observability.logging import (
    get_logger,
    configure_logging,
    CorrelationContext,
    with_correlation,
)

__all__ = [
    # Telemetry
    "MetricsCollector",
    "Severity",
    "TelemetrySink",
    "get_metrics",
    "track_time",
    "report_error",
    # Logging
    "get_logger",
    "configure_logging",
    "CorrelationContext",
    "with_correlation",
]
