"""Fault boundary - timing and fail-soft execution for data client operations.

Every public data client operation runs through FaultBoundary.execute()
(or run() when there is no result). The boundary:

1. Binds the operation name into the logging correlation context
2. Times the unit of work with the telemetry sink
3. Catches failures, logs them and reports them with severity ERROR
4. Returns the caller's default instead of raising

Failure handling:
- RemoteOperationRejectedError: the remote service refused the request;
  logged as a rejection, default returned
- Catalog consistency errors: logged as consistency violations and
  re-raised (unless propagate_consistency_errors is False)
- Anything else (network, local store, timeouts): logged as a transient
  failure, default returned

Cancellation is never swallowed.
"""

import asyncio
from typing import Any, Awaitable, Callable, Optional, TypeVar

from connectors.remote_base import RemoteOperationRejectedError
from core.observability.logging import get_logger, with_correlation
from core.observability.metrics import Severity, TelemetrySink
from data_client.errors import CatalogConsistencyError

logger = get_logger(__name__)

R = TypeVar("R")


class FaultBoundary:
    """Wraps units of work with timing, error reporting and a default result.

    Args:
        telemetry: Sink receiving timings and error reports
        timeout_seconds: Optional limit for each unit of work
        propagate_consistency_errors: Re-raise catalog consistency errors
            after reporting them
    """

    def __init__(
        self,
        telemetry: TelemetrySink,
        timeout_seconds: Optional[float] = None,
        propagate_consistency_errors: bool = True,
    ):
        self.telemetry = telemetry
        self.timeout_seconds = timeout_seconds
        self.propagate_consistency_errors = propagate_consistency_errors

    async def _invoke(self, work: Callable[[], Awaitable[R]]) -> R:
        if self.timeout_seconds:
            return await asyncio.wait_for(work(), timeout=self.timeout_seconds)
        return await work()

    def _report(self, error: BaseException) -> None:
        # Telemetry must not change the outcome of the operation
        try:
            self.telemetry.report_error(error, Severity.ERROR)
        except Exception as e:
            logger.warning(f"Telemetry report failed: {e}")

    async def execute(
        self,
        operation_name: str,
        work: Callable[[], Awaitable[R]],
        default: Any = None,
    ) -> Any:
        """Run a unit of work, returning its result or `default` on failure.

        Args:
            operation_name: Timing/log name (e.g., "TimeToGetCategories")
            work: Zero-argument coroutine function
            default: Result returned when the work fails

        Raises:
            CatalogConsistencyError: When propagate_consistency_errors is set
        """
        with with_correlation(operation=operation_name):
            try:
                with self.telemetry.track_time(operation_name):
                    return await self._invoke(work)
            except CatalogConsistencyError as e:
                logger.error(
                    f"Catalog consistency violation in {operation_name}: {e}",
                    extra_fields={"error_kind": "consistency", "error_type": type(e).__name__},
                )
                self._report(e)
                if self.propagate_consistency_errors:
                    raise
                return default
            except RemoteOperationRejectedError as e:
                logger.error(
                    f"Remote service rejected {operation_name}: {e}",
                    extra_fields={"error_kind": "rejected", "status_code": e.status_code},
                )
                self._report(e)
                return default
            except asyncio.TimeoutError as e:
                logger.error(
                    f"{operation_name} timed out after {self.timeout_seconds}s",
                    extra_fields={"error_kind": "timeout"},
                )
                self._report(e)
                return default
            except Exception as e:
                logger.error(
                    f"{operation_name} failed: {type(e).__name__}: {e}",
                    extra_fields={"error_kind": "transient", "error_type": type(e).__name__},
                    exc_info=True,
                )
                self._report(e)
                return default

    async def run(self, operation_name: str, work: Callable[[], Awaitable[Any]]) -> None:
        """Run a unit of work with no result."""
        await self.execute(operation_name, work, None)
