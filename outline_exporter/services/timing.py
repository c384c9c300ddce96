"""Timing and outcome logging for the fetch steps of a scrape."""

import time
from typing import Any

import logfire


class OperationTimer:
    """Log the start, outcome and latency of one scrape step.

    The outcome is reported after the fact, since fetchers return their
    error in a FetchResult instead of raising.
    """

    def __init__(self, operation_name: str, **log_context: Any):
        self.operation_name = operation_name
        self.log_context = log_context
        self._started_at: float | None = None

    def start(self) -> "OperationTimer":
        self._started_at = time.monotonic()
        logfire.debug(
            f"Starting {self.operation_name}",
            operation=self.operation_name,
            **self.log_context,
        )
        return self

    def success(self, **extra_context: Any) -> float:
        """Log completion; returns the elapsed milliseconds."""
        elapsed_ms = self._elapsed_ms()
        logfire.info(
            f"{self.operation_name} completed",
            operation=self.operation_name,
            response_time_ms=elapsed_ms,
            **self.log_context,
            **extra_context,
        )
        return elapsed_ms

    def error(self, exception: BaseException, **extra_context: Any) -> float:
        """Log the failure with its stage, when known; returns elapsed milliseconds."""
        elapsed_ms = self._elapsed_ms()
        logfire.error(
            f"{self.operation_name} failed",
            operation=self.operation_name,
            error=str(exception),
            error_type=type(exception).__name__,
            stage=getattr(exception, "stage", None),
            response_time_ms=elapsed_ms,
            **self.log_context,
            **extra_context,
        )
        return elapsed_ms

    def _elapsed_ms(self) -> float:
        if self._started_at is None:
            raise RuntimeError("Timer was not started. Call start() first.")
        return (time.monotonic() - self._started_at) * 1000
