"""Performance logging for gateway operations.

Catalog queries, pool creation and previews are timed through
``PerformanceLogger.measure``; each measurement is logged and folded
into per-operation aggregates that the health endpoint can report.

Classes:
    TimingMetrics: One timing measurement
    PerformanceMetrics: Aggregated statistics for an operation
    TimingContext: Context manager measuring a single operation
    PerformanceLogger: Measurement entry point

Example:
    >>> perf = PerformanceLogger("adapters.postgresql")
    >>> with perf.measure("list_tables", engine="postgresql") as timer:
    ...     rows = await conn.fetch(sql)
    >>> timer.duration_ms
"""

import statistics
import time
from collections import defaultdict, deque
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Any, Deque, Dict, Generator, Optional

from .structured import StructuredLogger

# Durations kept per operation for the median
MEDIAN_WINDOW = 1000


@dataclass
class TimingMetrics:
    """Timing measurement for a single operation.

    Attributes:
        operation: Operation name
        start_time: Start time (perf_counter)
        end_time: End time (perf_counter)
        success: Whether the operation succeeded
        error: Error message if failed
        metadata: Additional metadata
    """
    operation: str
    start_time: float
    end_time: Optional[float] = None
    success: bool = True
    error: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)

    @property
    def duration(self) -> Optional[float]:
        if self.end_time is None:
            return None
        return self.end_time - self.start_time

    @property
    def duration_ms(self) -> Optional[float]:
        duration = self.duration
        return duration * 1000 if duration is not None else None

    @property
    def is_complete(self) -> bool:
        return self.end_time is not None

    def complete(self, *, success: bool = True, error: Optional[str] = None) -> None:
        self.end_time = time.perf_counter()
        self.success = success
        self.error = error


@dataclass
class PerformanceMetrics:
    """Aggregated performance metrics for one operation.

    Counts, totals and extremes cover every call; the median covers the
    most recent ``MEDIAN_WINDOW`` calls.
    """
    operation: str
    total_calls: int = 0
    successful_calls: int = 0
    failed_calls: int = 0
    total_duration: float = 0.0
    min_duration: Optional[float] = None
    max_duration: Optional[float] = None
    avg_duration: Optional[float] = None
    median_duration: Optional[float] = None
    _durations: Deque[float] = field(default_factory=lambda: deque(maxlen=MEDIAN_WINDOW), repr=False)

    def add_timing(self, timing: TimingMetrics) -> None:
        """Fold a completed timing into the aggregate."""
        if not timing.is_complete or timing.duration is None:
            return

        self.total_calls += 1
        if timing.success:
            self.successful_calls += 1
        else:
            self.failed_calls += 1

        duration = timing.duration
        self.total_duration += duration
        self._durations.append(duration)

        if self.min_duration is None or duration < self.min_duration:
            self.min_duration = duration
        if self.max_duration is None or duration > self.max_duration:
            self.max_duration = duration

        self.avg_duration = self.total_duration / self.total_calls
        self.median_duration = statistics.median(self._durations)

    @property
    def error_rate(self) -> float:
        """Failed calls as a percentage of all calls."""
        if self.total_calls == 0:
            return 0.0
        return (self.failed_calls / self.total_calls) * 100

    def to_dict(self) -> Dict[str, Any]:
        return {
            "operation": self.operation,
            "total_calls": self.total_calls,
            "successful_calls": self.successful_calls,
            "failed_calls": self.failed_calls,
            "error_rate": self.error_rate,
            "total_duration": self.total_duration,
            "min_duration": self.min_duration,
            "max_duration": self.max_duration,
            "avg_duration": self.avg_duration,
            "median_duration": self.median_duration,
        }


class TimingContext:
    """Context manager for measuring operation timing.

    Example:
        >>> with TimingContext("pool_create", logger=logger) as timer:
        ...     pool = await asyncpg.create_pool(**kwargs)
        >>> print(f"Pool creation took {timer.duration_ms:.2f}ms")
    """

    def __init__(
        self,
        operation: str,
        logger: Optional[StructuredLogger] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> None:
        self.operation = operation
        self.logger = logger
        self.metadata = metadata or {}
        self._timing: Optional[TimingMetrics] = None

    @property
    def timing(self) -> Optional[TimingMetrics]:
        return self._timing

    @property
    def duration(self) -> Optional[float]:
        return self._timing.duration if self._timing else None

    @property
    def duration_ms(self) -> Optional[float]:
        return self._timing.duration_ms if self._timing else None

    def __enter__(self) -> "TimingContext":
        self._timing = TimingMetrics(
            operation=self.operation,
            start_time=time.perf_counter(),
            metadata=self.metadata,
        )
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        if self._timing is None:
            return

        success = exc_type is None
        error = str(exc_val) if exc_val else None
        self._timing.complete(success=success, error=error)

        if self.logger is None:
            return
        if success:
            self.logger.debug(
                "Operation completed",
                operation=self.operation,
                duration_ms=self._timing.duration_ms,
                **self.metadata,
            )
        else:
            self.logger.warning(
                "Operation failed",
                operation=self.operation,
                duration_ms=self._timing.duration_ms,
                error=error,
                **self.metadata,
            )


class PerformanceLogger:
    """Performance logger for timing gateway operations.

    Attributes:
        name: Logger name
        logger: Underlying structured logger
    """

    def __init__(
        self,
        name: str,
        *,
        auto_log: bool = True,
        track_metrics: bool = True,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        self.name = name
        self.auto_log = auto_log
        self.track_metrics = track_metrics
        self.logger = logger or StructuredLogger(f"perf.{name}")
        self._metrics: Dict[str, PerformanceMetrics] = defaultdict(
            lambda: PerformanceMetrics(operation="unknown")
        )

    @contextmanager
    def measure(self, operation: str, **metadata: Any) -> Generator[TimingContext, None, None]:
        """Context manager for measuring operation performance.

        Args:
            operation: Operation name
            **metadata: Additional metadata logged with the timing

        Yields:
            TimingContext for the operation
        """
        timing_context = TimingContext(
            operation=operation,
            logger=self.logger if self.auto_log else None,
            metadata=metadata,
        )

        try:
            with timing_context as ctx:
                yield ctx
        finally:
            if self.track_metrics and timing_context.timing:
                metrics = self._metrics[operation]
                metrics.operation = operation
                metrics.add_timing(timing_context.timing)

    def get_metrics(self, operation: Optional[str] = None) -> Dict[str, Any]:
        """Get aggregated metrics for one operation or all of them."""
        if operation is not None:
            if operation not in self._metrics:
                return {}
            return self._metrics[operation].to_dict()
        return {name: metrics.to_dict() for name, metrics in self._metrics.items()}

    def reset_metrics(self) -> None:
        self._metrics.clear()
