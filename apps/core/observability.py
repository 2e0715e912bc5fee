"""
Observability utilities for the Newsdesk project.

Structured logging, in-process metrics collection, and health checks.
"""

import functools
import json
import logging
import time
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from threading import Lock
from typing import Any, Callable, Dict, List, Optional


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


# =============================================================================
# Structured Logging
# =============================================================================

@dataclass
class LogContext:
    """
    Structured log context for consistent logging.
    """
    component: str
    operation: str
    correlation_id: Optional[str] = None
    user_id: Optional[str] = None
    article_id: Optional[str] = None
    extra: Dict[str, Any] = field(default_factory=dict)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary, excluding None values."""
        result = {
            "component": self.component,
        }
        if self.operation:
            result["operation"] = self.operation
        if self.correlation_id:
            result["correlation_id"] = self.correlation_id
        if self.user_id:
            result["user_id"] = self.user_id
        if self.article_id:
            result["article_id"] = self.article_id
        if self.extra:
            result.update(self.extra)
        return result


class StructuredLogger:
    """
    Structured logger that outputs JSON-formatted logs.

    Supports contextual logging with correlation IDs and consistent field names.
    """

    def __init__(self, name: str, default_context: Optional[LogContext] = None):
        """
        Initialize structured logger.

        Args:
            name: Logger name (typically module name).
            default_context: Default context to include in all logs.
        """
        self._logger = logging.getLogger(name)
        self._default_context = default_context
        self._context_stack: List[LogContext] = []

    def _format_message(
        self,
        message: str,
        context: Optional[LogContext] = None,
        **kwargs
    ) -> str:
        """Format message with structured context."""
        log_data = {
            "message": message,
            "timestamp": _utcnow().isoformat(),
        }

        if self._default_context:
            log_data.update(self._default_context.to_dict())

        # Stacked context, most recent wins
        for ctx in self._context_stack:
            log_data.update(ctx.to_dict())

        if context:
            log_data.update(context.to_dict())

        if "correlation_id" not in log_data:
            from apps.core.middleware import get_request_id
            request_id = get_request_id()
            if request_id:
                log_data["correlation_id"] = request_id

        log_data.update(kwargs)

        return json.dumps(log_data, default=str)

    @contextmanager
    def context(self, ctx: LogContext):
        """
        Context manager for temporary logging context.

        Args:
            ctx: LogContext to use within the block.
        """
        self._context_stack.append(ctx)
        try:
            yield
        finally:
            self._context_stack.pop()

    def debug(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log debug message."""
        self._logger.debug(self._format_message(message, context, level="DEBUG", **kwargs))

    def info(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log info message."""
        self._logger.info(self._format_message(message, context, level="INFO", **kwargs))

    def warning(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log warning message."""
        self._logger.warning(self._format_message(message, context, level="WARNING", **kwargs))

    def error(self, message: str, context: Optional[LogContext] = None, exc_info: bool = False, **kwargs):
        """Log error message."""
        if exc_info:
            kwargs["traceback"] = traceback.format_exc()
        self._logger.error(self._format_message(message, context, level="ERROR", **kwargs))

    def exception(self, message: str, context: Optional[LogContext] = None, **kwargs):
        """Log exception with traceback."""
        self.error(message, context, exc_info=True, **kwargs)


def get_logger(name: str, component: Optional[str] = None) -> StructuredLogger:
    """
    Get a structured logger.

    Args:
        name: Logger name.
        component: Default component name for context.

    Returns:
        StructuredLogger instance.
    """
    default_ctx = None
    if component:
        default_ctx = LogContext(component=component, operation="")
    return StructuredLogger(name, default_ctx)


# =============================================================================
# Metrics Collection
# =============================================================================

class MetricsCollector:
    """
    Collect and aggregate metrics.

    Thread-safe singleton for application-wide metrics.
    """

    _instance = None
    _lock = Lock()

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._counters: Dict[str, float] = {}
                cls._instance._gauges: Dict[str, float] = {}
                cls._instance._histograms: Dict[str, List[float]] = {}
        return cls._instance

    def _make_key(self, name: str, tags: Optional[Dict[str, str]] = None) -> str:
        """Create a unique key for a metric with tags."""
        if not tags:
            return name
        tag_str = ",".join(f"{k}={v}" for k, v in sorted(tags.items()))
        return f"{name}[{tag_str}]"

    def increment(self, name: str, value: float = 1.0, tags: Optional[Dict[str, str]] = None) -> None:
        """
        Increment a counter metric.

        Args:
            name: Metric name.
            value: Value to increment by.
            tags: Optional tags for the metric.
        """
        key = self._make_key(name, tags)
        with self._lock:
            self._counters[key] = self._counters.get(key, 0) + value

    def gauge(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """Set a gauge metric."""
        key = self._make_key(name, tags)
        with self._lock:
            self._gauges[key] = value

    def histogram(self, name: str, value: float, tags: Optional[Dict[str, str]] = None) -> None:
        """
        Record a histogram value.

        Args:
            name: Metric name.
            value: Value to record.
            tags: Optional tags for the metric.
        """
        key = self._make_key(name, tags)
        with self._lock:
            values = self._histograms.setdefault(key, [])
            values.append(value)
            # Keep only recent values
            del values[:-1000]

    @contextmanager
    def timer(self, name: str, tags: Optional[Dict[str, str]] = None):
        """
        Context manager to time an operation.

        Yields:
            None. Duration is recorded on exit.
        """
        start = time.perf_counter()
        try:
            yield
        finally:
            duration_ms = (time.perf_counter() - start) * 1000
            self.histogram(f"{name}_duration_ms", duration_ms, tags)
            self.increment(f"{name}_count", tags=tags)

    def get_counter(self, name: str, tags: Optional[Dict[str, str]] = None) -> float:
        """Get current counter value."""
        key = self._make_key(name, tags)
        return self._counters.get(key, 0)

    def get_gauge(self, name: str, tags: Optional[Dict[str, str]] = None) -> Optional[float]:
        """Get current gauge value."""
        key = self._make_key(name, tags)
        return self._gauges.get(key)

    def _stats(self, values: List[float]) -> Dict[str, float]:
        if not values:
            return {"count": 0, "min": 0, "max": 0, "avg": 0, "p50": 0, "p95": 0, "p99": 0}

        sorted_values = sorted(values)
        count = len(sorted_values)

        return {
            "count": count,
            "min": sorted_values[0],
            "max": sorted_values[-1],
            "avg": sum(sorted_values) / count,
            "p50": sorted_values[int(count * 0.50)],
            "p95": sorted_values[int(count * 0.95)] if count > 1 else sorted_values[0],
            "p99": sorted_values[int(count * 0.99)] if count > 1 else sorted_values[0],
        }

    def get_histogram_stats(self, name: str, tags: Optional[Dict[str, str]] = None) -> Dict[str, float]:
        """Get histogram statistics."""
        key = self._make_key(name, tags)
        return self._stats(list(self._histograms.get(key, [])))

    def get_all_metrics(self) -> Dict[str, Any]:
        """Get all current metric values."""
        with self._lock:
            return {
                "counters": dict(self._counters),
                "gauges": dict(self._gauges),
                "histograms": {
                    key: self._stats(list(values))
                    for key, values in self._histograms.items()
                },
                "timestamp": _utcnow().isoformat(),
            }

    def clear(self) -> None:
        """Clear all metrics (useful for testing)."""
        with self._lock:
            self._counters.clear()
            self._gauges.clear()
            self._histograms.clear()


# Global metrics instance
metrics = MetricsCollector()


# =============================================================================
# Health Checks
# =============================================================================

class HealthStatus(Enum):
    """Health check status."""
    HEALTHY = "healthy"
    DEGRADED = "degraded"
    UNHEALTHY = "unhealthy"


@dataclass
class HealthCheckResult:
    """Result of a health check."""
    name: str
    status: HealthStatus
    message: str = ""
    details: Dict[str, Any] = field(default_factory=dict)
    duration_ms: float = 0


class HealthChecker:
    """
    Health check registry and executor.
    """

    _instance = None
    _lock = Lock()

    def __new__(cls):
        with cls._lock:
            if cls._instance is None:
                cls._instance = super().__new__(cls)
                cls._instance._checks: Dict[str, Callable[[], HealthCheckResult]] = {}
        return cls._instance

    def register(self, name: str, check_fn: Callable[[], HealthCheckResult]) -> None:
        """
        Register a health check.

        Args:
            name: Unique check name.
            check_fn: Function that returns HealthCheckResult.
        """
        self._checks[name] = check_fn

    def check(self, name: str) -> HealthCheckResult:
        """Run a specific health check."""
        if name not in self._checks:
            return HealthCheckResult(
                name=name,
                status=HealthStatus.UNHEALTHY,
                message=f"Unknown check: {name}",
            )

        start = time.perf_counter()
        try:
            result = self._checks[name]()
            result.duration_ms = (time.perf_counter() - start) * 1000
            return result
        except Exception as e:
            return HealthCheckResult(
                name=name,
                status=HealthStatus.UNHEALTHY,
                message=str(e),
                duration_ms=(time.perf_counter() - start) * 1000,
            )

    def check_all(self) -> Dict[str, Any]:
        """Run all health checks."""
        results = {}
        overall_status = HealthStatus.HEALTHY

        for name in self._checks:
            result = self.check(name)
            results[name] = {
                "status": result.status.value,
                "message": result.message,
                "details": result.details,
                "duration_ms": result.duration_ms,
            }

            if result.status == HealthStatus.UNHEALTHY:
                overall_status = HealthStatus.UNHEALTHY
            elif result.status == HealthStatus.DEGRADED and overall_status != HealthStatus.UNHEALTHY:
                overall_status = HealthStatus.DEGRADED

        return {
            "status": overall_status.value,
            "checks": results,
            "timestamp": _utcnow().isoformat(),
        }

    def list_checks(self) -> List[str]:
        """List registered check names."""
        return list(self._checks.keys())


# Global health checker instance
health_checker = HealthChecker()


# =============================================================================
# Built-in Health Checks
# =============================================================================

def check_database() -> HealthCheckResult:
    """Check database connectivity."""
    from django.db import connection

    try:
        with connection.cursor() as cursor:
            cursor.execute("SELECT 1")
            cursor.fetchone()
        return HealthCheckResult(
            name="database",
            status=HealthStatus.HEALTHY,
            message="Database connection successful",
        )
    except Exception as e:
        return HealthCheckResult(
            name="database",
            status=HealthStatus.UNHEALTHY,
            message=f"Database error: {e}",
        )


def check_cache() -> HealthCheckResult:
    """Check cache backend connectivity."""
    try:
        from django.core.cache import cache
        cache.set("health_check", "ok", 10)
        value = cache.get("health_check")

        if value == "ok":
            return HealthCheckResult(
                name="cache",
                status=HealthStatus.HEALTHY,
                message="Cache connection successful",
            )
        return HealthCheckResult(
            name="cache",
            status=HealthStatus.DEGRADED,
            message="Cache get/set mismatch",
        )
    except Exception as e:
        return HealthCheckResult(
            name="cache",
            status=HealthStatus.UNHEALTHY,
            message=f"Cache error: {e}",
        )


def register_default_checks():
    """Register default health checks."""
    health_checker.register("database", check_database)
    health_checker.register("cache", check_cache)


# =============================================================================
# Performance Monitoring Decorators
# =============================================================================

def timed(metric_name: Optional[str] = None, tags: Optional[Dict[str, str]] = None):
    """
    Decorator to time function execution.

    Args:
        metric_name: Metric name (default: function name).
        tags: Optional metric tags.
    """
    def decorator(func: Callable) -> Callable:
        name = metric_name or f"{func.__module__}.{func.__name__}"

        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            with metrics.timer(name, tags):
                return func(*args, **kwargs)

        return wrapper
    return decorator


# =============================================================================
# Convenience Functions
# =============================================================================

def record_vote_metrics(role_name: str, decision: str, published: bool = False):
    """Record approval vote metrics."""
    metrics.increment("workflow.votes", tags={"decision": decision.lower()})
    metrics.increment("workflow.votes_by_role", tags={"role": role_name})

    if published:
        metrics.increment("workflow.articles_published")


def record_transition_metrics(old_state: str, new_state: str):
    """Record an article state transition."""
    metrics.increment("workflow.transitions", tags={"from": old_state, "to": new_state})
