"""
Core app for Newsdesk.

Provides shared models, error handling, observability, and health checks.
"""

# Key exports for external use
from .observability import (
    # Logging
    StructuredLogger,
    LogContext,
    get_logger,

    # Metrics
    MetricsCollector,

    # Health checks
    HealthChecker,
    HealthStatus,
    HealthCheckResult,

    # Decorators
    timed,

    # Convenience functions
    record_vote_metrics,
    record_transition_metrics,
)

__all__ = [
    # Logging
    'StructuredLogger',
    'LogContext',
    'get_logger',

    # Metrics
    'MetricsCollector',

    # Health checks
    'HealthChecker',
    'HealthStatus',
    'HealthCheckResult',

    # Decorators
    'timed',

    # Convenience functions
    'record_vote_metrics',
    'record_transition_metrics',
]
