"""Provider performance monitoring.

Usage:
    from readmegen.performance import PerformanceEvent, PerformanceMonitor

    monitor = PerformanceMonitor()
    monitor.record_event(PerformanceEvent(provider="Gemini", success=True, response_time=900))
    monitor.get_best_provider()  # "Gemini"
"""

from .monitor import (
    PerformanceMonitor,
    is_rate_limit_message,
    measure_performance,
)
from .types import PerformanceEvent, PerformanceSummary, ProviderMetrics

__all__ = [
    # Types (types.py)
    "PerformanceEvent",
    "ProviderMetrics",
    "PerformanceSummary",
    # Monitor (monitor.py)
    "PerformanceMonitor",
    "measure_performance",
    "is_rate_limit_message",
]
