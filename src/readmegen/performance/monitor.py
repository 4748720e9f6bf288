"""Rolling performance monitor for AI providers.

Tracks per-provider success/failure counts, latency and rate-limit hits,
and derives the health signals the README generator uses to order and
skip providers.

The monitor is a plain object: whoever composes the generator owns its
lifetime (one per process for the HTTP server, one per test otherwise).
"""

import copy
import logging
import threading
import time
from collections import deque
from datetime import datetime, timedelta
from typing import Awaitable, Callable, Deque, Dict, List, Optional, TypeVar

from .types import PerformanceEvent, PerformanceSummary, ProviderMetrics, utcnow

logger = logging.getLogger(__name__)

T = TypeVar("T")

# Defaults
DEFAULT_MAX_EVENTS = 100
DEFAULT_MIN_REQUESTS = 5
DEFAULT_MIN_SUCCESS_RATE = 0.5
DEFAULT_RATE_LIMIT_COOLDOWN = timedelta(minutes=5)

# Error text fragments that mark a failure as quota exhaustion
RATE_LIMIT_MARKERS = ("rate limit", "quota")


def is_rate_limit_message(error: Optional[str]) -> bool:
    """Return True if an error message reports a rate limit or quota condition."""
    if not error:
        return False
    lowered = error.lower()
    return any(marker in lowered for marker in RATE_LIMIT_MARKERS)


class PerformanceMonitor:
    """Thread-safe store of rolling provider statistics.

    Example:
        monitor = PerformanceMonitor()
        monitor.record_event(PerformanceEvent(provider="Gemini", success=True, response_time=850))
        if not monitor.should_avoid_provider("Gemini"):
            ...
    """

    def __init__(
        self,
        max_events: int = DEFAULT_MAX_EVENTS,
        min_requests: int = DEFAULT_MIN_REQUESTS,
        min_success_rate: float = DEFAULT_MIN_SUCCESS_RATE,
        rate_limit_cooldown: timedelta = DEFAULT_RATE_LIMIT_COOLDOWN,
        clock: Callable[[], datetime] = utcnow,
    ):
        """Initialize the monitor.

        Args:
            max_events: Capacity of the recent-event ring buffer.
            min_requests: Requests needed before a low success rate counts.
            min_success_rate: Success rate below which a provider is avoided.
            rate_limit_cooldown: How long a rate-limited provider is avoided
                after its last failure.
            clock: Returns the current aware UTC time. Injectable for tests.
        """
        self.max_events = max_events
        self.min_requests = min_requests
        self.min_success_rate = min_success_rate
        self.rate_limit_cooldown = rate_limit_cooldown
        self._clock = clock

        self._metrics: Dict[str, ProviderMetrics] = {}
        self._recent_events: Deque[PerformanceEvent] = deque(maxlen=max_events)
        self._lock = threading.Lock()

    def now(self) -> datetime:
        """Return the monitor's notion of the current time."""
        return self._clock()

    def record_event(self, event: PerformanceEvent) -> None:
        """Fold a call outcome into the provider's metrics."""
        with self._lock:
            metrics = self._metrics.get(event.provider)
            if metrics is None:
                metrics = ProviderMetrics(provider=event.provider)
                self._metrics[event.provider] = metrics

            metrics.request_count += 1

            if event.success:
                metrics.success_count += 1
                # Incremental running mean over successful calls
                metrics.average_response_time += (
                    event.response_time - metrics.average_response_time
                ) / metrics.success_count
            else:
                metrics.failure_count += 1
                metrics.last_failure = event.timestamp
                if is_rate_limit_message(event.error):
                    metrics.rate_limit_hits += 1

            # deque(maxlen) drops the oldest entry on overflow
            self._recent_events.append(event)

        logger.debug(
            f"Performance: {event.provider} - "
            f"{'SUCCESS' if event.success else 'FAILURE'} - {event.response_time:.0f}ms"
        )

    def get_provider_metrics(self, provider: str) -> Optional[ProviderMetrics]:
        """Return a snapshot of one provider's metrics, or None if untracked."""
        with self._lock:
            metrics = self._metrics.get(provider)
            return copy.copy(metrics) if metrics is not None else None

    def get_all_metrics(self) -> List[ProviderMetrics]:
        """Return snapshots of every tracked provider's metrics."""
        with self._lock:
            return [copy.copy(m) for m in self._metrics.values()]

    def get_success_rate(self, provider: str) -> float:
        """Return success_count / request_count, or 0 when there is no data."""
        with self._lock:
            return self._success_rate(self._metrics.get(provider))

    def should_avoid_provider(self, provider: str) -> bool:
        """Return True if the provider should be skipped right now.

        A provider is avoided when it has enough requests and a poor success
        rate, or when it hit a rate limit within the cooldown window.
        Unknown providers are never avoided.
        """
        now = self._clock()
        with self._lock:
            return self._should_avoid(self._metrics.get(provider), now)

    def get_best_provider(self) -> Optional[str]:
        """Return the healthiest provider name, or None if none qualifies.

        Higher success rate wins; ties go to the lower average response time.
        """
        now = self._clock()
        with self._lock:
            candidates = [
                m for m in self._metrics.values() if not self._should_avoid(m, now)
            ]
            if not candidates:
                return None
            best = min(
                candidates,
                key=lambda m: (-self._success_rate(m), m.average_response_time),
            )
            return best.provider

    def get_recent_events(self, limit: int = 10) -> List[PerformanceEvent]:
        """Return up to `limit` most recent events, oldest first."""
        if limit <= 0:
            return []
        with self._lock:
            events = list(self._recent_events)
        return events[-limit:]

    def reset_provider_metrics(self, provider: str) -> None:
        """Drop a provider's metrics and its buffered events."""
        with self._lock:
            self._metrics.pop(provider, None)
            kept = [e for e in self._recent_events if e.provider != provider]
            self._recent_events = deque(kept, maxlen=self.max_events)
        logger.info(f"Performance metrics reset for provider {provider}")

    def clear_all_metrics(self) -> None:
        """Drop all metrics and buffered events."""
        with self._lock:
            self._metrics.clear()
            self._recent_events.clear()
        logger.info("All performance metrics cleared")

    def get_summary(self) -> PerformanceSummary:
        """Return aggregate counters across all providers."""
        with self._lock:
            total_requests = sum(m.request_count for m in self._metrics.values())
            total_successes = sum(m.success_count for m in self._metrics.values())
            total_failures = sum(m.failure_count for m in self._metrics.values())
            provider_count = len(self._metrics)

        return PerformanceSummary(
            total_requests=total_requests,
            total_successes=total_successes,
            total_failures=total_failures,
            overall_success_rate=(
                total_successes / total_requests if total_requests > 0 else 0.0
            ),
            provider_count=provider_count,
        )

    # Callers must hold self._lock

    @staticmethod
    def _success_rate(metrics: Optional[ProviderMetrics]) -> float:
        if metrics is None or metrics.request_count == 0:
            return 0.0
        return metrics.success_count / metrics.request_count

    def _should_avoid(self, metrics: Optional[ProviderMetrics], now: datetime) -> bool:
        if metrics is None:
            return False

        if (
            metrics.request_count >= self.min_requests
            and self._success_rate(metrics) < self.min_success_rate
        ):
            return True

        if metrics.rate_limit_hits > 0 and metrics.last_failure is not None:
            if metrics.last_failure > now - self.rate_limit_cooldown:
                return True

        return False


async def measure_performance(
    monitor: PerformanceMonitor,
    provider: str,
    operation: Callable[[], Awaitable[T]],
) -> T:
    """Await `operation`, timing it and recording the outcome on `monitor`.

    Exceptions are recorded as failures (with their message) and re-raised.
    """
    start_time = time.perf_counter()

    try:
        result = await operation()
    except Exception as e:
        response_time = (time.perf_counter() - start_time) * 1000
        monitor.record_event(
            PerformanceEvent(
                provider=provider,
                success=False,
                response_time=response_time,
                error=str(e),
                timestamp=monitor.now(),
            )
        )
        raise

    response_time = (time.perf_counter() - start_time) * 1000
    monitor.record_event(
        PerformanceEvent(
            provider=provider,
            success=True,
            response_time=response_time,
            timestamp=monitor.now(),
        )
    )
    return result
