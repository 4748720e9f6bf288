"""Performance metric types for AI provider monitoring.

Core dataclasses describing per-provider call outcomes and the rolling
statistics derived from them.
"""

from dataclasses import asdict, dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, Optional


def utcnow() -> datetime:
    """Return the current time as an aware UTC datetime."""
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class PerformanceEvent:
    """Outcome of a single provider call.

    Attributes:
        provider: Provider name (e.g., "Gemini")
        success: Whether the call produced text
        response_time: Elapsed wall time in milliseconds
        error: Error message for failed calls
        timestamp: When the call finished (aware UTC)
    """

    provider: str
    success: bool
    response_time: float
    error: Optional[str] = None
    timestamp: datetime = field(default_factory=utcnow)

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict."""
        data = asdict(self)
        data["timestamp"] = self.timestamp.isoformat()
        return data


@dataclass
class ProviderMetrics:
    """Rolling statistics for one provider.

    request_count always equals success_count + failure_count.
    average_response_time covers successful calls only.
    rate_limit_hits counts the failures whose error text reported a
    quota or rate limit condition.
    """

    provider: str
    request_count: int = 0
    success_count: int = 0
    failure_count: int = 0
    average_response_time: float = 0.0
    last_failure: Optional[datetime] = None
    rate_limit_hits: int = 0

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to a JSON-friendly dict."""
        data = asdict(self)
        data["last_failure"] = self.last_failure.isoformat() if self.last_failure else None
        return data


@dataclass
class PerformanceSummary:
    """Aggregate counters across all tracked providers."""

    total_requests: int
    total_successes: int
    total_failures: int
    overall_success_rate: float
    provider_count: int

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
