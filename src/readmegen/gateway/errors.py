"""Provider error types.

A provider reports every failed call with a ProviderError subclass so the
README generator can fail over uniformly. RateLimitError is split out for
logging and diagnostics only.
"""

from typing import Optional

# Marker carried in every rate-limit message so callers can detect it in text
RATE_LIMIT_EXCEEDED = "RATE_LIMIT_EXCEEDED"


class ProviderError(Exception):
    """Base class for a single provider's failure."""

    def __init__(
        self,
        message: str,
        provider: Optional[str] = None,
        status_code: Optional[int] = None,
    ):
        super().__init__(message)
        self.message = message
        self.provider = provider
        self.status_code = status_code


class RateLimitError(ProviderError):
    """The provider reported quota exhaustion or too many requests."""

    def __init__(
        self,
        provider: str,
        status_code: Optional[int] = 429,
        retry_after: Optional[int] = None,
        detail: Optional[str] = None,
    ):
        message = f"{RATE_LIMIT_EXCEEDED}: {provider} rate limit exceeded"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message, provider=provider, status_code=status_code)
        self.retry_after = retry_after


class ProviderFailure(ProviderError):
    """Any other remote, transport or response-parsing failure."""
