"""Errors raised by the README generator.

These are the only errors that leave ReadmeGenerator.generate_readme();
individual provider failures are absorbed by failover.
"""

from typing import Optional


class GeneratorError(Exception):
    """Base class for README generator errors."""


class ConfigurationError(GeneratorError):
    """No providers are configured. Not retryable."""


class ExhaustionError(GeneratorError):
    """Every configured provider was tried or skipped without success.

    Attributes:
        last_error: Message of the last provider failure, if any attempt ran.
    """

    def __init__(self, message: str, last_error: Optional[str] = None):
        super().__init__(message)
        self.last_error = last_error


class NoAvailableProviderError(ExhaustionError):
    """Every provider was skipped as unhealthy; none was attempted."""

    def __init__(self, message: str = "No available AI providers"):
        super().__init__(message)
