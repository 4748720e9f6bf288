"""Text-generation providers for readmegen.

Each provider wraps one remote completion endpoint behind the same small
interface:

- `name`: provider name used in metrics and results
- `is_available()`: whether a credential is configured
- `generate(prompt)`: one remote call, timed and reported to the monitor

Example usage:
    from readmegen.gateway import OpenRouterProvider
    from readmegen.performance import PerformanceMonitor

    provider = OpenRouterProvider(api_key="sk-or-...", monitor=PerformanceMonitor())
    text = await provider.generate("Write a README for ...")
"""

from .base import BaseProvider
from .errors import (
    RATE_LIMIT_EXCEEDED,
    ProviderError,
    ProviderFailure,
    RateLimitError,
)
from .gemini import GeminiProvider
from .openrouter import OpenRouterProvider

__all__ = [
    # Base
    "BaseProvider",
    # Errors
    "RATE_LIMIT_EXCEEDED",
    "ProviderError",
    "ProviderFailure",
    "RateLimitError",
    # Providers
    "GeminiProvider",
    "OpenRouterProvider",
]
