"""Base provider abstraction for README text generation.

Every provider exposes the same three members: `name`, `is_available()`
and `generate(prompt)`. Subclasses implement only the remote call in
`_complete()`; timing, monitor reporting and transport-error mapping
live here so they apply identically to every provider.
"""

import logging
from abc import ABC, abstractmethod
from typing import Any, Dict, Optional

import httpx

from ..performance import PerformanceMonitor, measure_performance
from .errors import ProviderError, ProviderFailure, RateLimitError

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT_SECONDS = 60.0


def parse_retry_after(value: Optional[str]) -> Optional[int]:
    """Parse a numeric Retry-After header value."""
    if value and value.strip().isdigit():
        return int(value.strip())
    return None


class BaseProvider(ABC):
    """A remote text-generation backend.

    Attributes:
        monitor: PerformanceMonitor receiving one event per generate() call.
            Attached by the README generator; None disables reporting.
    """

    def __init__(
        self,
        api_key: Optional[str],
        model: str,
        base_url: str,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        monitor: Optional[PerformanceMonitor] = None,
    ):
        self._api_key = (api_key or "").strip()
        self.model = model
        self.base_url = base_url
        self.timeout = timeout
        self.monitor = monitor

    @property
    @abstractmethod
    def name(self) -> str:
        """Return the provider name used for metrics and results."""

    def is_available(self) -> bool:
        """Return True if a non-empty credential is configured."""
        return bool(self._api_key)

    def attach_monitor(self, monitor: PerformanceMonitor) -> None:
        """Report future generate() calls to `monitor`."""
        self.monitor = monitor

    async def generate(self, prompt: str) -> str:
        """Generate text for a prompt.

        Raises:
            RateLimitError: The provider reported quota exhaustion.
            ProviderFailure: Any other failure.
        """
        if self.monitor is None:
            return await self._call(prompt)
        return await measure_performance(
            self.monitor, self.name, lambda: self._call(prompt)
        )

    async def _call(self, prompt: str) -> str:
        if not self.is_available():
            raise ProviderFailure(
                f"No API key configured for {self.name}", provider=self.name
            )

        try:
            return await self._complete(prompt)
        except ProviderError:
            raise
        except httpx.TimeoutException as e:
            raise ProviderFailure(
                f"{self.name} request timed out after {self.timeout}s", provider=self.name
            ) from e
        except httpx.HTTPError as e:
            raise ProviderFailure(
                f"{self.name} transport error: {e}", provider=self.name
            ) from e

    @abstractmethod
    async def _complete(self, prompt: str) -> str:
        """Issue one remote completion call and return the generated text."""

    def _decode_response(self, response: httpx.Response) -> Dict[str, Any]:
        """Check status and content type, returning the decoded JSON body.

        Raises:
            RateLimitError: On HTTP 429.
            ProviderFailure: On any other non-2xx status or a non-JSON body.
        """
        if response.status_code == 429:
            raise RateLimitError(
                provider=self.name,
                retry_after=parse_retry_after(response.headers.get("Retry-After")),
                detail=f"HTTP 429: {self._error_message(response)}",
            )

        if not response.is_success:
            raise ProviderFailure(
                f"{self.name} API error: {response.status_code} - "
                f"{self._error_message(response)}",
                provider=self.name,
                status_code=response.status_code,
            )

        content_type = response.headers.get("content-type", "")
        if "application/json" not in content_type:
            raise ProviderFailure(
                f"{self.name} returned unexpected content type '{content_type or 'none'}'",
                provider=self.name,
                status_code=response.status_code,
            )

        try:
            data = response.json()
        except ValueError as e:
            raise ProviderFailure(
                f"{self.name} returned malformed JSON: {e}",
                provider=self.name,
                status_code=response.status_code,
            ) from e

        if not isinstance(data, dict):
            raise ProviderFailure(
                f"{self.name} returned unexpected response shape",
                provider=self.name,
                status_code=response.status_code,
            )
        return data

    @staticmethod
    def _error_message(response: httpx.Response) -> str:
        """Extract the remote error message from an error response."""
        try:
            data = response.json()
        except ValueError:
            return response.text[:200] or "Unknown error"

        if isinstance(data, dict):
            error = data.get("error")
            if isinstance(error, dict) and error.get("message"):
                return str(error["message"])
            if isinstance(error, str):
                return error
        return "Unknown error"
