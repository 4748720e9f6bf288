"""Google Gemini provider.

Calls the Gemini REST `generateContent` endpoint directly, without an
intermediate router.
"""

from typing import Any, Dict, Optional

import httpx

from ..performance import PerformanceMonitor
from .base import DEFAULT_TIMEOUT_SECONDS, BaseProvider
from .errors import ProviderFailure, RateLimitError

GEMINI_API_URL = "https://generativelanguage.googleapis.com/v1beta"
DEFAULT_GEMINI_MODEL = "gemini-1.5-flash"


class GeminiProvider(BaseProvider):
    """Direct Gemini API provider."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_GEMINI_MODEL,
        base_url: str = GEMINI_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        monitor: Optional[PerformanceMonitor] = None,
    ):
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url,
            timeout=timeout,
            monitor=monitor,
        )

    @property
    def name(self) -> str:
        return "Gemini"

    @property
    def endpoint(self) -> str:
        return f"{self.base_url.rstrip('/')}/models/{self.model}:generateContent"

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        """Build the generateContent request body."""
        return {
            "contents": [
                {"role": "user", "parts": [{"text": prompt}]},
            ],
        }

    async def _send(self, payload: Dict[str, Any]) -> httpx.Response:
        """POST the payload. Separate from _complete so tests can stub the wire."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(
                self.endpoint,
                headers={"Content-Type": "application/json"},
                # Google uses URL param for API key
                params={"key": self._api_key},
                json=payload,
            )

    async def _complete(self, prompt: str) -> str:
        response = await self._send(self.build_payload(prompt))

        if not response.is_success and self._is_resource_exhausted(response):
            raise RateLimitError(
                provider=self.name,
                status_code=response.status_code,
                detail=f"HTTP {response.status_code}: quota exhausted",
            )

        data = self._decode_response(response)
        return self._extract_text(data)

    def _extract_text(self, data: Dict[str, Any]) -> str:
        candidates = data.get("candidates")
        if not candidates:
            block_reason = data.get("promptFeedback", {}).get("blockReason")
            if block_reason:
                raise ProviderFailure(
                    f"Gemini blocked the prompt: {block_reason}", provider=self.name
                )
            raise ProviderFailure("Gemini returned no candidates", provider=self.name)

        parts = candidates[0].get("content", {}).get("parts", [])
        return "".join(part.get("text", "") for part in parts)

    @staticmethod
    def _is_resource_exhausted(response: httpx.Response) -> bool:
        try:
            data = response.json()
        except ValueError:
            return False
        if not isinstance(data, dict):
            return False
        error = data.get("error")
        return isinstance(error, dict) and error.get("status") == "RESOURCE_EXHAUSTED"
