"""OpenRouter provider.

Routes README generation through OpenRouter's OpenAI-compatible chat
completions API, which multiplexes many upstream models.
"""

from typing import Any, Dict, Optional

import httpx

from ..performance import PerformanceMonitor
from .base import DEFAULT_TIMEOUT_SECONDS, BaseProvider

# Default constants
OPENROUTER_API_URL = "https://openrouter.ai/api/v1/chat/completions"
DEFAULT_OPENROUTER_MODEL = "anthropic/claude-3.5-sonnet"
DEFAULT_REFERER = "http://localhost:8000"
DEFAULT_APP_TITLE = "readmegen"


class OpenRouterProvider(BaseProvider):
    """OpenRouter chat-completions provider."""

    def __init__(
        self,
        api_key: Optional[str],
        model: str = DEFAULT_OPENROUTER_MODEL,
        base_url: str = OPENROUTER_API_URL,
        timeout: float = DEFAULT_TIMEOUT_SECONDS,
        max_tokens: int = 4000,
        temperature: float = 0.7,
        referer: str = DEFAULT_REFERER,
        app_title: str = DEFAULT_APP_TITLE,
        monitor: Optional[PerformanceMonitor] = None,
    ):
        """Initialize the OpenRouter provider.

        Args:
            api_key: OpenRouter API key.
            model: OpenRouter model identifier.
            base_url: Chat completions endpoint.
            timeout: Request timeout in seconds.
            max_tokens: Max tokens to generate.
            temperature: Sampling temperature.
            referer: Sent as HTTP-Referer for OpenRouter app attribution.
            app_title: Sent as X-Title for OpenRouter app attribution.
            monitor: Optional monitor for timing events.
        """
        super().__init__(
            api_key=api_key,
            model=model,
            base_url=base_url,
            timeout=timeout,
            monitor=monitor,
        )
        self.max_tokens = max_tokens
        self.temperature = temperature
        self.referer = referer
        self.app_title = app_title

    @property
    def name(self) -> str:
        return "OpenRouter"

    def build_headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self._api_key}",
            "Content-Type": "application/json",
            "HTTP-Referer": self.referer,
            "X-Title": self.app_title,
        }

    def build_payload(self, prompt: str) -> Dict[str, Any]:
        """Build the chat completions request body."""
        return {
            "model": self.model,
            "messages": [{"role": "user", "content": prompt}],
            "max_tokens": self.max_tokens,
            "temperature": self.temperature,
        }

    async def _send(self, payload: Dict[str, Any]) -> httpx.Response:
        """POST the payload. Separate from _complete so tests can stub the wire."""
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.post(self.base_url, headers=self.build_headers(), json=payload)

    async def _complete(self, prompt: str) -> str:
        response = await self._send(self.build_payload(prompt))
        data = self._decode_response(response)

        choices = data.get("choices") or []
        if not choices:
            return ""
        message = choices[0].get("message") or {}
        return message.get("content") or ""
