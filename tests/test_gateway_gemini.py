"""Tests for the direct Gemini provider."""

from unittest.mock import AsyncMock, patch

import httpx
import pytest


def _response(status_code, json=None, text=None, headers=None):
    request = httpx.Request(
        "POST",
        "https://generativelanguage.googleapis.com/v1beta/models/gemini-1.5-flash:generateContent",
    )
    if json is not None:
        return httpx.Response(status_code, json=json, headers=headers, request=request)
    return httpx.Response(status_code, text=text or "", headers=headers, request=request)


def _candidate(*texts):
    return {"candidates": [{"content": {"parts": [{"text": t} for t in texts]}}]}


class TestGeminiProviderBasics:
    """Test provider identity and request construction."""

    def test_name(self):
        from readmegen.gateway import GeminiProvider

        assert GeminiProvider(api_key="g").name == "Gemini"

    def test_endpoint_uses_model(self):
        from readmegen.gateway import GeminiProvider

        provider = GeminiProvider(api_key="g", model="gemini-1.5-pro")

        assert provider.endpoint == (
            "https://generativelanguage.googleapis.com/v1beta/models/"
            "gemini-1.5-pro:generateContent"
        )

    def test_payload_is_single_user_turn(self):
        from readmegen.gateway import GeminiProvider

        payload = GeminiProvider(api_key="g").build_payload("hello")

        assert payload == {"contents": [{"role": "user", "parts": [{"text": "hello"}]}]}

    def test_unavailable_without_key(self):
        from readmegen.gateway import GeminiProvider

        assert GeminiProvider(api_key=None).is_available() is False


class TestGeminiGenerate:
    """Test generate() against stubbed responses."""

    @pytest.mark.asyncio
    async def test_joins_candidate_parts(self):
        from readmegen.gateway import GeminiProvider

        provider = GeminiProvider(api_key="g")
        with patch.object(
            provider, "_send", new_callable=AsyncMock,
            return_value=_response(200, json=_candidate("# Title\n", "Body")),
        ):
            assert await provider.generate("prompt") == "# Title\nBody"

    @pytest.mark.asyncio
    async def test_no_candidates_raises_failure(self):
        from readmegen.gateway import GeminiProvider, ProviderFailure

        provider = GeminiProvider(api_key="g")
        with patch.object(
            provider, "_send", new_callable=AsyncMock,
            return_value=_response(200, json={"candidates": []}),
        ):
            with pytest.raises(ProviderFailure, match="no candidates"):
                await provider.generate("prompt")

    @pytest.mark.asyncio
    async def test_blocked_prompt_reports_reason(self):
        from readmegen.gateway import GeminiProvider, ProviderFailure

        provider = GeminiProvider(api_key="g")
        with patch.object(
            provider, "_send", new_callable=AsyncMock,
            return_value=_response(200, json={"promptFeedback": {"blockReason": "SAFETY"}}),
        ):
            with pytest.raises(ProviderFailure, match="SAFETY"):
                await provider.generate("prompt")

    @pytest.mark.asyncio
    async def test_429_raises_rate_limit_error(self):
        from readmegen.gateway import GeminiProvider, RateLimitError

        provider = GeminiProvider(api_key="g")
        with patch.object(
            provider, "_send", new_callable=AsyncMock,
            return_value=_response(429, json={"error": {"message": "slow down"}}),
        ):
            with pytest.raises(RateLimitError) as exc_info:
                await provider.generate("prompt")

        assert "RATE_LIMIT_EXCEEDED" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_resource_exhausted_raises_rate_limit_error(self):
        """Gemini's RESOURCE_EXHAUSTED status is a quota condition."""
        from readmegen.gateway import GeminiProvider, RateLimitError

        provider = GeminiProvider(api_key="g")
        body = {"error": {"code": 403, "status": "RESOURCE_EXHAUSTED", "message": "quota"}}
        with patch.object(
            provider, "_send", new_callable=AsyncMock,
            return_value=_response(403, json=body),
        ):
            with pytest.raises(RateLimitError) as exc_info:
                await provider.generate("prompt")

        assert exc_info.value.status_code == 403

    @pytest.mark.asyncio
    async def test_bad_request_raises_failure(self):
        from readmegen.gateway import GeminiProvider, ProviderFailure

        provider = GeminiProvider(api_key="g")
        body = {"error": {"code": 400, "status": "INVALID_ARGUMENT", "message": "bad key"}}
        with patch.object(
            provider, "_send", new_callable=AsyncMock,
            return_value=_response(400, json=body),
        ):
            with pytest.raises(ProviderFailure) as exc_info:
                await provider.generate("prompt")

        assert "Gemini API error: 400 - bad key" in str(exc_info.value)

    @pytest.mark.asyncio
    async def test_malformed_json_raises_failure(self):
        from readmegen.gateway import GeminiProvider, ProviderFailure

        provider = GeminiProvider(api_key="g")
        with patch.object(
            provider, "_send", new_callable=AsyncMock,
            return_value=_response(
                200, text="{not json", headers={"content-type": "application/json"}
            ),
        ):
            with pytest.raises(ProviderFailure, match="malformed JSON"):
                await provider.generate("prompt")

    @pytest.mark.asyncio
    async def test_failure_recorded_on_monitor(self):
        from readmegen.gateway import GeminiProvider, ProviderFailure
        from readmegen.performance import PerformanceMonitor

        monitor = PerformanceMonitor()
        provider = GeminiProvider(api_key="g", monitor=monitor)
        with patch.object(
            provider, "_send", new_callable=AsyncMock,
            side_effect=httpx.ConnectError("refused"),
        ):
            with pytest.raises(ProviderFailure):
                await provider.generate("prompt")

        metrics = monitor.get_provider_metrics("Gemini")
        assert metrics.failure_count == 1
        assert metrics.rate_limit_hits == 0
