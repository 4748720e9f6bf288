"""Tests for the HTTP server.

These tests require the optional [http] dependencies.
Install with: pip install "readmegen[http]"
"""

import pytest

# Skip all tests in this module if HTTP deps not installed
fastapi = pytest.importorskip(
    "fastapi",
    reason="HTTP dependencies not installed. Install with: pip install 'readmegen[http]'",
)
from fastapi.testclient import TestClient

from readmegen.gateway import BaseProvider

GENERATE_BODY = {
    "metadata": {
        "name": "demo",
        "description": "A demo project",
        "language": "Python",
        "license": {"name": "MIT License", "key": "mit"},
    },
    "options": {"tone": "casual"},
}


class ScriptedProvider(BaseProvider):
    """Provider that returns or raises a fixed outcome."""

    def __init__(self, name, outcome):
        super().__init__(api_key="key", model="fake", base_url="http://fake.invalid")
        self._name = name
        self.outcome = outcome

    @property
    def name(self):
        return self._name

    async def _complete(self, prompt):
        if isinstance(self.outcome, Exception):
            raise self.outcome
        return self.outcome


def _client(*providers):
    from readmegen.generator import ReadmeGenerator
    from readmegen.http_server import create_app
    from readmegen.unified_config import UnifiedConfig

    generator = ReadmeGenerator(list(providers))
    app = create_app(config=UnifiedConfig(), generator=generator)
    return TestClient(app), generator


class TestHealthEndpoint:
    """Tests for the /health endpoint."""

    def test_health_returns_ok(self):
        """Health endpoint should return status ok."""
        from readmegen.http_server import app

        client = TestClient(app)
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok", "service": "readmegen"}


class TestAppConstruction:
    """Tests for the lazily built module-level app."""

    def test_import_does_not_resolve_config(self, monkeypatch):
        """A bad environment surfaces when the app is built, not at import."""
        import importlib

        import readmegen.http_server as http_server

        monkeypatch.setenv("READMEGEN_PORT", "not-a-port")
        http_server = importlib.reload(http_server)

        with pytest.raises(ValueError):
            http_server.get_app()

    def test_app_attribute_is_cached(self):
        import readmegen.http_server as http_server

        assert http_server.app is http_server.app
        assert http_server.app is http_server.get_app()

    def test_unknown_attribute_raises(self):
        import readmegen.http_server as http_server

        with pytest.raises(AttributeError):
            http_server.not_a_thing


class TestGenerateEndpoint:
    """Tests for POST /v1/readme/generate."""

    def test_generates_readme(self):
        client, _ = _client(ScriptedProvider("Gemini", "```markdown\n# Demo\nHello\n```"))

        response = client.post("/v1/readme/generate", json=GENERATE_BODY)

        assert response.status_code == 200
        data = response.json()
        assert data["markdown"] == "# Demo\nHello"
        assert data["provider"] == "Gemini"
        assert data["cached"] is False
        assert data["generated_at"]

    def test_fails_over_between_providers(self):
        from readmegen.gateway import ProviderFailure

        client, generator = _client(
            ScriptedProvider("Gemini", ProviderFailure("down")),
            ScriptedProvider("OpenRouter", "# Demo"),
        )

        response = client.post("/v1/readme/generate", json=GENERATE_BODY)

        assert response.status_code == 200
        assert response.json()["provider"] == "OpenRouter"
        assert generator.monitor.get_provider_metrics("Gemini").failure_count == 1

    def test_rate_limit_maps_to_429(self):
        from readmegen.gateway import RateLimitError

        client, _ = _client(ScriptedProvider("Gemini", RateLimitError(provider="Gemini")))

        response = client.post("/v1/readme/generate", json=GENERATE_BODY)

        assert response.status_code == 429
        assert response.headers["Retry-After"] == "60"
        assert response.json()["detail"]["retry_after"] == 60

    def test_other_failures_map_to_502(self):
        from readmegen.gateway import ProviderFailure

        client, _ = _client(ScriptedProvider("Gemini", ProviderFailure("HTTP 500")))

        response = client.post("/v1/readme/generate", json=GENERATE_BODY)

        assert response.status_code == 502
        assert "All AI providers failed" in response.json()["detail"]

    def test_no_configured_providers_returns_503(self):
        from readmegen.http_server import create_app
        from readmegen.unified_config import UnifiedConfig

        client = TestClient(create_app(config=UnifiedConfig()))

        response = client.post("/v1/readme/generate", json=GENERATE_BODY)

        assert response.status_code == 503
        assert "GEMINI_API_KEY" in response.json()["detail"]

    def test_invalid_tone_rejected(self):
        client, _ = _client(ScriptedProvider("Gemini", "# ok"))
        body = {"metadata": {"name": "demo"}, "options": {"tone": "sarcastic"}}

        response = client.post("/v1/readme/generate", json=body)

        assert response.status_code == 422

    def test_missing_name_rejected(self):
        client, _ = _client(ScriptedProvider("Gemini", "# ok"))

        response = client.post("/v1/readme/generate", json={"metadata": {}})

        assert response.status_code == 422


class TestAuthentication:
    """Tests for optional bearer-token auth."""

    def test_token_required_when_configured(self, monkeypatch):
        monkeypatch.setenv("READMEGEN_API_TOKEN", "secret")
        client, _ = _client(ScriptedProvider("Gemini", "# ok"))

        response = client.post("/v1/readme/generate", json=GENERATE_BODY)

        assert response.status_code == 401

    def test_valid_token_accepted(self, monkeypatch):
        monkeypatch.setenv("READMEGEN_API_TOKEN", "secret")
        client, _ = _client(ScriptedProvider("Gemini", "# ok"))

        response = client.post(
            "/v1/readme/generate",
            json=GENERATE_BODY,
            headers={"Authorization": "Bearer secret"},
        )

        assert response.status_code == 200

    def test_health_is_public(self, monkeypatch):
        monkeypatch.setenv("READMEGEN_API_TOKEN", "secret")
        client, _ = _client()

        assert client.get("/health").status_code == 200


class TestProvidersEndpoint:
    """Tests for GET /v1/providers."""

    def test_lists_providers(self):
        client, _ = _client(
            ScriptedProvider("Gemini", "# ok"), ScriptedProvider("OpenRouter", "# ok")
        )

        response = client.get("/v1/providers")

        assert response.status_code == 200
        assert response.json() == {
            "providers": ["Gemini", "OpenRouter"],
            "current_provider": "Gemini",
        }


class TestPerformanceEndpoints:
    """Tests for GET/DELETE /v1/performance."""

    def test_summary_after_generation(self):
        client, _ = _client(ScriptedProvider("Gemini", "# ok"))
        client.post("/v1/readme/generate", json=GENERATE_BODY)

        response = client.get("/v1/performance")

        assert response.status_code == 200
        data = response.json()
        assert data["summary"]["total_requests"] == 1
        assert data["summary"]["total_successes"] == 1
        assert data["best_provider"] == "Gemini"
        assert data["providers"][0]["provider"] == "Gemini"
        assert data["providers"][0]["should_avoid"] is False
        assert len(data["recent_events"]) == 1

    def test_single_provider_metrics(self):
        client, _ = _client(ScriptedProvider("Gemini", "# ok"))
        client.post("/v1/readme/generate", json=GENERATE_BODY)

        response = client.get("/v1/performance", params={"provider": "Gemini"})

        assert response.status_code == 200
        data = response.json()
        assert data["provider"]["request_count"] == 1
        assert data["success_rate"] == 1.0
        assert data["should_avoid"] is False

    def test_unknown_provider_returns_404(self):
        client, _ = _client(ScriptedProvider("Gemini", "# ok"))

        response = client.get("/v1/performance", params={"provider": "Nobody"})

        assert response.status_code == 404

    def test_reset_single_provider(self):
        client, generator = _client(ScriptedProvider("Gemini", "# ok"))
        client.post("/v1/readme/generate", json=GENERATE_BODY)

        response = client.delete("/v1/performance", params={"provider": "Gemini"})

        assert response.json() == {"message": "Metrics reset for provider: Gemini"}
        assert generator.monitor.get_provider_metrics("Gemini") is None

    def test_clear_all(self):
        client, generator = _client(ScriptedProvider("Gemini", "# ok"))
        client.post("/v1/readme/generate", json=GENERATE_BODY)

        response = client.delete("/v1/performance")

        assert response.json() == {"message": "All performance metrics cleared"}
        assert generator.monitor.get_summary().total_requests == 0
