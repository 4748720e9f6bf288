"""Shared test configuration and fixtures."""
from datetime import datetime, timedelta, timezone

import pytest

# =============================================================================
# Environment Reset
# =============================================================================


@pytest.fixture(autouse=True)
def reset_env(monkeypatch):
    """Clear environment variables before each test."""
    for var in (
        "GEMINI_API_KEY",
        "OPENROUTER_API_KEY",
        "READMEGEN_CONFIG",
        "READMEGEN_PROVIDER_ORDER",
        "READMEGEN_DEFAULT_PROVIDER",
        "READMEGEN_PROVIDER_TIMEOUT",
        "READMEGEN_HOST",
        "READMEGEN_PORT",
        "READMEGEN_API_TOKEN",
    ):
        monkeypatch.delenv(var, raising=False)


# =============================================================================
# Clock
# =============================================================================


class FakeClock:
    """Manually advanced clock for time-dependent monitor tests."""

    def __init__(self, start: datetime = datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc)):
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


@pytest.fixture
def clock():
    return FakeClock()


# =============================================================================
# Custom Pytest Markers
# =============================================================================


def pytest_configure(config):
    """Register custom markers."""
    config.addinivalue_line("markers", "slow: marks tests as slow (deselect with '-m \"not slow\"')")
    config.addinivalue_line("markers", "integration: marks tests as integration tests")
