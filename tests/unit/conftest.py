"""Unit test fixtures."""

import pytest

from fuzzysearch.config.settings import Settings, get_settings

_ENV_VARS = [
    "FUZZYSEARCH_API_KEY",
    "FUZZYSEARCH_BASE_URL",
    "FUZZYSEARCH_TIMEOUT",
    "FUZZYSEARCH_MAX_CONCURRENT",
    "FUZZYSEARCH_RATE_LIMIT",
    "ENABLE_TRACING",
    "ENABLE_LOCAL_HASH",
    "SENTRY_DSN",
    "LOG_LEVEL",
]


@pytest.fixture
def clean_env(monkeypatch, tmp_path):
    """Isolate tests from the developer's environment and .env file."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)
    get_settings.cache_clear()
    yield monkeypatch
    get_settings.cache_clear()


@pytest.fixture
def mock_settings(clean_env):
    """Settings with safe test defaults (no real keys/DSNs)."""
    return Settings(
        fuzzysearch_api_key="test-api-key",
        fuzzysearch_base_url="https://api.test",
        sentry_dsn=None,
        enable_tracing=False,
        enable_local_hash=False,
    )
