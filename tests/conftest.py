"""Shared pytest fixtures for Aura tests.

Fixtures are organized by category:
- Environment fixtures: isolate tests from real provider keys
- Settings fixtures: resolvers bound to temporary snapshot files
- Analysis fixtures: mock analyzer and request payloads
"""

from pathlib import Path
from typing import Any

import pytest

from aura.config import PROVIDER_ENV_KEYS, ConfigSource
from aura.llm.mock import MockAnalyzer
from aura.settings import ConfigurationResolver

# =============================================================================
# Environment Fixtures
# =============================================================================


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove provider and database variables so tests see a blank environment."""
    for env_key in PROVIDER_ENV_KEYS.values():
        monkeypatch.delenv(env_key, raising=False)
    for name in (
        "AURA_DB_HOST",
        "AURA_DB_PORT",
        "AURA_DB_USER",
        "AURA_DB_PASSWORD",
        "AURA_DB_NAME",
        "AURA_DB_MAX_POOL_SIZE",
        "AURA_DB_SSL",
        "AURA_EMBEDDING_API_KEY",
    ):
        monkeypatch.delenv(name, raising=False)


# =============================================================================
# Settings Fixtures
# =============================================================================


@pytest.fixture
def settings_path(tmp_path: Path) -> Path:
    """Return a snapshot location inside the test's temp directory."""
    return tmp_path / "settings.json"


@pytest.fixture
def resolver(settings_path: Path) -> ConfigurationResolver:
    """Return a fresh resolver with an empty environment."""
    return ConfigurationResolver(source=ConfigSource(environ={}), path=settings_path)


@pytest.fixture
def env_resolver(settings_path: Path) -> ConfigurationResolver:
    """Return a resolver whose environment provides both provider keys."""
    source = ConfigSource(environ={"OPENAI_API_KEY": "sk-openai-env", "GOOGLE_API_KEY": "g-env"})
    return ConfigurationResolver(source=source, path=settings_path)


# =============================================================================
# Analysis Fixtures
# =============================================================================


@pytest.fixture
def mock_analyzer() -> MockAnalyzer:
    """Return a mock analyzer without the simulated delay."""
    return MockAnalyzer(delay=0)


@pytest.fixture
def design_payload() -> dict[str, Any]:
    """Return a valid reverse-engineering request body (mock mode)."""
    return {
        "inputType": "image",
        "designData": "Login screen with email, password and a 'Sign in' button",
        "analysisLevel": "story",
        "extractUserFlows": True,
        "includeAccessibility": True,
        "useRealLLM": False,
    }
