"""Aura configuration system.

Configuration is YAML-based with environment-sourced defaults.
Supports environment variable substitution (${VAR}) in config files.

Configuration file discovery (in priority order):
1. CLI --config argument
2. ./.aura/config.yaml
3. ./aura.yaml

Provider API keys are never read from the config file; they come from the
environment through ConfigSource and are only consulted when the settings
store asks for them.
"""

import logging
import os
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from aura.models.llm_config import ModelSelection, ReverseEngineeringLLMConfig

logger = logging.getLogger(__name__)

# One environment key per supported provider id
PROVIDER_ENV_KEYS = {
    "openai": "OPENAI_API_KEY",
    "google": "GOOGLE_API_KEY",
}

DEFAULT_GATEWAY_URL = "http://localhost:8000/reverse-engineer-design"
DEFAULT_STORE_PATH = "~/.aura/settings.json"
VALID_TRANSPORTS = frozenset({"gateway", "direct"})


# =============================================================================
# Environment Lookup
# =============================================================================


class ConfigSource:
    """Read-only view of environment-supplied defaults.

    Pure lookup: nothing here mutates process or store state.
    """

    def __init__(self, environ: Mapping[str, str] | None = None) -> None:
        """Initialize the source.

        Args:
            environ: Mapping to read from (defaults to os.environ)
        """
        self._environ = environ

    @property
    def environ(self) -> Mapping[str, str]:
        return os.environ if self._environ is None else self._environ

    def get(self, name: str, default: str = "") -> str:
        """Return an environment value or the default."""
        return self.environ.get(name, default)

    def get_int(self, name: str, default: int) -> int:
        """Return an integer environment value, or the default if unset or not a number."""
        value = self.environ.get(name, "").strip()
        if not value:
            return default
        try:
            return int(value)
        except ValueError:
            logger.warning("Ignoring non-numeric %s=%r, using %d", name, value, default)
            return default

    def api_key_for(self, provider_id: str) -> str:
        """Return the default API key for a provider, or "" if none is set."""
        env_key = PROVIDER_ENV_KEYS.get(provider_id)
        if env_key is None:
            return ""
        return self.environ.get(env_key, "").strip()


# =============================================================================
# Configuration Dataclasses
# =============================================================================


@dataclass
class GatewayConfig:
    """Remote LLM gateway settings.

    Attributes:
        url: Endpoint receiving the analysis envelope
        timeout: Request timeout in seconds (None disables the timeout)
        transport: Real-LLM path: "gateway" (HTTP bridge) or "direct" (LiteLLM)
        max_attempts: Real-path attempts before falling back to the mock
    """

    url: str = DEFAULT_GATEWAY_URL
    timeout: float | None = 120.0
    transport: str = "gateway"
    max_attempts: int = 1

    def __post_init__(self) -> None:
        """Validate gateway configuration."""
        if self.transport not in VALID_TRANSPORTS:
            raise ValueError(
                f"Invalid transport: {self.transport}. Valid: {sorted(VALID_TRANSPORTS)}"
            )
        if self.timeout is not None and self.timeout <= 0:
            raise ValueError(f"Gateway timeout must be positive (got {self.timeout})")
        if self.max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1 (got {self.max_attempts})")


@dataclass
class MockConfig:
    """Mock analyzer settings.

    Attributes:
        delay: Simulated processing latency in seconds
    """

    delay: float = 1.5

    def __post_init__(self) -> None:
        if self.delay < 0:
            raise ValueError(f"Mock delay cannot be negative (got {self.delay})")


@dataclass
class StoreConfig:
    """Settings store persistence.

    Attributes:
        path: JSON snapshot location
        strict_models: Reject models that are not in the provider's catalog
    """

    path: str = DEFAULT_STORE_PATH
    strict_models: bool = False

    @property
    def resolved_path(self) -> Path:
        return Path(self.path).expanduser()


@dataclass
class DatabaseConfig:
    """Relational database connection settings."""

    host: str = "localhost"
    port: int = 3306
    user: str = "aura_user"
    password: str = ""
    database: str = "aura_playground"
    max_pool_size: int = 10
    ssl: bool = False

    @classmethod
    def from_env(cls, source: ConfigSource | None = None) -> "DatabaseConfig":
        """Build database settings from AURA_DB_* variables."""
        source = source or ConfigSource()
        return cls(
            host=source.get("AURA_DB_HOST", "localhost"),
            port=source.get_int("AURA_DB_PORT", 3306),
            user=source.get("AURA_DB_USER", "aura_user"),
            password=source.get("AURA_DB_PASSWORD", ""),
            database=source.get("AURA_DB_NAME", "aura_playground"),
            max_pool_size=source.get_int("AURA_DB_MAX_POOL_SIZE", 10),
            ssl=source.get("AURA_DB_SSL") == "true",
        )


@dataclass
class EmbeddingConfig:
    """Embedding provider settings (used by retrieval features)."""

    provider: str = "openai"
    api_key: str = ""
    model: str = "text-embedding-3-small"

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    @classmethod
    def from_env(cls, source: ConfigSource | None = None) -> "EmbeddingConfig":
        """Build embedding settings, falling back to the OpenAI key."""
        source = source or ConfigSource()
        return cls(
            provider=source.get("AURA_EMBEDDING_PROVIDER", "openai"),
            api_key=source.get("AURA_EMBEDDING_API_KEY") or source.get("OPENAI_API_KEY"),
            model=source.get("AURA_EMBEDDING_MODEL", "text-embedding-3-small"),
        )


# Vector dimensions of the embedding models the retrieval store supports
EMBEDDING_DIMENSIONS = {
    "text-embedding-3-small": 1536,
    "text-embedding-3-large": 3072,
    "text-embedding-ada-002": 1536,
}


@dataclass
class AuraConfig:
    """Top-level Aura configuration.

    Attributes:
        gateway: Remote gateway / real-LLM transport settings
        mock: Mock analyzer settings
        store: Settings store persistence
        reverse_engineering: Default design/code selections for a fresh store
        database: Database connection settings
        embedding: Embedding provider settings
    """

    gateway: GatewayConfig = field(default_factory=GatewayConfig)
    mock: MockConfig = field(default_factory=MockConfig)
    store: StoreConfig = field(default_factory=StoreConfig)
    reverse_engineering: ReverseEngineeringLLMConfig = field(
        default_factory=ReverseEngineeringLLMConfig
    )
    database: DatabaseConfig = field(default_factory=DatabaseConfig.from_env)
    embedding: EmbeddingConfig = field(default_factory=EmbeddingConfig.from_env)

    # Runtime overrides (set by loader)
    _config_path: Path | None = field(default=None, repr=False)

    @property
    def config_path(self) -> Path | None:
        """Get the path to the config file that was loaded."""
        return self._config_path


# =============================================================================
# Environment Variable Substitution
# =============================================================================


def substitute_env_vars(value: Any) -> Any:
    """Substitute environment variables in config values.

    Supports ${VAR} syntax for environment variable substitution.
    Example: ${AURA_DB_PASSWORD} -> value of AURA_DB_PASSWORD

    Args:
        value: Config value (string, dict, list, or other)

    Returns:
        Value with environment variables substituted

    Raises:
        ValueError: If a referenced variable is not set
    """
    if isinstance(value, str):
        pattern = re.compile(r"\$\{([^}]+)\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            env_value = os.environ.get(var_name)
            if env_value is None:
                raise ValueError(f"Environment variable not set: {var_name}")
            return env_value

        return pattern.sub(replace_var, value)

    elif isinstance(value, dict):
        return {k: substitute_env_vars(v) for k, v in value.items()}

    elif isinstance(value, list):
        return [substitute_env_vars(v) for v in value]

    return value


# =============================================================================
# Config File Discovery
# =============================================================================


def find_config_file(start_path: Path | None = None) -> Path | None:
    """Find configuration file in standard locations.

    Search order:
    1. ./.aura/config.yaml
    2. ./aura.yaml

    Args:
        start_path: Starting directory for search (defaults to cwd)

    Returns:
        Path to config file if found, None otherwise
    """
    if start_path is None:
        start_path = Path.cwd()

    start_path = start_path.resolve()

    candidates = [
        start_path / ".aura" / "config.yaml",
        start_path / "aura.yaml",
    ]

    for candidate in candidates:
        if candidate.exists():
            return candidate

    return None


# =============================================================================
# Config Loading
# =============================================================================


def _selection(data: Any, default: ModelSelection) -> ModelSelection:
    return ModelSelection.from_dict(data or {}, default)


def load_config_from_dict(data: dict[str, Any]) -> AuraConfig:
    """Load configuration from a dictionary.

    Args:
        data: Configuration dictionary

    Returns:
        AuraConfig instance
    """
    data = substitute_env_vars(data)

    config = AuraConfig()

    if "gateway" in data:
        gateway_data = data["gateway"] or {}
        config.gateway = GatewayConfig(
            url=gateway_data.get("url", config.gateway.url),
            timeout=gateway_data.get("timeout", config.gateway.timeout),
            transport=gateway_data.get("transport", config.gateway.transport),
            max_attempts=gateway_data.get("max_attempts", config.gateway.max_attempts),
        )

    if "mock" in data:
        mock_data = data["mock"] or {}
        config.mock = MockConfig(delay=float(mock_data.get("delay", config.mock.delay)))

    if "store" in data:
        store_data = data["store"] or {}
        config.store = StoreConfig(
            path=store_data.get("path", config.store.path),
            strict_models=bool(store_data.get("strict_models", False)),
        )

    if "reverse_engineering" in data:
        re_data = data["reverse_engineering"] or {}
        defaults = config.reverse_engineering
        config.reverse_engineering = ReverseEngineeringLLMConfig(
            design=_selection(re_data.get("design"), defaults.design),
            code=_selection(re_data.get("code"), defaults.code),
        )

    # Database and embedding: file values override environment defaults
    if "database" in data:
        db_data = data["database"] or {}
        env_db = config.database
        config.database = DatabaseConfig(
            host=db_data.get("host", env_db.host),
            port=int(db_data.get("port", env_db.port)),
            user=db_data.get("user", env_db.user),
            password=db_data.get("password", env_db.password),
            database=db_data.get("name", env_db.database),
            max_pool_size=int(db_data.get("max_pool_size", env_db.max_pool_size)),
            ssl=bool(db_data.get("ssl", env_db.ssl)),
        )

    if "embedding" in data:
        emb_data = data["embedding"] or {}
        env_emb = config.embedding
        config.embedding = EmbeddingConfig(
            provider=emb_data.get("provider", env_emb.provider),
            api_key=emb_data.get("api_key", env_emb.api_key),
            model=emb_data.get("model", env_emb.model),
        )

    return config


def load_config(
    config_path: Path | None = None,
    auto_discover: bool = True,
) -> AuraConfig:
    """Load configuration from file.

    Args:
        config_path: Explicit path to config file
        auto_discover: Whether to search for config file if not specified

    Returns:
        AuraConfig instance

    Raises:
        FileNotFoundError: If config_path specified but doesn't exist
    """
    if config_path is not None:
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")
        found_path = config_path
    elif auto_discover:
        found_path = find_config_file()
    else:
        found_path = None

    if found_path is not None:
        with open(found_path) as f:
            data = yaml.safe_load(f) or {}
        config = load_config_from_dict(data)
        config._config_path = found_path
    else:
        config = AuraConfig()

    return config


# =============================================================================
# Validation
# =============================================================================


@dataclass
class ConfigValidationResult:
    """Result of validating the environment-backed configuration."""

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return not self.errors

    def to_dict(self) -> dict[str, Any]:
        return {"isValid": self.is_valid, "errors": self.errors, "warnings": self.warnings}


def validate_config(config: AuraConfig) -> ConfigValidationResult:
    """Check required database fields and flag risky optional settings.

    Args:
        config: Loaded configuration

    Returns:
        ConfigValidationResult with errors (blocking) and warnings
    """
    result = ConfigValidationResult()
    db = config.database

    if not db.host:
        result.errors.append("AURA_DB_HOST environment variable is required")
    if not db.user:
        result.errors.append("AURA_DB_USER environment variable is required")
    if not db.password:
        result.errors.append("AURA_DB_PASSWORD environment variable is required")
    if not db.database:
        result.errors.append("AURA_DB_NAME environment variable is required")

    if not config.embedding.api_key:
        result.warnings.append(
            "AURA_EMBEDDING_API_KEY not set - RAG functionality will be limited"
        )
    elif config.embedding.model not in EMBEDDING_DIMENSIONS:
        result.warnings.append(
            f"Unknown embedding model '{config.embedding.model}' - vector dimensions cannot be determined"
        )
    if db.max_pool_size > 50:
        result.warnings.append(
            "High max pool size detected - consider reducing for better resource management"
        )
    if config.gateway.timeout is None:
        result.warnings.append("Gateway timeout disabled - a hung gateway hangs the analysis")

    return result


def create_default_config() -> str:
    """Create default configuration YAML content.

    Returns:
        YAML string with default configuration and comments
    """
    return '''# Aura Configuration

# Real-LLM path for design reverse-engineering
gateway:
  url: "http://localhost:8000/reverse-engineer-design"
  timeout: 120            # seconds; null disables the timeout
  transport: "gateway"    # gateway (HTTP bridge) or direct (LiteLLM)
  max_attempts: 1         # real-path attempts before falling back to the mock

# Offline analyzer used when the real path is off or fails
mock:
  delay: 1.5

# Persisted LLM settings (API key included - secure this file)
store:
  path: "~/.aura/settings.json"
  strict_models: false    # reject models outside the provider catalog

# Defaults for a fresh settings store
reverse_engineering:
  design:
    provider: "google"
    model: "gemini-2.5-pro"
  code:
    provider: "google"
    model: "gemini-2.5-pro"

# Database (defaults come from AURA_DB_* environment variables)
# database:
#   host: "localhost"
#   port: 3306
#   user: "aura_user"
#   password: "${AURA_DB_PASSWORD}"
#   name: "aura_playground"
#   max_pool_size: 10
#   ssl: false
'''
