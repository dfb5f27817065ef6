"""LLM configuration entities for Aura.

Defines the provider catalog, the global LLM setting, per-module
primary/backup routing and the reverse-engineering selections.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any

# Closed set of application modules that carry their own LLM routing
MODULE_IDS = (
    "use-cases",
    "requirements",
    "design",
    "code",
    "test-cases",
    "execution",
    "defects",
    "traceability",
)

# Reverse-engineering feature tracks
REVERSE_ENGINEERING_KINDS = ("design", "code")


class Tier(Enum):
    """Routing tier for a module."""

    PRIMARY = "primary"
    BACKUP = "backup"


@dataclass(frozen=True)
class LLMModel:
    """A model offered by a provider.

    Attributes:
        id: Model identifier sent to the provider (e.g., "gpt-4")
        name: Display name
        description: Short human description
        max_tokens: Context capacity if known
    """

    id: str
    name: str
    description: str | None = None
    max_tokens: int | None = None


@dataclass(frozen=True)
class LLMProvider:
    """An LLM vendor and its ordered model list.

    Attributes:
        id: Stable provider identifier (e.g., "openai")
        name: Display name
        models: Ordered models; the first one is the provider default
    """

    id: str
    name: str
    models: tuple[LLMModel, ...] = ()

    def get_model(self, model_id: str) -> LLMModel | None:
        """Return the catalog entry for model_id, if present."""
        for model in self.models:
            if model.id == model_id:
                return model
        return None

    @property
    def default_model(self) -> str:
        """Return the id of the first model, or "" when the list is empty."""
        return self.models[0].id if self.models else ""


DEFAULT_PROVIDERS: tuple[LLMProvider, ...] = (
    LLMProvider(
        id="openai",
        name="OpenAI",
        models=(
            LLMModel(
                id="gpt-4",
                name="GPT-4",
                description="Most capable model, best for complex reasoning",
                max_tokens=8192,
            ),
            LLMModel(
                id="gpt-4-turbo",
                name="GPT-4 Turbo",
                description="Faster and more efficient GPT-4",
                max_tokens=128000,
            ),
            LLMModel(
                id="gpt-3.5-turbo",
                name="GPT-3.5 Turbo",
                description="Fast and cost-effective for most tasks",
                max_tokens=4096,
            ),
        ),
    ),
    LLMProvider(
        id="google",
        name="Google AI (Gemini)",
        models=(
            LLMModel(
                id="gemini-pro",
                name="Gemini Pro",
                description="Google's most capable model",
                max_tokens=30720,
            ),
            LLMModel(
                id="gemini-pro-vision",
                name="Gemini Pro Vision",
                description="Multimodal model with vision capabilities",
                max_tokens=30720,
            ),
            LLMModel(
                id="gemini-2.5-pro",
                name="Gemini 2.5 Pro",
                description="Long-context multimodal reasoning model",
                max_tokens=1048576,
            ),
        ),
    ),
)


@dataclass(frozen=True)
class ProviderCatalog:
    """Read-only, ordered collection of providers."""

    providers: tuple[LLMProvider, ...] = DEFAULT_PROVIDERS

    def get(self, provider_id: str) -> LLMProvider | None:
        """Look up a provider by id."""
        for provider in self.providers:
            if provider.id == provider_id:
                return provider
        return None

    def __contains__(self, provider_id: object) -> bool:
        return any(p.id == provider_id for p in self.providers)

    @property
    def ids(self) -> list[str]:
        return [p.id for p in self.providers]


@dataclass
class LLMSettings:
    """Global LLM setting shared by every module.

    Attributes:
        provider: Selected provider id
        model: Selected model id
        api_key: The single credential used for every invocation
        temperature: Sampling temperature
        max_tokens: Maximum response tokens
    """

    provider: str = "openai"
    model: str = "gpt-4"
    api_key: str = ""
    temperature: float = 0.7
    max_tokens: int = 4000

    def to_dict(self) -> dict[str, Any]:
        """Convert to the persisted camelCase form."""
        return {
            "provider": self.provider,
            "model": self.model,
            "temperature": self.temperature,
            "maxTokens": self.max_tokens,
            "apiKey": self.api_key,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "LLMSettings":
        """Create LLMSettings from the persisted form, defaulting missing fields."""
        defaults = cls()
        return cls(
            provider=str(data.get("provider", defaults.provider)),
            model=str(data.get("model", defaults.model)),
            api_key=str(data.get("apiKey") or ""),
            temperature=float(data.get("temperature", defaults.temperature)),
            max_tokens=int(data.get("maxTokens", defaults.max_tokens)),
        )


@dataclass(frozen=True)
class ModelSelection:
    """A provider/model pair."""

    provider: str
    model: str

    @property
    def is_complete(self) -> bool:
        return bool(self.provider and self.model)

    def to_dict(self) -> dict[str, str]:
        return {"provider": self.provider, "model": self.model}

    @classmethod
    def from_dict(cls, data: dict[str, Any], default: "ModelSelection") -> "ModelSelection":
        if not isinstance(data, dict):
            return default
        return cls(
            provider=str(data.get("provider", default.provider)),
            model=str(data.get("model", default.model)),
        )


DEFAULT_PRIMARY = ModelSelection(provider="openai", model="gpt-4")
DEFAULT_BACKUP = ModelSelection(provider="google", model="gemini-pro")


@dataclass(frozen=True)
class ModuleLLMConfig:
    """Primary and backup selection for one module.

    Both tiers are always present; a tier is replaced, never removed.
    """

    primary: ModelSelection = DEFAULT_PRIMARY
    backup: ModelSelection = DEFAULT_BACKUP

    def get(self, tier: Tier) -> ModelSelection:
        return self.primary if tier is Tier.PRIMARY else self.backup

    def with_tier(self, tier: Tier, selection: ModelSelection) -> "ModuleLLMConfig":
        """Return a copy with exactly one tier replaced."""
        if tier is Tier.PRIMARY:
            return ModuleLLMConfig(primary=selection, backup=self.backup)
        return ModuleLLMConfig(primary=self.primary, backup=selection)

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"primary": self.primary.to_dict(), "backup": self.backup.to_dict()}

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "ModuleLLMConfig":
        if not isinstance(data, dict):
            return cls()
        return cls(
            primary=ModelSelection.from_dict(data.get("primary", {}), DEFAULT_PRIMARY),
            backup=ModelSelection.from_dict(data.get("backup", {}), DEFAULT_BACKUP),
        )


def default_module_settings() -> dict[str, ModuleLLMConfig]:
    """Return a fully populated module map with default tiers."""
    return {module: ModuleLLMConfig() for module in MODULE_IDS}


@dataclass
class ReverseEngineeringLLMConfig:
    """Selections for the design and code reverse-engineering tracks."""

    design: ModelSelection = field(
        default_factory=lambda: ModelSelection("google", "gemini-2.5-pro")
    )
    code: ModelSelection = field(
        default_factory=lambda: ModelSelection("google", "gemini-2.5-pro")
    )

    def get(self, kind: str) -> ModelSelection:
        if kind not in REVERSE_ENGINEERING_KINDS:
            raise KeyError(f"Unknown reverse-engineering kind: {kind}")
        return getattr(self, kind)

    def to_dict(self) -> dict[str, dict[str, str]]:
        return {"design": self.design.to_dict(), "code": self.code.to_dict()}

    @classmethod
    def from_dict(
        cls,
        data: dict[str, Any],
        defaults: "ReverseEngineeringLLMConfig | None" = None,
    ) -> "ReverseEngineeringLLMConfig":
        defaults = defaults or cls()
        if not isinstance(data, dict):
            return cls(design=defaults.design, code=defaults.code)
        return cls(
            design=ModelSelection.from_dict(data.get("design", {}), defaults.design),
            code=ModelSelection.from_dict(data.get("code", {}), defaults.code),
        )


@dataclass(frozen=True)
class ResolvedCredentials:
    """Ready-to-use invocation settings.

    Produced by merging a tier selection with the global api_key,
    temperature and max_tokens. Never stored.
    """

    provider: str
    model: str
    api_key: str
    temperature: float
    max_tokens: int

    def get_litellm_model_name(self) -> str:
        """Get the model name in LiteLLM format.

        Returns:
            Model name formatted for LiteLLM
        """
        if self.provider == "google":
            return f"gemini/{self.model}"
        return f"{self.provider}/{self.model}"


@dataclass(frozen=True)
class SetterResult:
    """Outcome of a settings mutation.

    Attributes:
        accepted: Whether the mutation was applied
        reason: Why it was rejected (None when accepted)
    """

    accepted: bool
    reason: str | None = None

    def __bool__(self) -> bool:
        return self.accepted

    @classmethod
    def ok(cls) -> "SetterResult":
        return cls(accepted=True)

    @classmethod
    def rejected(cls, reason: str) -> "SetterResult":
        return cls(accepted=False, reason=reason)
