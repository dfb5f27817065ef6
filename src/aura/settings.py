"""Persisted LLM settings store.

The ConfigurationResolver owns the global LLM setting, the per-module
primary/backup routing and the reverse-engineering selections. It is created
once per process (or application context) and passed to whatever needs it.

Setters never raise on bad input: they refuse the mutation, log a warning
and return a rejected SetterResult. Persistence is an explicit save()/load()
pair; callers decide when a snapshot is written.
"""

import json
import logging
import threading
from dataclasses import replace
from pathlib import Path
from typing import Any

from aura.config import ConfigSource
from aura.models.llm_config import (
    MODULE_IDS,
    REVERSE_ENGINEERING_KINDS,
    LLMModel,
    LLMProvider,
    LLMSettings,
    ModelSelection,
    ModuleLLMConfig,
    ProviderCatalog,
    ResolvedCredentials,
    ReverseEngineeringLLMConfig,
    SetterResult,
    Tier,
    default_module_settings,
)

logger = logging.getLogger(__name__)

# Characters that suggest a file path was pasted instead of a credential
_PATH_LIKE_CHARS = ("\\", "/", ":")

_GLOBAL_FIELDS = frozenset({"provider", "model", "api_key", "temperature", "max_tokens"})


def _looks_like_path(value: str) -> bool:
    return any(ch in value for ch in _PATH_LIKE_CHARS)


def _parse_tier(tier: Tier | str) -> Tier | None:
    if isinstance(tier, Tier):
        return tier
    try:
        return Tier(str(tier).lower())
    except ValueError:
        return None


class ConfigurationResolver:
    """Process-wide LLM configuration store.

    Every read-modify-write runs under one re-entrant lock, so single
    operations are atomic. There is no cross-field transaction: set_provider
    followed by set_model is two observable updates.
    """

    def __init__(
        self,
        catalog: ProviderCatalog | None = None,
        source: ConfigSource | None = None,
        reverse_engineering_defaults: ReverseEngineeringLLMConfig | None = None,
        path: Path | None = None,
        strict_models: bool = False,
    ) -> None:
        """Initialize the store with default state.

        Args:
            catalog: Provider catalog (defaults to the built-in catalog)
            source: Environment lookup for API keys
            reverse_engineering_defaults: Initial design/code selections
            path: Snapshot location used by save() and load()
            strict_models: Reject set_model for ids outside the provider catalog
        """
        self.catalog = catalog or ProviderCatalog()
        self.source = source or ConfigSource()
        self.path = path
        self.strict_models = strict_models
        self._re_defaults = reverse_engineering_defaults or ReverseEngineeringLLMConfig()
        self._lock = threading.RLock()

        self._llm_settings = LLMSettings()
        self._module_settings = default_module_settings()
        self._reverse_engineering = replace(self._re_defaults)

    # =========================================================================
    # Read access
    # =========================================================================

    @property
    def llm_settings(self) -> LLMSettings:
        """Return a copy of the global LLM setting."""
        with self._lock:
            return replace(self._llm_settings)

    @property
    def module_settings(self) -> dict[str, ModuleLLMConfig]:
        with self._lock:
            return dict(self._module_settings)

    @property
    def reverse_engineering(self) -> ReverseEngineeringLLMConfig:
        with self._lock:
            return replace(self._reverse_engineering)

    def current_provider(self) -> LLMProvider | None:
        """Return the catalog entry of the selected provider."""
        with self._lock:
            return self.catalog.get(self._llm_settings.provider)

    def current_model(self) -> LLMModel | None:
        """Return the catalog entry of the selected model, if it belongs to the provider."""
        with self._lock:
            provider = self.catalog.get(self._llm_settings.provider)
            if provider is None:
                return None
            return provider.get_model(self._llm_settings.model)

    # =========================================================================
    # Global setting
    # =========================================================================

    def set_provider(self, provider_id: str) -> SetterResult:
        """Select a provider and reset the model to its first catalog entry.

        The API key is backfilled from the environment for the new provider;
        the previous key is kept when the environment has none.
        """
        provider = self.catalog.get(provider_id)
        if provider is None:
            reason = f"Unknown provider '{provider_id}'. Valid: {self.catalog.ids}"
            logger.warning("Rejected provider change: %s", reason)
            return SetterResult.rejected(reason)

        env_key = self.load_from_environment(provider_id)
        with self._lock:
            self._llm_settings = replace(
                self._llm_settings,
                provider=provider.id,
                model=provider.default_model,
                api_key=env_key or self._llm_settings.api_key,
            )
        logger.info("LLM provider set to %s (model %s)", provider.id, provider.default_model)
        return SetterResult.ok()

    def set_model(self, model_id: str) -> SetterResult:
        """Select a model.

        Permissive by default: a model outside the current provider's catalog
        is accepted with a warning. With strict_models it is rejected.
        """
        with self._lock:
            provider = self.catalog.get(self._llm_settings.provider)
            in_catalog = provider is not None and provider.get_model(model_id) is not None

            if not in_catalog:
                provider_id = self._llm_settings.provider
                if self.strict_models:
                    reason = f"Model '{model_id}' is not offered by provider '{provider_id}'"
                    logger.warning("Rejected model change: %s", reason)
                    return SetterResult.rejected(reason)
                logger.warning(
                    "Model '%s' is not in the catalog for provider '%s'",
                    model_id,
                    provider_id,
                )

            self._llm_settings = replace(self._llm_settings, model=model_id)
        return SetterResult.ok()

    def set_api_key(self, api_key: str) -> SetterResult:
        """Store the global API key.

        Rejects values containing path separators (\\, / or :), which usually
        means a file path was pasted instead of a key. No other checks.
        """
        if api_key and _looks_like_path(api_key):
            reason = "Invalid API key format detected (contains file path characters)"
            logger.warning("Rejected API key: %s", reason)
            return SetterResult.rejected(reason)

        with self._lock:
            self._llm_settings = replace(self._llm_settings, api_key=api_key)
        return SetterResult.ok()

    def update_global(self, **changes: Any) -> SetterResult:
        """Merge a partial update into the global setting.

        Args:
            **changes: Any of provider, model, api_key, temperature, max_tokens
        """
        unknown = set(changes) - _GLOBAL_FIELDS
        if unknown:
            reason = f"Unknown LLM setting(s): {sorted(unknown)}"
            logger.warning("Rejected settings update: %s", reason)
            return SetterResult.rejected(reason)

        api_key = changes.get("api_key")
        if api_key and _looks_like_path(str(api_key)):
            reason = "Invalid API key format detected (contains file path characters)"
            logger.warning("Rejected settings update: %s", reason)
            return SetterResult.rejected(reason)

        with self._lock:
            self._llm_settings = replace(self._llm_settings, **changes)
        return SetterResult.ok()

    def reset_global(self) -> None:
        """Restore the default global LLM setting."""
        with self._lock:
            self._llm_settings = LLMSettings()
        logger.info("LLM settings reset to defaults")

    def validate_global(self) -> bool:
        """Return True if provider, model and API key are all set."""
        with self._lock:
            s = self._llm_settings
            return bool(s.provider and s.model and s.api_key)

    # =========================================================================
    # Environment
    # =========================================================================

    def load_from_environment(self, provider_id: str) -> str:
        """Return the environment API key for a provider ("" if none).

        Pure lookup: the store is not modified.
        """
        return self.source.api_key_for(provider_id)

    def initialize_from_environment(self) -> bool:
        """Fill an empty API key from the environment for the current provider.

        Idempotent: does nothing once a key is present.

        Returns:
            True if a key was loaded
        """
        with self._lock:
            settings = self._llm_settings
            if settings.api_key or not settings.provider:
                return False

            env_key = self.load_from_environment(settings.provider)
            if not env_key:
                logger.debug("No environment API key for provider %s", settings.provider)
                return False

            self._llm_settings = replace(settings, api_key=env_key)
        logger.info("Loaded API key for %s from environment", settings.provider)
        return True

    # =========================================================================
    # Module routing
    # =========================================================================

    def set_module_tier(
        self,
        module: str,
        tier: Tier | str,
        provider: str,
        model: str,
    ) -> SetterResult:
        """Replace exactly one tier of one module."""
        parsed_tier = _parse_tier(tier)
        if module not in MODULE_IDS:
            reason = f"Unknown module '{module}'. Valid: {list(MODULE_IDS)}"
            logger.warning("Rejected module update: %s", reason)
            return SetterResult.rejected(reason)
        if parsed_tier is None:
            reason = f"Unknown tier '{tier}'. Valid: {[t.value for t in Tier]}"
            logger.warning("Rejected module update: %s", reason)
            return SetterResult.rejected(reason)

        with self._lock:
            current = self._module_settings[module]
            self._module_settings[module] = current.with_tier(
                parsed_tier, ModelSelection(provider=provider, model=model)
            )
        logger.debug("Module %s %s tier set to %s/%s", module, parsed_tier.value, provider, model)
        return SetterResult.ok()

    def resolve_module(self, module: str, tier: Tier | str = Tier.PRIMARY) -> ResolvedCredentials:
        """Merge a module's tier selection with the global credentials.

        Pure read. The resolver never retries across tiers; callers that
        want backup behavior resolve both tiers themselves.

        Raises:
            KeyError: If the module or tier is unknown
        """
        parsed_tier = _parse_tier(tier)
        if parsed_tier is None:
            raise KeyError(f"Unknown tier: {tier}")

        with self._lock:
            if module not in self._module_settings:
                raise KeyError(f"Unknown module: {module}")
            selection = self._module_settings[module].get(parsed_tier)
            return self._merge(selection)

    def validate_module(self, module: str) -> bool:
        """Return True if both tiers are complete and the global key is set."""
        with self._lock:
            config = self._module_settings.get(module)
            if config is None:
                return False
            return (
                config.primary.is_complete
                and config.backup.is_complete
                and bool(self._llm_settings.api_key)
            )

    # =========================================================================
    # Reverse engineering
    # =========================================================================

    def set_reverse_engineering_llm(self, kind: str, provider: str, model: str) -> SetterResult:
        """Replace the design or code reverse-engineering selection."""
        if kind not in REVERSE_ENGINEERING_KINDS:
            reason = f"Unknown reverse-engineering kind '{kind}'. Valid: {list(REVERSE_ENGINEERING_KINDS)}"
            logger.warning("Rejected reverse-engineering update: %s", reason)
            return SetterResult.rejected(reason)

        with self._lock:
            self._reverse_engineering = replace(
                self._reverse_engineering,
                **{kind: ModelSelection(provider=provider, model=model)},
            )
        return SetterResult.ok()

    def resolve_reverse_engineering(self, kind: str) -> ResolvedCredentials:
        """Merge a reverse-engineering selection with the global credentials.

        Raises:
            KeyError: If kind is not "design" or "code"
        """
        with self._lock:
            return self._merge(self._reverse_engineering.get(kind))

    def _merge(self, selection: ModelSelection) -> ResolvedCredentials:
        s = self._llm_settings
        return ResolvedCredentials(
            provider=selection.provider,
            model=selection.model,
            api_key=s.api_key,
            temperature=s.temperature,
            max_tokens=s.max_tokens,
        )

    # =========================================================================
    # Persistence
    # =========================================================================

    def snapshot(self) -> dict[str, Any]:
        """Return the persisted form of the whole store (API key included)."""
        with self._lock:
            return {
                "llmSettings": self._llm_settings.to_dict(),
                "moduleLLMSettings": {
                    module: config.to_dict() for module, config in self._module_settings.items()
                },
                "reverseEngineeringLLMSettings": self._reverse_engineering.to_dict(),
            }

    def restore(self, data: dict[str, Any]) -> None:
        """Replace state from a snapshot; missing fields keep their defaults."""
        llm_settings = LLMSettings.from_dict(data.get("llmSettings") or {})

        modules = default_module_settings()
        stored_modules = data.get("moduleLLMSettings") or {}
        for module in MODULE_IDS:
            if module in stored_modules:
                modules[module] = ModuleLLMConfig.from_dict(stored_modules[module])

        reverse_engineering = ReverseEngineeringLLMConfig.from_dict(
            data.get("reverseEngineeringLLMSettings") or {},
            defaults=self._re_defaults,
        )

        with self._lock:
            self._llm_settings = llm_settings
            self._module_settings = modules
            self._reverse_engineering = reverse_engineering

    def save(self, path: Path | None = None) -> Path:
        """Write the snapshot as JSON.

        Args:
            path: Target file (defaults to the store path)

        Returns:
            Path written

        Raises:
            ValueError: If no path is configured
        """
        target = path or self.path
        if target is None:
            raise ValueError("No settings path configured")

        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_text(json.dumps(self.snapshot(), indent=2), encoding="utf-8")
        logger.debug("Saved LLM settings to %s", target)
        return target

    def load(self, path: Path | None = None) -> bool:
        """Rehydrate state from the JSON snapshot.

        A missing file leaves the defaults in place. An unreadable file, or one
        whose fields have the wrong types, is logged and ignored.

        Returns:
            True if a snapshot was loaded
        """
        source = path or self.path
        if source is None or not source.exists():
            return False

        try:
            data = json.loads(source.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("Ignoring unreadable settings file %s: %s", source, e)
            return False

        if not isinstance(data, dict):
            logger.warning("Ignoring settings file %s: not a JSON object", source)
            return False

        try:
            self.restore(data)
        except (TypeError, ValueError, AttributeError) as e:
            logger.warning("Ignoring malformed settings file %s: %s", source, e)
            return False

        logger.debug("Loaded LLM settings from %s", source)
        return True

    @classmethod
    def open(
        cls,
        path: Path,
        catalog: ProviderCatalog | None = None,
        source: ConfigSource | None = None,
        reverse_engineering_defaults: ReverseEngineeringLLMConfig | None = None,
        strict_models: bool = False,
    ) -> "ConfigurationResolver":
        """Create a store bound to path and load any existing snapshot."""
        resolver = cls(
            catalog=catalog,
            source=source,
            reverse_engineering_defaults=reverse_engineering_defaults,
            path=path,
            strict_models=strict_models,
        )
        resolver.load()
        return resolver
