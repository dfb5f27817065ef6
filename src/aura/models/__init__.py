"""Aura data models.

This module exports the core entities used throughout the application:
- ProviderCatalog / LLMProvider / LLMModel: read-only provider reference data
- LLMSettings: the global LLM setting
- ModuleLLMConfig / ModelSelection / Tier: per-module primary/backup routing
- ReverseEngineeringLLMConfig: design and code reverse-engineering selections
- ResolvedCredentials: merged, ready-to-use invocation settings
- AnalysisLevel: work-item abstraction levels
- DesignReverseEngineerRequest: validated caller input
"""

from aura.models.analysis import AnalysisLevel, AnalysisResult
from aura.models.llm_config import (
    DEFAULT_PROVIDERS,
    MODULE_IDS,
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
)
from aura.models.requests import (
    DesignReverseEngineerRequest,
    RequestShapeError,
    parse_design_request,
)

__all__ = [
    "AnalysisLevel",
    "AnalysisResult",
    "DEFAULT_PROVIDERS",
    "DesignReverseEngineerRequest",
    "LLMModel",
    "LLMProvider",
    "LLMSettings",
    "MODULE_IDS",
    "ModelSelection",
    "ModuleLLMConfig",
    "ProviderCatalog",
    "RequestShapeError",
    "ResolvedCredentials",
    "ReverseEngineeringLLMConfig",
    "SetterResult",
    "Tier",
    "parse_design_request",
]
