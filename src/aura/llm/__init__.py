"""LLM integration module for Aura.

Provides the LiteLLM client wrapper, the HTTP gateway client, the
design reverse-engineering prompts and the deterministic mock analyzer.
"""

from aura.llm.client import (
    InvocationError,
    LLMClient,
    LLMError,
    LLMResponse,
    create_client,
    parse_json_response,
)
from aura.llm.gateway import GatewayClient, GatewayError
from aura.llm.mock import MockAnalyzer
from aura.llm.prompts import (
    VISUAL_ANALYSIS_INSTRUCTIONS,
    build_system_prompt,
    build_user_prompt,
)

__all__ = [
    "GatewayClient",
    "GatewayError",
    "InvocationError",
    "LLMClient",
    "LLMError",
    "LLMResponse",
    "MockAnalyzer",
    "VISUAL_ANALYSIS_INSTRUCTIONS",
    "build_system_prompt",
    "build_user_prompt",
    "create_client",
    "parse_json_response",
]
