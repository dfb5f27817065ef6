"""Design analysis invocation pipeline.

Runs a reverse-engineering analysis either through a real LLM path (the
remote gateway, or a provider called directly through LiteLLM) or through
the mock analyzer. A failed real call never reaches the caller: the
FallbackPolicy substitutes the mock result and tags it with provenance.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

from aura.llm.client import InvocationError, LLMError, create_client, parse_json_response
from aura.llm.gateway import GatewayClient
from aura.llm.mock import MockAnalyzer
from aura.models.analysis import (
    ANALYSIS_MODE_KEY,
    FALLBACK_REASON_KEY,
    MOCK_FALLBACK_MODE,
    REAL_LLM_MODE,
    REQUESTED_MODE_KEY,
    AnalysisLevel,
    AnalysisResult,
)
from aura.models.llm_config import ResolvedCredentials

if TYPE_CHECKING:
    from aura.config import AuraConfig
    from aura.settings import ConfigurationResolver

logger = logging.getLogger(__name__)

CredentialsProvider = Callable[[], ResolvedCredentials]


@dataclass
class AnalysisRequest:
    """Everything a real-LLM analyzer needs for one call.

    Attributes:
        system_prompt: Role and rubric prompt
        user_prompt: Design payload and instructions
        level: Requested abstraction level
        has_image: Whether an image accompanies the request
        image_data: Base64 image payload
        image_type: MIME type of the image
    """

    system_prompt: str
    user_prompt: str
    level: AnalysisLevel
    has_image: bool = False
    image_data: str | None = None
    image_type: str | None = None

    def to_gateway_payload(self, provider: str, model: str) -> dict[str, Any]:
        """Build the gateway JSON envelope."""
        return {
            "systemPrompt": self.system_prompt,
            "userPrompt": self.user_prompt,
            "analysisLevel": self.level.value,
            "hasImage": self.has_image,
            "imageData": self.image_data,
            "imageType": self.image_type,
            "llm_provider": provider,
            "model": model,
        }


# =============================================================================
# Real-LLM analyzers
# =============================================================================


class Analyzer(ABC):
    """A real-LLM path.

    Implementations raise InvocationError (or a subclass) on any failure.
    """

    name: str = "analyzer"

    @abstractmethod
    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        """Run one analysis call."""
        pass


class GatewayAnalyzer(Analyzer):
    """Sends the analysis to the remote gateway."""

    name = "gateway"

    def __init__(self, client: GatewayClient, credentials: CredentialsProvider) -> None:
        """Initialize the gateway analyzer.

        Args:
            client: HTTP client bound to the gateway endpoint
            credentials: Returns the current provider/model selection at call time
        """
        self.client = client
        self._credentials = credentials

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        creds = self._credentials()
        logger.info("Calling gateway with %s/%s", creds.provider, creds.model)
        return self.client.post(request.to_gateway_payload(creds.provider, creds.model))


class DirectLLMAnalyzer(Analyzer):
    """Calls the selected provider directly through LiteLLM."""

    name = "direct"

    def __init__(self, credentials: CredentialsProvider) -> None:
        self._credentials = credentials

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        creds = self._credentials()
        if not creds.api_key:
            raise LLMError(f"No API key configured for provider {creds.provider}")

        try:
            client = create_client(creds)
        except ValueError as e:
            raise LLMError(str(e)) from e

        logger.info("Calling %s/%s directly", creds.provider, creds.model)
        response = client.complete(
            prompt=request.user_prompt,
            system_prompt=request.system_prompt,
            image_data=request.image_data,
            image_type=request.image_type,
        )
        logger.debug(
            "Direct analysis response: %d tokens, %d chars",
            response.usage.get("total_tokens", 0),
            len(response.content),
        )
        return parse_json_response(response.content)


# =============================================================================
# Degradation policy
# =============================================================================


class FallbackPolicy:
    """Try the primary path, on failure run the mock.

    The primary path is attempted up to max_attempts times. The mock result
    returned after the last failure carries analysisMode, requestedMode and
    fallbackReason.
    """

    def __init__(
        self,
        primary: Analyzer,
        secondary: MockAnalyzer,
        max_attempts: int = 1,
    ) -> None:
        if max_attempts < 1:
            raise ValueError(f"max_attempts must be at least 1 (got {max_attempts})")
        self.primary = primary
        self.secondary = secondary
        self.max_attempts = max_attempts

    def run(self, request: AnalysisRequest) -> AnalysisResult:
        """Run the primary path with mock fallback.

        Returns:
            Primary result, or the tagged mock result
        """
        last_error: InvocationError | None = None

        for attempt in range(1, self.max_attempts + 1):
            try:
                return self.primary.analyze(request)
            except InvocationError as e:
                last_error = e
                logger.warning(
                    "Real LLM analysis via %s failed (attempt %d/%d): %s",
                    self.primary.name,
                    attempt,
                    self.max_attempts,
                    e,
                )

        logger.info("Falling back to mock analysis")
        result = self.secondary.analyze(request.level, request.has_image)
        result[ANALYSIS_MODE_KEY] = MOCK_FALLBACK_MODE
        result[REQUESTED_MODE_KEY] = REAL_LLM_MODE
        result[FALLBACK_REASON_KEY] = str(last_error) if last_error else "Unknown error"
        return result


# =============================================================================
# Pipeline
# =============================================================================


class InvocationPipeline:
    """Entry point for running one design analysis.

    The pipeline makes at most max_attempts external calls per invocation,
    never spawns background work and always returns a structurally valid
    AnalysisResult.
    """

    def __init__(
        self,
        primary: Analyzer,
        mock: MockAnalyzer | None = None,
        max_attempts: int = 1,
    ) -> None:
        """Initialize the pipeline.

        Args:
            primary: Real-LLM analyzer (gateway or direct)
            mock: Offline analyzer used for mock mode and fallback
            max_attempts: Real-path attempts before falling back
        """
        self.mock = mock or MockAnalyzer()
        self.policy = FallbackPolicy(primary, self.mock, max_attempts=max_attempts)

    def invoke(
        self,
        system_prompt: str,
        user_prompt: str,
        level: AnalysisLevel | str,
        has_image: bool,
        use_real_llm: bool,
        image_data: str | None = None,
        image_type: str | None = None,
    ) -> AnalysisResult:
        """Run the analysis.

        Args:
            system_prompt: Role and rubric prompt
            user_prompt: Design payload and instructions
            level: Requested abstraction level
            has_image: Whether an image accompanies the request
            use_real_llm: Call the real path (True) or the mock directly (False)
            image_data: Base64 image payload
            image_type: MIME type of the image

        Returns:
            AnalysisResult; tagged with analysisMode only on fallback
        """
        level = AnalysisLevel.parse(level)
        logger.info(
            "Design analysis requested: level=%s mode=%s",
            level.value,
            "real-llm" if use_real_llm else "mock",
        )

        if not use_real_llm:
            return self.mock.analyze(level, has_image)

        request = AnalysisRequest(
            system_prompt=system_prompt,
            user_prompt=user_prompt,
            level=level,
            has_image=has_image,
            image_data=image_data,
            image_type=image_type,
        )
        return self.policy.run(request)


def create_pipeline(
    config: "AuraConfig",
    resolver: "ConfigurationResolver",
) -> InvocationPipeline:
    """Build the pipeline described by the configuration.

    The provider/model (and, for the direct transport, the API key) are read
    from the resolver's design reverse-engineering selection on every call.
    """

    def design_credentials() -> ResolvedCredentials:
        return resolver.resolve_reverse_engineering("design")

    primary: Analyzer
    if config.gateway.transport == "direct":
        primary = DirectLLMAnalyzer(design_credentials)
    else:
        client = GatewayClient(config.gateway.url, timeout=config.gateway.timeout)
        primary = GatewayAnalyzer(client, design_credentials)

    return InvocationPipeline(
        primary=primary,
        mock=MockAnalyzer(delay=config.mock.delay),
        max_attempts=config.gateway.max_attempts,
    )
