"""Unit tests for the invocation pipeline and fallback policy."""

from typing import Any

import pytest

from aura.config import AuraConfig, GatewayConfig, MockConfig
from aura.llm.client import LLMError
from aura.llm.gateway import GatewayError
from aura.llm.mock import MockAnalyzer
from aura.models.analysis import AnalysisLevel, AnalysisResult, is_fallback
from aura.models.llm_config import ResolvedCredentials
from aura.pipeline import (
    AnalysisRequest,
    Analyzer,
    DirectLLMAnalyzer,
    FallbackPolicy,
    GatewayAnalyzer,
    InvocationPipeline,
    create_pipeline,
)
from aura.settings import ConfigurationResolver


class FailingAnalyzer(Analyzer):
    """Real-path stub that always fails."""

    name = "failing"

    def __init__(self, error: Exception) -> None:
        self.error = error
        self.calls = 0

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        self.calls += 1
        raise self.error


class StaticAnalyzer(Analyzer):
    """Real-path stub returning a fixed result."""

    name = "static"

    def __init__(self, result: dict[str, Any]) -> None:
        self.result = result
        self.requests: list[AnalysisRequest] = []

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        self.requests.append(request)
        return dict(self.result)


class FlakyAnalyzer(Analyzer):
    """Fails a number of times, then succeeds."""

    name = "flaky"

    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.calls = 0

    def analyze(self, request: AnalysisRequest) -> AnalysisResult:
        self.calls += 1
        if self.calls <= self.failures:
            raise GatewayError("Gateway responded with 503")
        return {"analysisDepth": request.level.value, "stories": []}


def _invoke(pipeline: InvocationPipeline, level: str = "story", use_real_llm: bool = True) -> AnalysisResult:
    return pipeline.invoke("system", "user", level, has_image=False, use_real_llm=use_real_llm)


class TestFallbackPolicy:
    """Tests for primary-then-mock degradation."""

    @pytest.mark.parametrize("level", ["story", "epic", "business-brief"])
    def test_gateway_failure_falls_back_to_mock(
        self, mock_analyzer: MockAnalyzer, level: str
    ) -> None:
        """Test provenance tags and mock content after a gateway failure."""
        pipeline = InvocationPipeline(
            FailingAnalyzer(GatewayError("Gateway responded with 500")), mock=mock_analyzer
        )

        result = _invoke(pipeline, level)

        assert result["analysisMode"] == "mock-fallback"
        assert result["requestedMode"] == "real-llm"
        assert result["fallbackReason"] == "Gateway responded with 500"
        assert result["stories"] == mock_analyzer.analyze(level)["stories"]
        assert is_fallback(result)

    def test_llm_error_falls_back(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that direct-path errors degrade the same way."""
        pipeline = InvocationPipeline(FailingAnalyzer(LLMError("Rate limit exceeded")), mock=mock_analyzer)

        assert _invoke(pipeline)["fallbackReason"] == "Rate limit exceeded"

    def test_unexpected_error_propagates(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that non-invocation errors are not swallowed."""
        pipeline = InvocationPipeline(FailingAnalyzer(RuntimeError("bug")), mock=mock_analyzer)

        with pytest.raises(RuntimeError, match="bug"):
            _invoke(pipeline)

    def test_success_is_untagged(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that a real result passes through without provenance tags."""
        primary = StaticAnalyzer({"analysisDepth": "story", "stories": [{"id": "S-1"}]})
        pipeline = InvocationPipeline(primary, mock=mock_analyzer)

        result = _invoke(pipeline)

        assert result == {"analysisDepth": "story", "stories": [{"id": "S-1"}]}
        assert primary.requests[0].level is AnalysisLevel.STORY

    def test_single_attempt_by_default(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that the real path is called once per invocation."""
        primary = FailingAnalyzer(GatewayError("down"))

        _invoke(InvocationPipeline(primary, mock=mock_analyzer))

        assert primary.calls == 1

    def test_retry_before_fallback(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that max_attempts retries the real path before degrading."""
        primary = FlakyAnalyzer(failures=2)
        pipeline = InvocationPipeline(primary, mock=mock_analyzer, max_attempts=3)

        result = _invoke(pipeline)

        assert primary.calls == 3
        assert not is_fallback(result)

    def test_retries_exhausted(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that the mock runs after the last failed attempt."""
        primary = FlakyAnalyzer(failures=5)
        policy = FallbackPolicy(primary, mock_analyzer, max_attempts=2)

        result = policy.run(AnalysisRequest("s", "u", AnalysisLevel.EPIC))

        assert primary.calls == 2
        assert is_fallback(result)
        assert len(result["epics"]) == 1

    def test_invalid_max_attempts(self, mock_analyzer: MockAnalyzer) -> None:
        """Test max_attempts validation."""
        with pytest.raises(ValueError):
            FallbackPolicy(FailingAnalyzer(GatewayError("x")), mock_analyzer, max_attempts=0)


class TestMockMode:
    """Tests for use_real_llm=False."""

    def test_mock_mode_never_calls_real_path(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that the mock runs directly and is untagged."""
        primary = FailingAnalyzer(GatewayError("should not be called"))
        pipeline = InvocationPipeline(primary, mock=mock_analyzer)

        result = _invoke(pipeline, "feature", use_real_llm=False)

        assert primary.calls == 0
        assert "analysisMode" not in result
        assert result == mock_analyzer.analyze("feature")


class TestAnalyzers:
    """Tests for the concrete real-path analyzers."""

    def test_gateway_payload(self) -> None:
        """Test the gateway envelope (the API key is never included)."""
        request = AnalysisRequest("sys", "usr", AnalysisLevel.EPIC, True, "aGk=", "image/png")

        payload = request.to_gateway_payload("google", "gemini-2.5-pro")

        assert payload == {
            "systemPrompt": "sys",
            "userPrompt": "usr",
            "analysisLevel": "epic",
            "hasImage": True,
            "imageData": "aGk=",
            "imageType": "image/png",
            "llm_provider": "google",
            "model": "gemini-2.5-pro",
        }

    def test_direct_analyzer_requires_api_key(self) -> None:
        """Test that a missing key is an invocation failure."""
        analyzer = DirectLLMAnalyzer(lambda: ResolvedCredentials("google", "gemini-pro", "", 0.7, 4000))

        with pytest.raises(LLMError, match="No API key"):
            analyzer.analyze(AnalysisRequest("s", "u", AnalysisLevel.STORY))


class TestCreatePipeline:
    """Tests for building the pipeline from configuration."""

    def test_gateway_transport(self, resolver: ConfigurationResolver) -> None:
        """Test the default transport."""
        config = AuraConfig(gateway=GatewayConfig(url="http://gw/x", timeout=5), mock=MockConfig(delay=0))

        pipeline = create_pipeline(config, resolver)

        primary = pipeline.policy.primary
        assert isinstance(primary, GatewayAnalyzer)
        assert primary.client.url == "http://gw/x"
        assert primary.client.timeout == 5
        assert pipeline.mock.delay == 0

    def test_direct_transport(self, resolver: ConfigurationResolver) -> None:
        """Test the LiteLLM transport and attempt count."""
        config = AuraConfig(gateway=GatewayConfig(transport="direct", max_attempts=2))

        pipeline = create_pipeline(config, resolver)

        assert isinstance(pipeline.policy.primary, DirectLLMAnalyzer)
        assert pipeline.policy.max_attempts == 2
