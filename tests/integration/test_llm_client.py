"""Integration tests for the LiteLLM client and the direct analysis path.

LiteLLM is patched so no provider is contacted.
"""

from unittest.mock import MagicMock, patch

import litellm
import pytest

from aura.llm.client import LLMClient, LLMError, create_client, parse_json_response
from aura.llm.mock import MockAnalyzer
from aura.models.llm_config import ResolvedCredentials
from aura.pipeline import DirectLLMAnalyzer, InvocationPipeline

GOOGLE_CREDS = ResolvedCredentials("google", "gemini-2.5-pro", "g-key", 0.7, 4000)


def _litellm_response(content: str) -> MagicMock:
    response = MagicMock()
    response.choices = [MagicMock(message=MagicMock(content=content), finish_reason="stop")]
    response.model = "gemini/gemini-2.5-pro"
    response.usage = MagicMock(prompt_tokens=100, completion_tokens=50, total_tokens=150)
    return response


class TestCreateClient:
    """Tests for create_client."""

    def test_create(self) -> None:
        """Test creating a client from resolved credentials."""
        client = create_client(GOOGLE_CREDS)

        assert client.credentials.provider == "google"

    def test_missing_model(self) -> None:
        """Test that incomplete credentials are refused."""
        with pytest.raises(ValueError, match="provider and a model"):
            create_client(ResolvedCredentials("openai", "", "sk", 0.7, 4000))


class TestLLMClientCompletion:
    """Tests for LLMClient.complete."""

    def test_text_completion(self) -> None:
        """Test the LiteLLM call arguments and response mapping."""
        with patch("litellm.completion", return_value=_litellm_response("hello")) as completion:
            response = LLMClient(GOOGLE_CREDS).complete("prompt", system_prompt="system")

        assert response.content == "hello"
        assert response.usage["total_tokens"] == 150
        assert response.finish_reason == "stop"

        kwargs = completion.call_args.kwargs
        assert kwargs["model"] == "gemini/gemini-2.5-pro"
        assert kwargs["api_key"] == "g-key"
        assert kwargs["temperature"] == 0.7
        assert kwargs["max_tokens"] == 4000
        assert kwargs["messages"] == [
            {"role": "system", "content": "system"},
            {"role": "user", "content": "prompt"},
        ]

    def test_image_completion(self) -> None:
        """Test that an image is sent as a data URL part."""
        with patch("litellm.completion", return_value=_litellm_response("{}")) as completion:
            LLMClient(GOOGLE_CREDS).complete("prompt", image_data="aGk=", image_type="image/jpeg")

        user_message = completion.call_args.kwargs["messages"][-1]
        assert user_message["content"][0] == {"type": "text", "text": "prompt"}
        assert user_message["content"][1]["image_url"]["url"] == "data:image/jpeg;base64,aGk="

    def test_max_tokens_override(self) -> None:
        """Test per-call max_tokens."""
        with patch("litellm.completion", return_value=_litellm_response("ok")) as completion:
            LLMClient(GOOGLE_CREDS).complete("prompt", max_tokens=10)

        assert completion.call_args.kwargs["max_tokens"] == 10

    def test_errors_become_llm_error(self) -> None:
        """Test that provider failures are wrapped."""
        with patch("litellm.completion", side_effect=RuntimeError("boom")):
            with pytest.raises(LLMError, match="LLM completion failed: boom"):
                LLMClient(GOOGLE_CREDS).complete("prompt")

    def test_authentication_error(self) -> None:
        """Test the authentication error message."""
        error = litellm.exceptions.AuthenticationError(
            message="bad key", llm_provider="gemini", model="gemini-2.5-pro"
        )
        with patch("litellm.completion", side_effect=error):
            with pytest.raises(LLMError, match="Authentication failed for google"):
                LLMClient(GOOGLE_CREDS).complete("prompt")

    def test_check_available(self) -> None:
        """Test the availability probe."""
        with patch("litellm.completion", return_value=_litellm_response("ok")):
            assert LLMClient(GOOGLE_CREDS).check_available()
        with patch("litellm.completion", side_effect=RuntimeError("down")):
            assert not LLMClient(GOOGLE_CREDS).check_available()


class TestParseJsonResponse:
    """Tests for extracting JSON from model replies."""

    def test_fenced_block(self) -> None:
        """Test a ```json fenced reply."""
        text = 'Here you go:\n```json\n{"analysisDepth": "story"}\n```\nThanks'

        assert parse_json_response(text) == {"analysisDepth": "story"}

    def test_bare_object(self) -> None:
        """Test a bare object surrounded by prose."""
        assert parse_json_response('Result: {"stories": []} done') == {"stories": []}

    @pytest.mark.parametrize("text", ["no json here", "```json\n{broken\n```", "[1, 2]"])
    def test_invalid(self, text: str) -> None:
        """Test replies without a usable object."""
        with pytest.raises(LLMError):
            parse_json_response(text)


class TestDirectPipeline:
    """Tests for the pipeline using the direct LiteLLM transport."""

    def test_direct_success(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that a parsed provider reply is returned untagged."""
        pipeline = InvocationPipeline(DirectLLMAnalyzer(lambda: GOOGLE_CREDS), mock=mock_analyzer)
        reply = '```json\n{"analysisDepth": "epic", "stories": [], "epics": []}\n```'

        with patch("litellm.completion", return_value=_litellm_response(reply)):
            result = pipeline.invoke("sys", "usr", "epic", has_image=False, use_real_llm=True)

        assert result == {"analysisDepth": "epic", "stories": [], "epics": []}

    def test_direct_unparseable_reply_falls_back(self, mock_analyzer: MockAnalyzer) -> None:
        """Test that a reply without JSON degrades to the mock."""
        pipeline = InvocationPipeline(DirectLLMAnalyzer(lambda: GOOGLE_CREDS), mock=mock_analyzer)

        with patch("litellm.completion", return_value=_litellm_response("I cannot help with that")):
            result = pipeline.invoke("sys", "usr", "story", has_image=False, use_real_llm=True)

        assert result["analysisMode"] == "mock-fallback"
        assert result["fallbackReason"] == "Could not find JSON in LLM response"
