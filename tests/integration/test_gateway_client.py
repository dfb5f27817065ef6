"""Integration tests for the gateway client and gateway-backed pipeline.

urllib is patched so no network traffic happens.
"""

import http.client
import json
import urllib.error
from typing import Any
from unittest.mock import MagicMock, patch

import pytest

from aura.llm.gateway import GatewayClient, GatewayError
from aura.llm.mock import MockAnalyzer
from aura.models.llm_config import ResolvedCredentials
from aura.pipeline import GatewayAnalyzer, InvocationPipeline

GATEWAY_URL = "http://gateway.test/reverse-engineer-design"


def _response(body: Any) -> MagicMock:
    """Build a urlopen() context manager returning body as JSON."""
    raw = body if isinstance(body, bytes) else json.dumps(body).encode("utf-8")
    response = MagicMock()
    response.read.return_value = raw
    response.__enter__.return_value = response
    return response


def _http_error(code: int) -> urllib.error.HTTPError:
    return urllib.error.HTTPError(GATEWAY_URL, code, "error", hdrs=None, fp=None)


class TestGatewayClient:
    """Tests for GatewayClient.post."""

    def test_success_returns_data(self) -> None:
        """Test that the data field of a successful reply is returned."""
        data = {"analysisDepth": "story", "stories": [{"id": "S-1"}]}

        with patch("urllib.request.urlopen", return_value=_response({"success": True, "data": data})) as urlopen:
            result = GatewayClient(GATEWAY_URL, timeout=7).post({"analysisLevel": "story"})

        assert result == data
        request = urlopen.call_args[0][0]
        assert request.full_url == GATEWAY_URL
        assert request.get_method() == "POST"
        assert request.get_header("Content-type") == "application/json"
        assert json.loads(request.data) == {"analysisLevel": "story"}
        assert urlopen.call_args[1]["timeout"] == 7

    def test_http_error(self) -> None:
        """Test that non-2xx statuses become GatewayError."""
        with patch("urllib.request.urlopen", side_effect=_http_error(500)):
            with pytest.raises(GatewayError, match="Gateway responded with 500"):
                GatewayClient(GATEWAY_URL).post({})

    def test_unreachable(self) -> None:
        """Test connection failures."""
        error = urllib.error.URLError("Connection refused")
        with patch("urllib.request.urlopen", side_effect=error):
            with pytest.raises(GatewayError, match="unreachable"):
                GatewayClient(GATEWAY_URL).post({})

    def test_timeout(self) -> None:
        """Test socket timeouts."""
        with patch("urllib.request.urlopen", side_effect=TimeoutError("timed out")):
            with pytest.raises(GatewayError, match="timed out"):
                GatewayClient(GATEWAY_URL, timeout=1).post({})

    def test_success_false_uses_error_message(self) -> None:
        """Test that the gateway's own error message is kept."""
        body = {"success": False, "error": "Model overloaded"}
        with patch("urllib.request.urlopen", return_value=_response(body)):
            with pytest.raises(GatewayError, match="Model overloaded"):
                GatewayClient(GATEWAY_URL).post({})

    def test_success_false_without_message(self) -> None:
        """Test the generic failure message."""
        with patch("urllib.request.urlopen", return_value=_response({"success": False})):
            with pytest.raises(GatewayError, match="Failed to analyze design via gateway"):
                GatewayClient(GATEWAY_URL).post({})

    @pytest.mark.parametrize(
        "body",
        [b"<html>502 Bad Gateway</html>", [1, 2, 3], {"success": True}, {"success": True, "data": "x"}],
    )
    def test_malformed_replies(self, body: Any) -> None:
        """Test undecodable or incomplete replies."""
        with patch("urllib.request.urlopen", return_value=_response(body)):
            with pytest.raises(GatewayError):
                GatewayClient(GATEWAY_URL).post({})

    def test_non_utf8_body(self) -> None:
        """Test that a body that is not UTF-8 becomes GatewayError."""
        with patch("urllib.request.urlopen", return_value=_response(b"\xff\xfe not utf8")):
            with pytest.raises(GatewayError, match="unreadable response"):
                GatewayClient(GATEWAY_URL).post({})

    def test_truncated_body(self) -> None:
        """Test that a connection dropped mid-body becomes GatewayError."""
        response = _response(b"")
        response.read.side_effect = http.client.IncompleteRead(b'{"success": tr', 40)

        with patch("urllib.request.urlopen", return_value=response):
            with pytest.raises(GatewayError, match="unreadable response"):
                GatewayClient(GATEWAY_URL).post({})


class TestGatewayPipeline:
    """Tests for the pipeline running against a patched gateway."""

    @pytest.fixture
    def pipeline(self, mock_analyzer: MockAnalyzer) -> InvocationPipeline:
        creds = ResolvedCredentials("google", "gemini-2.5-pro", "g-secret", 0.7, 4000)
        analyzer = GatewayAnalyzer(GatewayClient(GATEWAY_URL), lambda: creds)
        return InvocationPipeline(analyzer, mock=mock_analyzer)

    def test_http_500_falls_back_to_mock(
        self, pipeline: InvocationPipeline, mock_analyzer: MockAnalyzer
    ) -> None:
        """Test that a 500 from the gateway yields a tagged mock result."""
        with patch("urllib.request.urlopen", side_effect=_http_error(500)):
            result = pipeline.invoke("sys", "usr", "epic", has_image=True, use_real_llm=True)

        assert result["analysisMode"] == "mock-fallback"
        assert result["requestedMode"] == "real-llm"
        assert result["fallbackReason"] == "Gateway responded with 500"
        assert result["stories"] == mock_analyzer.analyze("epic", has_image=True)["stories"]
        assert json.dumps(result["stories"]) == json.dumps(mock_analyzer.analyze("epic")["stories"])

    def test_envelope_sent_to_gateway(self, pipeline: InvocationPipeline) -> None:
        """Test the request envelope and that the API key stays local."""
        reply = {"success": True, "data": {"analysisDepth": "story", "stories": []}}

        with patch("urllib.request.urlopen", return_value=_response(reply)) as urlopen:
            result = pipeline.invoke(
                "sys", "usr", "story", has_image=True, use_real_llm=True,
                image_data="aGk=", image_type="image/png",
            )

        assert result == reply["data"]
        sent = json.loads(urlopen.call_args[0][0].data)
        assert sent["llm_provider"] == "google"
        assert sent["model"] == "gemini-2.5-pro"
        assert sent["imageData"] == "aGk="
        assert "g-secret" not in json.dumps(sent)

    def test_undecodable_reply_falls_back_to_mock(self, pipeline: InvocationPipeline) -> None:
        """Test that a reply which cannot be decoded still yields the mock result."""
        with patch("urllib.request.urlopen", return_value=_response(b"\xff\xfe not utf8")):
            result = pipeline.invoke("s", "u", "story", has_image=False, use_real_llm=True)

        assert result["analysisMode"] == "mock-fallback"
        assert result["fallbackReason"].startswith("Gateway returned an unreadable response")
