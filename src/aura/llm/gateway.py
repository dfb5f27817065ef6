"""HTTP client for the remote LLM gateway.

The gateway accepts a JSON envelope and answers with
{"success": bool, "data": {...}, "error": "..."}. Any transport error,
non-2xx status, undecodable body or success=false is a GatewayError.
"""

import http.client
import json
import logging
import urllib.error
import urllib.request
from typing import Any

from aura.llm.client import InvocationError

logger = logging.getLogger(__name__)


class GatewayError(InvocationError):
    """Exception raised when the gateway call fails."""

    pass


class GatewayClient:
    """Synchronous JSON-over-HTTP client for the gateway endpoint."""

    def __init__(self, url: str, timeout: float | None = None) -> None:
        """Initialize gateway client.

        Args:
            url: Endpoint receiving POSTed envelopes
            timeout: Socket timeout in seconds (None blocks indefinitely)
        """
        self.url = url
        self.timeout = timeout

    def post(self, payload: dict[str, Any]) -> dict[str, Any]:
        """POST an envelope and return the `data` field of a successful reply.

        Args:
            payload: JSON-serializable request body

        Returns:
            The gateway's `data` object

        Raises:
            GatewayError: On any failure, with a human-readable message
        """
        body = json.dumps(payload).encode("utf-8")
        req = urllib.request.Request(
            self.url,
            data=body,
            headers={"Content-Type": "application/json"},
            method="POST",
        )

        logger.debug("POST %s (%d bytes)", self.url, len(body))

        try:
            with urllib.request.urlopen(req, timeout=self.timeout) as response:
                raw = response.read().decode("utf-8")
        except urllib.error.HTTPError as e:
            raise GatewayError(f"Gateway responded with {e.code}") from e
        except urllib.error.URLError as e:
            raise GatewayError(f"Gateway unreachable at {self.url}: {e.reason}") from e
        except (TimeoutError, OSError) as e:
            raise GatewayError(f"Gateway request failed: {e}") from e
        except (UnicodeDecodeError, http.client.HTTPException) as e:
            raise GatewayError(f"Gateway returned an unreadable response: {e}") from e

        try:
            result = json.loads(raw)
        except json.JSONDecodeError as e:
            raise GatewayError(f"Gateway returned invalid JSON: {e}") from e

        if not isinstance(result, dict):
            raise GatewayError("Gateway returned a non-object response")

        if not result.get("success"):
            raise GatewayError(result.get("error") or "Failed to analyze design via gateway")

        data = result.get("data")
        if not isinstance(data, dict):
            raise GatewayError("Gateway response is missing the analysis data")

        return data
