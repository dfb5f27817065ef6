"""Unified LLM client wrapper using LiteLLM.

Provides a consistent interface for the catalog providers (OpenAI, Google
Gemini) driven by ResolvedCredentials from the settings store.
"""

import json
import logging
import re
from dataclasses import dataclass
from typing import Any

import litellm

from aura.models.llm_config import ResolvedCredentials

logger = logging.getLogger(__name__)


class InvocationError(Exception):
    """Base class for failures on the real-LLM path."""

    pass


class LLMError(InvocationError):
    """Exception raised for LLM-related errors."""

    pass


@dataclass
class LLMResponse:
    """Response from LLM completion.

    Attributes:
        content: Generated text content
        model: Model that generated the response
        usage: Token usage statistics
        finish_reason: Reason for completion (stop, length, etc.)
    """

    content: str
    model: str
    usage: dict[str, int]
    finish_reason: str | None = None


class LLMClient:
    """Provider-agnostic completion client.

    Temperature and max_tokens come from the resolved credentials, which in
    turn come from the global LLM setting.
    """

    def __init__(self, credentials: ResolvedCredentials) -> None:
        """Initialize LLM client with resolved credentials.

        Args:
            credentials: Provider, model, API key and sampling settings
        """
        self.credentials = credentials

    def complete(
        self,
        prompt: str,
        system_prompt: str | None = None,
        max_tokens: int | None = None,
        image_data: str | None = None,
        image_type: str | None = None,
    ) -> LLMResponse:
        """Generate a completion from the LLM.

        Args:
            prompt: User prompt for the LLM
            system_prompt: Optional system prompt
            max_tokens: Override max_tokens from credentials
            image_data: Optional base64 image sent alongside the prompt
            image_type: MIME type of the image (defaults to image/png)

        Returns:
            LLMResponse with generated content

        Raises:
            LLMError: If the completion fails
        """
        messages: list[dict[str, Any]] = []

        if system_prompt:
            messages.append({"role": "system", "content": system_prompt})

        if image_data:
            data_url = f"data:{image_type or 'image/png'};base64,{image_data}"
            messages.append(
                {
                    "role": "user",
                    "content": [
                        {"type": "text", "text": prompt},
                        {"type": "image_url", "image_url": {"url": data_url}},
                    ],
                }
            )
        else:
            messages.append({"role": "user", "content": prompt})

        provider = self.credentials.provider

        try:
            response = litellm.completion(
                model=self.credentials.get_litellm_model_name(),
                messages=messages,
                temperature=self.credentials.temperature,
                max_tokens=max_tokens or self.credentials.max_tokens,
                api_key=self.credentials.api_key or None,
            )

            choice = response.choices[0]
            content = choice.message.content or ""

            usage = {}
            if response.usage:
                usage = {
                    "prompt_tokens": response.usage.prompt_tokens or 0,
                    "completion_tokens": response.usage.completion_tokens or 0,
                    "total_tokens": response.usage.total_tokens or 0,
                }

            return LLMResponse(
                content=content,
                model=response.model or self.credentials.model,
                usage=usage,
                finish_reason=choice.finish_reason,
            )

        except litellm.exceptions.AuthenticationError as e:
            raise LLMError(f"Authentication failed for {provider}: {e}") from e
        except litellm.exceptions.RateLimitError as e:
            raise LLMError(f"Rate limit exceeded for {provider}: {e}") from e
        except litellm.exceptions.APIConnectionError as e:
            raise LLMError(f"Connection failed to {provider}: {e}") from e
        except Exception as e:
            raise LLMError(f"LLM completion failed: {e}") from e

    def check_available(self) -> bool:
        """Check if the LLM provider is available.

        Returns:
            True if provider is reachable and credentials are valid
        """
        try:
            self.complete("Say 'ok'", max_tokens=10)
            return True
        except LLMError:
            return False


def create_client(credentials: ResolvedCredentials) -> LLMClient:
    """Create an LLM client from resolved credentials.

    Raises:
        ValueError: If provider or model is missing
    """
    if not credentials.provider or not credentials.model:
        raise ValueError("Resolved credentials must name a provider and a model")

    return LLMClient(credentials)


def parse_json_response(response_text: str) -> dict[str, Any]:
    """Extract the JSON object from an LLM reply.

    Accepts a bare object or one wrapped in a ```json fenced block.

    Raises:
        LLMError: If no JSON object can be decoded
    """
    json_match = re.search(r"```json\s*(.*?)\s*```", response_text, re.DOTALL)
    if json_match:
        json_str = json_match.group(1)
    else:
        json_match = re.search(r"\{[\s\S]*\}", response_text)
        if not json_match:
            raise LLMError("Could not find JSON in LLM response")
        json_str = json_match.group(0)

    try:
        data = json.loads(json_str)
    except json.JSONDecodeError as e:
        raise LLMError(f"Failed to parse LLM JSON response: {e}") from e

    if not isinstance(data, dict):
        raise LLMError("LLM response JSON is not an object")

    return data
