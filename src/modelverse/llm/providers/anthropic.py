"""Anthropic Claude LLM provider implementation.

Uses the official Anthropic Python SDK for async message creation.
Reference: https://github.com/anthropics/anthropic-sdk-python
"""

import base64
from typing import Any

from anthropic import AsyncAnthropic

from ...datauri import is_data_uri, parse_data_uri
from ..base import LLMProvider
from ..models import GenerateRequest, LLMResponse, Part

# Anthropic requires max_tokens on every request
DEFAULT_MAX_TOKENS = 4096

_ROLE_MAP = {"user": "user", "model": "assistant"}


def _part_to_anthropic(part: Part) -> dict[str, Any]:
    if part.media is None:
        return {"type": "text", "text": part.text or ""}

    url = part.media.url
    if is_data_uri(url):
        mime_type, data = parse_data_uri(url)
        return {
            "type": "image",
            "source": {
                "type": "base64",
                "media_type": mime_type,
                "data": base64.b64encode(data).decode("ascii"),
            },
        }
    return {"type": "image", "source": {"type": "url", "url": url}}


def to_anthropic_messages(request: GenerateRequest) -> list[dict[str, Any]]:
    """Convert history plus the current turn into Messages API format.

    Consecutive turns with the same role are merged into one message so the
    conversation alternates between user and assistant.
    """
    turns: list[tuple[str, list[Part]]] = [
        (_ROLE_MAP[msg.role], list(msg.content)) for msg in request.messages or []
    ]
    if request.prompt:
        turns.append(("user", list(request.prompt)))

    anthropic_messages: list[dict[str, Any]] = []
    for role, parts in turns:
        blocks = [_part_to_anthropic(part) for part in parts]
        if anthropic_messages and anthropic_messages[-1]["role"] == role:
            anthropic_messages[-1]["content"].extend(blocks)
        else:
            anthropic_messages.append({"role": role, "content": blocks})
    return anthropic_messages


def to_anthropic_params(request: GenerateRequest) -> dict[str, Any]:
    """Map sampling config onto Messages API parameter names."""
    config = request.config.explicit_fields() if request.config else {}
    params: dict[str, Any] = {
        "max_tokens": config.get("max_output_tokens", DEFAULT_MAX_TOKENS),
    }
    for key in ("temperature", "top_p", "top_k"):
        if key in config:
            params[key] = config[key]
    return params


class AnthropicProvider(LLMProvider):
    """Anthropic Claude LLM provider implementation.

    Hidden design decisions:
    - Anthropic API client initialization
    - Message format conversion (data URIs become base64 image blocks)
    - Mandatory max_tokens default
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "claude-3-haiku-20240307",
        base_url: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize Anthropic provider.

        Args:
            api_key: Anthropic API key
            model: Default model used when a request names none
            base_url: Optional custom API base URL
            **client_kwargs: Additional kwargs for AsyncAnthropic client
        """
        self._model = model
        self._client = AsyncAnthropic(
            api_key=api_key,
            base_url=base_url,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def generate(self, request: GenerateRequest) -> LLMResponse:
        """Generate a message using Anthropic Claude.

        Args:
            request: Normalized request with a bare model name

        Returns:
            LLMResponse with generated content
        """
        model_to_use = request.model or self._model

        request_params: dict[str, Any] = {
            "model": model_to_use,
            "messages": to_anthropic_messages(request),
            **to_anthropic_params(request),
        }

        response = await self._client.messages.create(**request_params)

        usage = None
        if response.usage:
            usage = {
                "prompt_tokens": response.usage.input_tokens,
                "completion_tokens": response.usage.output_tokens,
                "total_tokens": response.usage.input_tokens + response.usage.output_tokens
            }

        # Join text from every text block
        texts = [block.text for block in response.content if getattr(block, "text", None)]

        return LLMResponse(
            text="".join(texts) if texts else None,
            model=response.model,
            usage=usage
        )

    async def close(self) -> None:
        """Close the Anthropic client."""
        await self._client.close()
