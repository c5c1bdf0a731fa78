from typing import Any

from openai import AsyncOpenAI

from ..base import LLMProvider
from ..models import GenerateRequest, LLMResponse, MessageData, Part

# OpenAI calls earlier model turns 'assistant'
_ROLE_MAP = {"user": "user", "model": "assistant"}


def _part_to_openai(part: Part) -> dict[str, Any]:
    if part.media is not None:
        return {"type": "image_url", "image_url": {"url": part.media.url}}
    return {"type": "text", "text": part.text or ""}


def _content_to_openai(parts: list[Part]) -> str | list[dict[str, Any]]:
    """Plain string for text-only content, typed parts when media is present."""
    if all(not part.is_media for part in parts):
        return "\n".join(part.text or "" for part in parts)
    return [_part_to_openai(part) for part in parts]


def to_openai_messages(request: GenerateRequest) -> list[dict[str, Any]]:
    """Convert history plus the current turn into Chat Completions messages."""
    history: list[MessageData] = request.messages or []
    openai_messages = [
        {"role": _ROLE_MAP[msg.role], "content": _content_to_openai(msg.content)}
        for msg in history
    ]
    if request.prompt:
        openai_messages.append({"role": "user", "content": _content_to_openai(request.prompt)})
    return openai_messages


def to_openai_params(request: GenerateRequest) -> dict[str, Any]:
    """Map sampling config onto Chat Completions parameter names.

    top_k has no Chat Completions equivalent and is not forwarded.
    """
    params: dict[str, Any] = {}
    if request.config is None:
        return params
    config = request.config.explicit_fields()
    if "max_output_tokens" in config:
        params["max_tokens"] = config["max_output_tokens"]
    if "temperature" in config:
        params["temperature"] = config["temperature"]
    if "top_p" in config:
        params["top_p"] = config["top_p"]
    return params


class OpenAIProvider(LLMProvider):
    """OpenAI LLM provider implementation.

    Hidden design decisions:
    - OpenAI API client initialization
    - Message format conversion (image parts become 'image_url' content)
    - Authentication mechanism
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gpt-4o",
        base_url: str | None = None,
        organization: str | None = None,
        **client_kwargs: Any
    ):
        """Initialize OpenAI provider.

        Args:
            api_key: OpenAI API key
            model: Default model used when a request names none
            base_url: Optional custom API base URL (OpenAI-compatible servers)
            organization: Optional organization ID
            **client_kwargs: Additional kwargs for AsyncOpenAI client
        """
        self._model = model
        self._client = AsyncOpenAI(
            api_key=api_key,
            base_url=base_url,
            organization=organization,
            **client_kwargs
        )

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    async def generate(self, request: GenerateRequest) -> LLMResponse:
        """Generate a chat completion using OpenAI.

        Args:
            request: Normalized request with a bare model name

        Returns:
            LLMResponse with generated content
        """
        model_to_use = request.model or self._model

        request_params: dict[str, Any] = {
            "model": model_to_use,
            "messages": to_openai_messages(request),
            **to_openai_params(request),
        }

        completion = await self._client.chat.completions.create(**request_params)

        usage = None
        if completion.usage:
            usage = {
                "prompt_tokens": completion.usage.prompt_tokens,
                "completion_tokens": completion.usage.completion_tokens,
                "total_tokens": completion.usage.total_tokens
            }

        text = completion.choices[0].message.content if completion.choices else None

        return LLMResponse(
            text=text,
            model=completion.model,
            usage=usage
        )

    async def close(self) -> None:
        """Close the OpenAI client.

        Note: Uses the OpenAI SDK's async context manager for proper cleanup.
        See: https://github.com/openai/openai-python#async-usage
        """
        await self._client.close()
