"""Google Gemini LLM provider implementation.

Uses the official Google GenAI SDK for async content generation.
Reference: https://github.com/googleapis/python-genai

Note: Gemini can return empty responses due to safety filtering.
Those surface as a response without text; nothing is retried here.
"""

import mimetypes
from typing import Any

from google import genai
from google.genai import types

from ...datauri import is_data_uri, parse_data_uri
from ..base import LLMProvider
from ..models import GenerateRequest, LLMResponse, Part


def _part_to_gemini(part: Part) -> types.Part:
    if part.media is None:
        return types.Part(text=part.text or "")

    url = part.media.url
    if is_data_uri(url):
        mime_type, data = parse_data_uri(url)
        return types.Part.from_bytes(data=data, mime_type=mime_type)

    mime_type, _ = mimetypes.guess_type(url)
    return types.Part.from_uri(file_uri=url, mime_type=mime_type or "image/jpeg")


def to_gemini_contents(request: GenerateRequest) -> list[types.Content]:
    """Convert history plus the current turn into Gemini contents."""
    contents = [
        types.Content(role=msg.role, parts=[_part_to_gemini(part) for part in msg.content])
        for msg in request.messages or []
    ]
    if request.prompt:
        contents.append(types.Content(
            role="user",
            parts=[_part_to_gemini(part) for part in request.prompt]
        ))
    return contents


def to_gemini_config(request: GenerateRequest) -> types.GenerateContentConfig | None:
    """Build a generation config holding only explicitly set parameters."""
    if request.config is None or request.config.is_empty():
        return None
    return types.GenerateContentConfig(**request.config.explicit_fields())


class GeminiProvider(LLMProvider):
    """Google Gemini LLM provider implementation.

    Hidden design decisions:
    - Google GenAI client initialization
    - Message format conversion (data URIs become inline bytes)
    - Extraction of text from candidate parts
    """

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash-latest",
        **client_kwargs: Any
    ):
        """Initialize Gemini provider.

        Args:
            api_key: Google AI API key
            model: Default model used when a request names none
            **client_kwargs: Additional kwargs for Client
        """
        self._model = model
        self._client = genai.Client(api_key=api_key, **client_kwargs)

    @property
    def model(self) -> str:
        """Get the default model name."""
        return self._model

    def _extract_content(self, response) -> str | None:
        """Extract text content from a Gemini response.

        Args:
            response: Gemini GenerateContentResponse

        Returns:
            Joined text of the first candidate, or None if there is none
        """
        if response.candidates:
            candidate = response.candidates[0]
            if candidate.content and candidate.content.parts:
                texts = [part.text for part in candidate.content.parts if getattr(part, "text", None)]
                if texts:
                    return "".join(texts)

        # response.text may raise when the prompt was blocked
        try:
            return response.text or None
        except (ValueError, AttributeError):
            return None

    async def generate(self, request: GenerateRequest) -> LLMResponse:
        """Generate content using Google Gemini.

        Args:
            request: Normalized request with a bare model name

        Returns:
            LLMResponse with generated content
        """
        model_to_use = request.model or self._model

        response = await self._client.aio.models.generate_content(
            model=model_to_use,
            contents=to_gemini_contents(request),
            config=to_gemini_config(request)
        )

        usage = None
        if response.usage_metadata:
            usage = {
                "prompt_tokens": response.usage_metadata.prompt_token_count or 0,
                "completion_tokens": response.usage_metadata.candidates_token_count or 0,
                "total_tokens": response.usage_metadata.total_token_count or 0
            }

        return LLMResponse(
            text=self._extract_content(response),
            model=model_to_use,
            usage=usage
        )

    async def close(self) -> None:
        """Close the Gemini client.

        Note: The Google GenAI client doesn't require explicit closing,
        but we implement this for interface consistency.
        """
        pass
