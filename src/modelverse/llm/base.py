from abc import ABC, abstractmethod
from typing import Any

from .models import GenerateRequest, LLMResponse


class LLMProvider(ABC):
    """Abstract base class for LLM providers.

    This module hides the design decision of which LLM provider serves a model.
    Implementations must handle provider-specific details like:
    - API client setup and authentication
    - Conversion of text and media parts into the SDK's message format
    - Mapping of sampling parameters onto the SDK's names

    Implementations do not retry and do not stream: one request, one response.

    Supports async context manager protocol for proper resource cleanup:
        async with provider:
            response = await provider.generate(request)
        # Automatically cleaned up
    """

    @abstractmethod
    async def generate(self, request: GenerateRequest) -> LLMResponse:
        """Run a single generation call.

        Args:
            request: Normalized request. ``request.model`` is the bare model
                name without the '<provider>/' prefix.

        Returns:
            LLMResponse whose ``text`` is None when the provider returned no text

        Raises:
            Exception: Provider-specific errors during generation
        """
        pass

    @abstractmethod
    async def close(self) -> None:
        """Close any open connections or resources."""
        pass

    async def __aenter__(self) -> "LLMProvider":
        """Async context manager entry."""
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        """Async context manager exit with automatic cleanup.

        Note: Suppresses "Event loop is closed" errors during cleanup.
        This is a known harmless race condition in httpx/anyio cleanup:
        https://github.com/encode/httpx/issues/914
        """
        try:
            await self.close()
        except RuntimeError as e:
            if "Event loop is closed" not in str(e):
                raise
