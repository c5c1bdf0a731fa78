from typing import Any

from .base import LLMProvider
from .providers import AnthropicProvider, GeminiProvider, OpenAIProvider

# Accepted provider names, including the model-id prefixes used by the registry
_PROVIDERS: dict[str, type[LLMProvider]] = {
    "openai": OpenAIProvider,
    "anthropic": AnthropicProvider,
    "claude": AnthropicProvider,
    "googleai": GeminiProvider,
    "gemini": GeminiProvider,
}


def create_llm_provider(provider: str, **config: Any) -> LLMProvider:
    """Create an LLM provider instance.

    Args:
        provider: 'openai', 'anthropic' (or 'claude'), 'googleai' (or 'gemini')
        **config: Keyword arguments for the provider class. ``api_key`` is
            required for all of them; ``model`` sets the fallback model name
            and ``base_url`` points OpenAI/Anthropic at a compatible server.

    Returns:
        Initialized LLM provider instance

    Raises:
        ValueError: If provider type is not supported
        TypeError: If ``api_key`` is missing

    Examples:
        >>> provider = create_llm_provider("googleai", api_key="...")
        >>> provider = create_llm_provider(
        ...     "openai",
        ...     api_key="sk-...",
        ...     base_url="http://localhost:11434/v1",
        ... )
    """
    provider_cls = _PROVIDERS.get(provider.lower())
    if provider_cls is None:
        raise ValueError(
            f"Unsupported provider: {provider}. "
            f"Supported providers: 'openai', 'anthropic', 'googleai'"
        )
    if "api_key" not in config:
        raise TypeError(f"{provider_cls.__name__} requires 'api_key' in config")
    return provider_cls(**config)
