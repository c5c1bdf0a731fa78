from .base import LLMProvider
from .factory import create_llm_provider
from .models import GenerateRequest, LLMResponse, Media, MessageData, ModelConfig, Part
from .providers import AnthropicProvider, GeminiProvider, OpenAIProvider
from .registry import DEFAULT_MODELS, ModelDescriptor, ModelRegistry, ProviderSettings

__all__ = [
    "DEFAULT_MODELS",
    "LLMProvider",
    "create_llm_provider",
    "GenerateRequest",
    "LLMResponse",
    "Media",
    "MessageData",
    "ModelConfig",
    "ModelDescriptor",
    "ModelRegistry",
    "Part",
    "ProviderSettings",
    "AnthropicProvider",
    "GeminiProvider",
    "OpenAIProvider",
]
