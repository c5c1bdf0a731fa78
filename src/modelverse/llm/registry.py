"""Model catalog and provider wiring.

Hides which models exist, which of them accept images, and which provider
SDK serves each '<provider>/<model-name>' identifier. Provider credentials are
resolved once into a ProviderSettings value and passed in explicitly; nothing
here reads or mutates global state after construction.
"""

import os
from collections.abc import Callable, Iterable, Mapping
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from ..errors import ProviderUnavailableError, UnknownModelError
from .base import LLMProvider
from .factory import create_llm_provider
from .models import GenerateRequest, LLMResponse


class ModelDescriptor(BaseModel):
    """A selectable model and its capabilities."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(description="Namespaced identifier, '<provider>/<model-name>'")
    label: str = Field(description="Human-readable name shown in model pickers")
    supports_images: bool = Field(default=True, description="Whether image parts may be sent")

    @property
    def provider(self) -> str:
        provider, _, _ = self.id.partition("/")
        return provider

    @property
    def model_name(self) -> str:
        _, sep, name = self.id.partition("/")
        return name if sep else self.id


DEFAULT_MODELS: tuple[ModelDescriptor, ...] = (
    ModelDescriptor(id="googleai/gemini-1.5-flash-latest", label="Gemini 1.5 Flash"),
    ModelDescriptor(id="openai/gpt-4o", label="OpenAI GPT-4o"),
    ModelDescriptor(id="openai/gpt-3.5-turbo", label="OpenAI GPT-3.5 Turbo", supports_images=False),
    ModelDescriptor(id="openai/grok-3", label="Grok 3", supports_images=False),
    ModelDescriptor(
        id="anthropic/claude-3-haiku-20240307",
        label="Anthropic Claude 3 Haiku",
        supports_images=False,
    ),
)

# Provider prefix -> environment variable holding its API key
PROVIDER_KEY_VARS = {
    "googleai": "GEMINI_API_KEY",
    "openai": "OPENAI_API_KEY",
    "anthropic": "ANTHROPIC_API_KEY",
}


class ProviderSettings(BaseModel):
    """Provider credentials and runtime options, resolved once at startup."""

    model_config = ConfigDict(frozen=True)

    gemini_api_key: str | None = None
    openai_api_key: str | None = None
    openai_base_url: str | None = None
    anthropic_api_key: str | None = None
    default_model: str = DEFAULT_MODELS[0].id
    timeout: float | None = Field(default=None, gt=0, description="Seconds per provider call")

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "ProviderSettings":
        """Read settings from environment variables.

        Environment variables:
            GEMINI_API_KEY: Google AI key (enables 'googleai/*' models)
            OPENAI_API_KEY: OpenAI key (enables 'openai/*' models)
            OPENAI_BASE_URL: Optional OpenAI-compatible endpoint
            ANTHROPIC_API_KEY: Anthropic key (enables 'anthropic/*' models)
            MODELVERSE_DEFAULT_MODEL: Model selected on startup
            MODELVERSE_TIMEOUT: Seconds before a provider call is abandoned
        """
        source = os.environ if env is None else env

        def _get(name: str) -> str | None:
            value = source.get(name, "").strip()
            return value or None

        timeout = _get("MODELVERSE_TIMEOUT")
        return cls(
            gemini_api_key=_get("GEMINI_API_KEY"),
            openai_api_key=_get("OPENAI_API_KEY"),
            openai_base_url=_get("OPENAI_BASE_URL"),
            anthropic_api_key=_get("ANTHROPIC_API_KEY"),
            default_model=_get("MODELVERSE_DEFAULT_MODEL") or DEFAULT_MODELS[0].id,
            timeout=float(timeout) if timeout else None,
        )

    def provider_configs(self) -> dict[str, dict[str, Any]]:
        """Factory kwargs for every provider that has credentials."""
        configs: dict[str, dict[str, Any]] = {}
        if self.gemini_api_key:
            configs["googleai"] = {"api_key": self.gemini_api_key}
        if self.openai_api_key:
            configs["openai"] = {"api_key": self.openai_api_key, "base_url": self.openai_base_url}
        if self.anthropic_api_key:
            configs["anthropic"] = {"api_key": self.anthropic_api_key}
        return configs

    def missing_keys(self) -> list[str]:
        """Environment variables of providers left unconfigured."""
        configured = self.provider_configs()
        return [var for provider, var in PROVIDER_KEY_VARS.items() if provider not in configured]


class ModelRegistry:
    """Routes generation requests to the provider that owns a model id.

    The registry is the gateway between the chat layer and provider SDKs:
    it knows the model catalog (and thus image support) and holds one
    provider instance per configured provider prefix.
    """

    def __init__(
        self,
        models: Iterable[ModelDescriptor] = DEFAULT_MODELS,
        providers: Mapping[str, LLMProvider] | None = None,
    ):
        self._models = {model.id: model for model in models}
        self._providers = dict(providers or {})

    @classmethod
    def from_settings(
        cls,
        settings: ProviderSettings,
        models: Iterable[ModelDescriptor] = DEFAULT_MODELS,
        warn: Callable[[str], None] | None = None,
    ) -> "ModelRegistry":
        """Create providers for every configured credential.

        Args:
            settings: Resolved provider settings
            models: Model catalog
            warn: Called once per provider left without credentials
        """
        providers = {
            name: create_llm_provider(name, **config)
            for name, config in settings.provider_configs().items()
        }
        if warn is not None:
            for provider, var in PROVIDER_KEY_VARS.items():
                if provider not in providers:
                    warn(f"{var} not found in environment variables. {provider} models will be unavailable.")
        return cls(models=models, providers=providers)

    @property
    def models(self) -> list[ModelDescriptor]:
        return list(self._models.values())

    def describe(self, model_id: str) -> ModelDescriptor:
        """Return the catalog entry for a model.

        Identifiers outside the catalog are opaque: they are described as
        image-capable with the identifier as their label.
        """
        descriptor = self._models.get(model_id)
        if descriptor is not None:
            return descriptor
        if "/" not in model_id:
            raise UnknownModelError(
                f"Model identifier must look like '<provider>/<model-name>': {model_id!r}"
            )
        return ModelDescriptor(id=model_id, label=model_id)

    def is_available(self, model_id: str) -> bool:
        provider, _, _ = model_id.partition("/")
        return provider in self._providers

    def available_models(self) -> list[ModelDescriptor]:
        return [model for model in self._models.values() if self.is_available(model.id)]

    def provider_for(self, model_id: str) -> LLMProvider:
        descriptor = self.describe(model_id)
        provider = self._providers.get(descriptor.provider)
        if provider is None:
            var = PROVIDER_KEY_VARS.get(descriptor.provider)
            hint = f" (set {var})" if var else ""
            raise ProviderUnavailableError(
                f"No provider configured for '{descriptor.provider}'{hint}"
            )
        return provider

    async def generate(self, request: GenerateRequest) -> LLMResponse:
        """Send a request to the provider that owns ``request.model``."""
        descriptor = self.describe(request.model)
        provider = self.provider_for(request.model)
        return await provider.generate(request.model_copy(update={"model": descriptor.model_name}))

    async def close(self) -> None:
        """Close every provider client."""
        for provider in self._providers.values():
            await provider.close()
