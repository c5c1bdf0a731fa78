"""Unit tests for the model registry, settings and provider factory."""
import pytest
from pydantic import ValidationError

from modelverse.errors import ProviderUnavailableError, UnknownModelError
from modelverse.llm import (
    DEFAULT_MODELS,
    AnthropicProvider,
    GeminiProvider,
    GenerateRequest,
    LLMProvider,
    ModelRegistry,
    OpenAIProvider,
    Part,
    ProviderSettings,
    create_llm_provider,
)


class TestProviderSettings:
    """Tests for configuration from environment variables."""

    def test_empty_environment(self):
        settings = ProviderSettings.from_env({})

        assert settings.provider_configs() == {}
        assert settings.missing_keys() == ["GEMINI_API_KEY", "OPENAI_API_KEY", "ANTHROPIC_API_KEY"]
        assert settings.default_model == DEFAULT_MODELS[0].id
        assert settings.timeout is None

    def test_configured_environment(self):
        settings = ProviderSettings.from_env({
            "OPENAI_API_KEY": "sk-test",
            "OPENAI_BASE_URL": "http://localhost:8000/v1",
            "ANTHROPIC_API_KEY": "  ",
            "MODELVERSE_DEFAULT_MODEL": "openai/gpt-4o",
            "MODELVERSE_TIMEOUT": "30",
        })

        assert settings.provider_configs() == {
            "openai": {"api_key": "sk-test", "base_url": "http://localhost:8000/v1"},
        }
        assert settings.missing_keys() == ["GEMINI_API_KEY", "ANTHROPIC_API_KEY"]
        assert settings.default_model == "openai/gpt-4o"
        assert settings.timeout == 30.0

    @pytest.mark.parametrize("value", ["0", "-5", "soon"])
    def test_invalid_timeout(self, value):
        with pytest.raises((ValidationError, ValueError)):
            ProviderSettings.from_env({"MODELVERSE_TIMEOUT": value})

    def test_settings_are_frozen(self):
        settings = ProviderSettings()
        with pytest.raises(ValidationError):
            settings.openai_api_key = "sk-other"  # type: ignore


class TestModelRegistry:
    """Tests for catalog lookup and provider routing."""

    def test_default_catalog_image_support(self):
        registry = ModelRegistry()

        assert registry.describe("googleai/gemini-1.5-flash-latest").supports_images
        assert registry.describe("openai/gpt-4o").supports_images
        for model_id in ("openai/gpt-3.5-turbo", "openai/grok-3", "anthropic/claude-3-haiku-20240307"):
            assert not registry.describe(model_id).supports_images

    def test_unknown_model_is_opaque(self):
        descriptor = ModelRegistry().describe("openai/gpt-4.1-mini")

        assert descriptor.supports_images
        assert descriptor.provider == "openai"
        assert descriptor.model_name == "gpt-4.1-mini"

    def test_model_without_prefix_rejected(self):
        with pytest.raises(UnknownModelError):
            ModelRegistry().describe("gpt-4o")

    def test_availability(self, fake_provider):
        registry = ModelRegistry(providers={"openai": fake_provider})

        assert registry.is_available("openai/gpt-4o")
        assert not registry.is_available("googleai/gemini-1.5-flash-latest")
        assert {m.provider for m in registry.available_models()} == {"openai"}

    def test_provider_for_missing_names_variable(self):
        with pytest.raises(ProviderUnavailableError, match="set ANTHROPIC_API_KEY"):
            ModelRegistry().provider_for("anthropic/claude-3-haiku-20240307")

    def test_provider_for_unknown_prefix(self):
        with pytest.raises(ProviderUnavailableError, match="'mistral'"):
            ModelRegistry().provider_for("mistral/large")

    @pytest.mark.asyncio
    async def test_generate_strips_prefix(self, registry, fake_provider):
        request = GenerateRequest(model="openai/gpt-3.5-turbo", prompt=[Part.from_text("hi")])

        response = await registry.generate(request)

        assert fake_provider.requests[0].model == "gpt-3.5-turbo"
        assert fake_provider.requests[0].prompt == request.prompt
        assert response.text == "Hello from the model"

    @pytest.mark.asyncio
    async def test_close_closes_providers(self, registry, fake_provider):
        await registry.close()
        assert fake_provider.closed

    @pytest.mark.asyncio
    async def test_from_settings_warns_for_missing_keys(self):
        warnings = []
        settings = ProviderSettings(openai_api_key="sk-test")

        registry = ModelRegistry.from_settings(settings, warn=warnings.append)
        try:
            assert registry.is_available("openai/gpt-4o")
            assert not registry.is_available("googleai/gemini-1.5-flash-latest")
            assert warnings == [
                "GEMINI_API_KEY not found in environment variables. googleai models will be unavailable.",
                "ANTHROPIC_API_KEY not found in environment variables. anthropic models will be unavailable.",
            ]
        finally:
            await registry.close()


class TestFactory:
    """Tests for create_llm_provider."""

    @pytest.mark.parametrize("name,cls", [
        ("openai", OpenAIProvider),
        ("anthropic", AnthropicProvider),
        ("claude", AnthropicProvider),
        ("googleai", GeminiProvider),
        ("gemini", GeminiProvider),
    ])
    def test_creates_provider(self, name, cls):
        provider = create_llm_provider(name, api_key="fake-key")
        assert isinstance(provider, cls)

    def test_missing_api_key(self):
        with pytest.raises(TypeError, match="api_key"):
            create_llm_provider("openai")

    def test_unsupported_provider(self):
        with pytest.raises(ValueError, match="Unsupported provider"):
            create_llm_provider("mistral", api_key="fake-key")

    def test_provider_is_abstract(self):
        with pytest.raises(TypeError):
            LLMProvider()  # type: ignore
