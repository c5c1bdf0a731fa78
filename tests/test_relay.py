"""Unit tests for the prompt relay."""
import pytest

from modelverse.chat import (
    IMAGES_UNSUPPORTED_RESPONSE,
    PROMPT_REQUIRED_RESPONSE,
    ChatTurn,
    PromptRelay,
    RelayInput,
    RelayOutput,
)
from modelverse.errors import EmptyResponseError, ProviderUnavailableError, UnknownModelError
from modelverse.llm import ModelConfig, ModelRegistry


class TestCannedReplies:
    """Inputs that are answered without any provider call."""

    @pytest.mark.asyncio
    async def test_image_to_text_only_model(self, relay, fake_provider, png_data_uri):
        output = await relay.generate(RelayInput(
            prompt="",
            model="anthropic/claude-3-haiku-20240307",
            photo_data_uri=png_data_uri,
        ))

        assert output == RelayOutput(response=IMAGES_UNSUPPORTED_RESPONSE)
        assert fake_provider.requests == []

    @pytest.mark.asyncio
    async def test_empty_prompt(self, relay, fake_provider):
        output = await relay.generate(RelayInput(prompt="  ", model="openai/gpt-4o"))

        assert output.response == PROMPT_REQUIRED_RESPONSE
        assert fake_provider.requests == []


class TestGeneration:
    """Tests for requests that reach a provider."""

    @pytest.mark.asyncio
    async def test_returns_model_text(self, relay):
        output = await relay.generate(RelayInput(prompt="Hi", model="openai/gpt-4o"))
        assert output.response == "Hello from the model"

    @pytest.mark.asyncio
    async def test_provider_sees_bare_model_name(self, relay, fake_provider):
        """Test that the '<provider>/' prefix is stripped before the SDK call."""
        await relay.generate(RelayInput(prompt="Hi", model="googleai/gemini-1.5-flash-latest"))

        assert fake_provider.requests[0].model == "gemini-1.5-flash-latest"

    @pytest.mark.asyncio
    async def test_history_and_config_forwarded(self, relay, fake_provider):
        await relay.generate(RelayInput.model_validate({
            "prompt": "And then?",
            "model": "openai/gpt-4o",
            "history": [
                {"role": "user", "text": "Tell me a story"},
                {"role": "model", "text": "Once upon a time"},
            ],
            "modelConfig": {"temperature": 0.5},
        }))

        request = fake_provider.requests[0]
        assert [m.role for m in request.messages] == ["user", "model"]
        assert request.config.explicit_fields() == {"temperature": 0.5}

    @pytest.mark.asyncio
    async def test_text_only_model_gets_text_history(self, relay, fake_provider, png_data_uri):
        await relay.generate(RelayInput(
            prompt="What was it?",
            model="openai/gpt-3.5-turbo",
            history=[ChatTurn(role="user", text="Here", photo_data_uri=png_data_uri)],
            config=ModelConfig(),
        ))

        request = fake_provider.requests[0]
        assert not any(part.is_media for part in request.iter_parts())
        assert request.config is None


class TestFailures:
    """Tests for failed generations."""

    @pytest.mark.parametrize("text", ["", None])
    @pytest.mark.asyncio
    async def test_empty_response_is_an_error(self, make_provider, text):
        relay = PromptRelay(ModelRegistry(providers={"openai": make_provider(text=text)}))

        with pytest.raises(EmptyResponseError, match="empty response"):
            await relay.generate(RelayInput(prompt="Hi", model="openai/gpt-4o"))

    @pytest.mark.asyncio
    async def test_provider_error_propagates(self, make_provider):
        provider = make_provider(error=RuntimeError("rate limited"))
        relay = PromptRelay(ModelRegistry(providers={"openai": provider}))

        with pytest.raises(RuntimeError, match="rate limited"):
            await relay.generate(RelayInput(prompt="Hi", model="openai/gpt-4o"))

    @pytest.mark.asyncio
    async def test_timeout(self, make_provider):
        provider = make_provider(delay=1.0)
        relay = PromptRelay(ModelRegistry(providers={"openai": provider}), timeout=0.01)

        with pytest.raises(TimeoutError, match="did not respond within"):
            await relay.generate(RelayInput(prompt="Hi", model="openai/gpt-4o"))

    @pytest.mark.asyncio
    async def test_unconfigured_provider(self):
        relay = PromptRelay(ModelRegistry(providers={}))

        with pytest.raises(ProviderUnavailableError, match="OPENAI_API_KEY"):
            await relay.generate(RelayInput(prompt="Hi", model="openai/gpt-4o"))

    @pytest.mark.asyncio
    async def test_malformed_model_id(self, relay):
        with pytest.raises(UnknownModelError):
            await relay.generate(RelayInput(prompt="Hi", model="gpt-4o"))


@pytest.mark.asyncio
async def test_debug_callback_receives_relay_entries(registry):
    entries = []
    relay = PromptRelay(registry, debug_callback=lambda *entry: entries.append(entry))

    await relay.generate(RelayInput(prompt="Hi", model="openai/gpt-4o"))

    assert entries
    assert all(component == "Relay" for _, component, _ in entries)
