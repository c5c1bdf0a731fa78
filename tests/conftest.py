"""Pytest configuration and shared fixtures."""
import asyncio
import os

import pytest

from modelverse.chat import PromptRelay
from modelverse.datauri import to_data_uri
from modelverse.llm import LLMProvider, LLMResponse, ModelDescriptor, ModelRegistry

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 24


class FakeProvider(LLMProvider):
    """Provider double that records requests instead of calling an API."""

    def __init__(
        self,
        text: str | None = "Hello from the model",
        error: Exception | None = None,
        delay: float = 0.0,
        gate: asyncio.Event | None = None,
    ):
        self.text = text
        self.error = error
        self.delay = delay
        self.gate = gate
        self.requests = []
        self.closed = False

    async def generate(self, request):
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.error is not None:
            raise self.error
        return LLMResponse(text=self.text, model=request.model, usage={"total_tokens": 3})

    async def close(self):
        self.closed = True


@pytest.fixture(scope="session")
def api_keys():
    """Return API keys from environment."""
    return {
        "googleai": os.getenv("GEMINI_API_KEY"),
        "openai": os.getenv("OPENAI_API_KEY"),
        "anthropic": os.getenv("ANTHROPIC_API_KEY"),
    }


@pytest.fixture
def png_data_uri():
    """A small PNG image as a data URI."""
    return to_data_uri(PNG_BYTES, "image/png")


@pytest.fixture
def text_only_model():
    return ModelDescriptor(id="openai/gpt-3.5-turbo", label="GPT-3.5", supports_images=False)


@pytest.fixture
def vision_model():
    return ModelDescriptor(id="googleai/gemini-1.5-flash-latest", label="Gemini 1.5 Flash")


@pytest.fixture
def fake_provider():
    return FakeProvider()


@pytest.fixture
def registry(fake_provider):
    """Registry where every known provider prefix is served by one fake."""
    return ModelRegistry(providers={
        "googleai": fake_provider,
        "openai": fake_provider,
        "anthropic": fake_provider,
    })


@pytest.fixture
def relay(registry):
    return PromptRelay(registry)


@pytest.fixture
def make_provider():
    """Factory for FakeProvider instances with custom behaviour."""
    return FakeProvider
