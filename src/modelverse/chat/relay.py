"""Relays a user prompt (text and/or image) with conversation history to the
selected model and returns its response.

Image content is filtered out for models that do not accept images.
"""

import asyncio
from collections.abc import Callable
from typing import Protocol

from ..errors import EmptyResponseError
from ..llm.models import GenerateRequest, LLMResponse
from ..llm.registry import ModelDescriptor
from .models import RelayInput, RelayOutput
from .normalizer import CannedResponse, normalize_prompt

DebugCallback = Callable[[str, str, str], None]


class GenerationGateway(Protocol):
    """What the relay needs from the model registry."""

    def describe(self, model_id: str) -> ModelDescriptor: ...

    async def generate(self, request: GenerateRequest) -> LLMResponse: ...


class PromptRelay:
    """Single entry point from the chat layer to the providers.

    Each call resolves exactly once: with the model's text, with a canned
    reply when the input does not warrant a provider call, or by raising.
    """

    def __init__(
        self,
        gateway: GenerationGateway,
        timeout: float | None = None,
        debug_callback: DebugCallback | None = None,
    ):
        """Initialize the relay.

        Args:
            gateway: Model registry (or anything with describe/generate)
            timeout: Seconds to wait for a provider; None waits indefinitely
            debug_callback: Optional (level, component, message) sink
        """
        self._gateway = gateway
        self._timeout = timeout
        self._debug_callback = debug_callback

    def _log(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Relay", message)

    async def generate(self, relay_input: RelayInput) -> RelayOutput:
        """Normalize the input and run one generation call.

        Raises:
            EmptyResponseError: If the provider returned no text
            TimeoutError: If a timeout is set and the provider exceeds it
            Exception: Provider errors propagate unchanged
        """
        descriptor = self._gateway.describe(relay_input.model)
        normalized = normalize_prompt(
            prompt=relay_input.prompt,
            photo_data_uri=relay_input.photo_data_uri,
            model=descriptor,
            history=relay_input.history,
            config=relay_input.config,
        )

        if isinstance(normalized, CannedResponse):
            self._log("info", f"Answered without provider call: {normalized.text}")
            return RelayOutput(response=normalized.text)

        history_len = len(normalized.messages or [])
        self._log(
            "debug",
            f"Sending to {normalized.model}: {len(normalized.prompt)} part(s), "
            f"{history_len} prior turn(s), config={normalized.config.explicit_fields() if normalized.config else {}}"
        )

        if self._timeout is not None:
            try:
                result = await asyncio.wait_for(self._gateway.generate(normalized), self._timeout)
            except asyncio.TimeoutError as e:
                raise TimeoutError(
                    f"{normalized.model} did not respond within {self._timeout:g}s"
                ) from e
        else:
            result = await self._gateway.generate(normalized)

        if not result.text:
            raise EmptyResponseError(f"{normalized.model} returned an empty response")

        if result.usage:
            self._log("debug", f"Usage: {result.usage}")
        return RelayOutput(response=result.text)
