"""Prompt normalization.

Turns the UI's chat state into one provider-agnostic generation request.
This is a pure function: it never calls a provider, it only decides what a
provider would receive, or that no provider should be called at all.
"""

from collections.abc import Iterable
from dataclasses import dataclass

from ..llm.models import GenerateRequest, MessageData, ModelConfig, Part
from ..llm.registry import ModelDescriptor
from .models import ChatTurn

IMAGES_UNSUPPORTED_RESPONSE = (
    "The selected model does not support images. "
    "Please provide a text prompt or select a different model."
)
PROMPT_REQUIRED_RESPONSE = "Please provide a prompt."
DEFAULT_IMAGE_PROMPT = "Describe this image."


@dataclass(frozen=True)
class CannedResponse:
    """A reply decided without calling any provider."""

    text: str


def _history_to_messages(history: Iterable[ChatTurn], allow_images: bool) -> list[MessageData]:
    messages = []
    for turn in history:
        parts = []
        text = (turn.text or "").strip()
        if text:
            parts.append(Part.from_text(text))
        if turn.photo_data_uri and allow_images:
            parts.append(Part.from_media(turn.photo_data_uri))
        # Image-only turns for text-only models are dropped here, not flagged
        if parts:
            messages.append(MessageData(role=turn.role, content=parts))
    return messages


def normalize_prompt(
    prompt: str | None,
    photo_data_uri: str | None,
    model: ModelDescriptor,
    history: Iterable[ChatTurn] | None = None,
    config: ModelConfig | None = None,
) -> GenerateRequest | CannedResponse:
    """Build the generation request for the current turn.

    Args:
        prompt: Current text prompt (may be empty or whitespace)
        photo_data_uri: Optional image for the current turn, as a data URI
        model: Selected model; its ``supports_images`` flag controls image stripping
        history: Prior turns, oldest first
        config: Optional sampling parameters

    Returns:
        The request to send, or a CannedResponse when no provider call is warranted
    """
    text = (prompt or "").strip()
    image = photo_data_uri or None

    if image and not model.supports_images:
        if not text:
            return CannedResponse(IMAGES_UNSUPPORTED_RESPONSE)
        image = None

    messages = _history_to_messages(history or [], allow_images=model.supports_images)

    current: list[Part] = []
    effective_text = text or (DEFAULT_IMAGE_PROMPT if image else "")
    if effective_text:
        current.append(Part.from_text(effective_text))
    if image:
        current.append(Part.from_media(image))

    if not current and not messages:
        return CannedResponse(PROMPT_REQUIRED_RESPONSE)

    return GenerateRequest(
        model=model.id,
        prompt=current,
        messages=messages or None,
        config=config if config is not None and not config.is_empty() else None,
    )
