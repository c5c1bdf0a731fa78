"""Chat layer: message log, prompt normalization and the relay entry point."""

from .controller import ChatController, ChatState, history_for_request
from .models import ChatMessage, ChatTurn, RelayInput, RelayOutput
from .normalizer import (
    DEFAULT_IMAGE_PROMPT,
    IMAGES_UNSUPPORTED_RESPONSE,
    PROMPT_REQUIRED_RESPONSE,
    CannedResponse,
    normalize_prompt,
)
from .relay import PromptRelay

__all__ = [
    "DEFAULT_IMAGE_PROMPT",
    "IMAGES_UNSUPPORTED_RESPONSE",
    "PROMPT_REQUIRED_RESPONSE",
    "CannedResponse",
    "ChatController",
    "ChatMessage",
    "ChatState",
    "ChatTurn",
    "PromptRelay",
    "RelayInput",
    "RelayOutput",
    "history_for_request",
    "normalize_prompt",
]
