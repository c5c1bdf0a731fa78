"""Data models for the chat layer.

ChatMessage is what the UI shows and what transcripts store; ChatTurn is the
wire form of a prior turn handed to the relay. RelayInput/RelayOutput are the
request and response of the single `generate` entry point.
"""

from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field

from ..llm.models import ModelConfig

Sender = Literal["user", "ai", "system"]


def new_message_id() -> str:
    return str(uuid4())


class ChatMessage(BaseModel):
    """A message in the chat log.

    Serialized with the keys ``id``, ``sender``, ``text`` and, when an image
    is attached, ``imageUrl``.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True, strict=True, extra="forbid")

    id: str = Field(default_factory=new_message_id)
    sender: Sender
    text: str
    image_url: str | None = Field(default=None, alias="imageUrl")

    def to_export_dict(self) -> dict[str, str]:
        return self.model_dump(by_alias=True, exclude_none=True)

    def to_turn(self) -> "ChatTurn | None":
        """Wire form of this message, or None for system messages."""
        if self.sender == "system":
            return None
        return ChatTurn(
            role="user" if self.sender == "user" else "model",
            text=self.text,
            photo_data_uri=self.image_url,
        )


class ChatTurn(BaseModel):
    """One prior conversation turn as sent to the relay."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    role: Literal["user", "model"] = Field(
        description="'user' for user input, 'model' for AI responses"
    )
    text: str | None = Field(default=None, description="The text content of this turn")
    photo_data_uri: str | None = Field(
        default=None,
        alias="photoDataUri",
        description="Optional photo as a data URI: 'data:<mimetype>;base64,<encoded_data>'",
    )

    @property
    def has_content(self) -> bool:
        return bool((self.text or "").strip() or self.photo_data_uri)


class RelayInput(BaseModel):
    """Input of the `generate` entry point."""

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    prompt: str | None = Field(default=None, description="The current user text prompt")
    model: str = Field(description="The selected model identifier")
    photo_data_uri: str | None = Field(
        default=None,
        alias="photoDataUri",
        description="Optional photo for the current prompt, as a data URI",
    )
    history: list[ChatTurn] | None = Field(
        default=None,
        description="The conversation history before the current prompt",
    )
    config: ModelConfig | None = Field(
        default=None,
        alias="modelConfig",
        description="Optional sampling parameters",
    )


class RelayOutput(BaseModel):
    """Output of the `generate` entry point."""

    model_config = ConfigDict(frozen=True)

    response: str = Field(description="The response from the LLM, or a canned reply")
