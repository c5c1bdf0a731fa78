from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class Media(BaseModel):
    """Inline or remote media referenced by a prompt part."""

    model_config = ConfigDict(frozen=True)

    url: str = Field(description="Data URI ('data:<mimetype>;base64,...') or remote URL")


class Part(BaseModel):
    """One piece of message content: either text or media, never both."""

    model_config = ConfigDict(frozen=True)

    text: str | None = Field(default=None, description="Text content")
    media: Media | None = Field(default=None, description="Media content")

    @classmethod
    def from_text(cls, text: str) -> "Part":
        return cls(text=text)

    @classmethod
    def from_media(cls, url: str) -> "Part":
        return cls(media=Media(url=url))

    @property
    def is_media(self) -> bool:
        return self.media is not None


class MessageData(BaseModel):
    """A prior conversation turn in provider-agnostic form."""

    model_config = ConfigDict(frozen=True)

    role: Literal["user", "model"] = Field(
        description="'user' for user input, 'model' for earlier model responses"
    )
    content: list[Part] = Field(description="Ordered content parts of the turn")


class ModelConfig(BaseModel):
    """Optional sampling parameters.

    Every field is independently optional; an unset field means
    "use the provider default" and is never forwarded as a null.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    max_output_tokens: int | None = Field(default=None, ge=1, alias="maxOutputTokens")
    temperature: float | None = Field(default=None, ge=0.0, le=2.0)
    top_p: float | None = Field(default=None, ge=0.0, le=1.0, alias="topP")
    top_k: int | None = Field(default=None, ge=1, alias="topK")

    def explicit_fields(self) -> dict[str, Any]:
        """Return only the parameters that were explicitly set."""
        return self.model_dump(exclude_none=True)

    def is_empty(self) -> bool:
        return not self.explicit_fields()


class GenerateRequest(BaseModel):
    """A single provider-agnostic generation call."""

    model_config = ConfigDict(frozen=True)

    model: str = Field(description="Model identifier, '<provider>/<model-name>'")
    prompt: list[Part] = Field(description="Content parts of the current turn")
    messages: list[MessageData] | None = Field(
        default=None,
        description="Prior turns; omitted when there is no history"
    )
    config: ModelConfig | None = Field(
        default=None,
        description="Sampling parameters; omitted when none were set"
    )

    def iter_parts(self):
        """Yield every content part, history first, then the current turn."""
        for message in self.messages or []:
            yield from message.content
        yield from self.prompt


class LLMResponse(BaseModel):
    """Response from an LLM provider."""

    model_config = ConfigDict(frozen=True)

    text: str | None = Field(description="Generated text content, None if the provider returned none")
    model: str = Field(description="Model that generated the response")
    usage: dict[str, int] | None = Field(
        default=None,
        description="Token usage information"
    )
