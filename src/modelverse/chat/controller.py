"""Chat state controller.

Owns the ordered message log and reconciles relay results into it. The log
is append-only except for edit-and-resend, which replaces one user message
and discards everything after it.

Only one request is ever in flight: every mutating operation raises
ChatBusyError while a reply is pending.
"""

from collections.abc import Callable, Sequence
from enum import Enum
from pathlib import Path
from typing import Protocol

from ..errors import ChatBusyError, TranscriptFormatError
from ..llm.models import ModelConfig
from . import transcript
from .models import ChatMessage, ChatTurn, RelayInput, RelayOutput
from .relay import DebugCallback

WELCOME_TEXT = "Welcome to ModelVerse! Select a model and start chatting."
LOADED_TEXT = "Chat history loaded."

# (message, severity) where severity is 'information', 'warning' or 'error'
NotifyCallback = Callable[[str, str], None]
ChangeCallback = Callable[[tuple[ChatMessage, ...]], None]


class Relay(Protocol):
    """Anything with an async ``generate(RelayInput) -> RelayOutput``."""

    async def generate(self, relay_input: RelayInput) -> RelayOutput: ...


class ChatState(str, Enum):
    """Per-request state: IDLE -> SENDING -> IDLE."""

    IDLE = "idle"
    SENDING = "sending"


def history_for_request(messages: Sequence[ChatMessage]) -> list[ChatTurn]:
    """Derive wire turns from the log: system messages and empty turns are dropped."""
    turns = []
    for message in messages:
        turn = message.to_turn()
        if turn is not None and turn.has_content:
            turns.append(turn)
    return turns


class ChatController:
    """Maintains the message log and dispatches requests through the relay."""

    def __init__(
        self,
        relay: Relay,
        model: str,
        config: ModelConfig | None = None,
        notify: NotifyCallback | None = None,
        debug_callback: DebugCallback | None = None,
        on_change: ChangeCallback | None = None,
        welcome_text: str | None = WELCOME_TEXT,
    ):
        """Initialize the controller.

        Args:
            relay: Prompt relay used for every generation
            model: Initially selected model identifier
            config: Initial sampling parameters
            notify: Transient user-facing notification sink
            debug_callback: Optional (level, component, message) sink
            on_change: Called with the full log after every change
            welcome_text: System message that opens a fresh chat, None for none
        """
        self._relay = relay
        self._model = model
        self._config = config or ModelConfig()
        self._notify = notify
        self._debug_callback = debug_callback
        self._on_change = on_change
        self._welcome_text = welcome_text
        self._state = ChatState.IDLE
        self._messages: list[ChatMessage] = self._fresh_log()

    def _fresh_log(self) -> list[ChatMessage]:
        if self._welcome_text is None:
            return []
        return [ChatMessage(sender="system", text=self._welcome_text)]

    def _log(self, level: str, message: str) -> None:
        if self._debug_callback:
            self._debug_callback(level, "Chat", message)

    def _changed(self) -> None:
        if self._on_change:
            self._on_change(tuple(self._messages))

    def _ensure_idle(self) -> None:
        if self._state is not ChatState.IDLE:
            raise ChatBusyError("A response is still pending")

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return tuple(self._messages)

    @property
    def model(self) -> str:
        return self._model

    @property
    def config(self) -> ModelConfig:
        return self._config

    @property
    def state(self) -> ChatState:
        return self._state

    @property
    def is_busy(self) -> bool:
        return self._state is ChatState.SENDING

    def select_model(self, model_id: str) -> None:
        self._ensure_idle()
        self._model = model_id
        self._log("info", f"Model selected: {model_id}")

    def update_config(self, config: ModelConfig) -> None:
        self._ensure_idle()
        self._config = config
        self._log("info", f"Sampling config: {config.explicit_fields() or 'provider defaults'}")

    def last_ai_response(self) -> str | None:
        for message in reversed(self._messages):
            if message.sender == "ai":
                return message.text
        return None

    async def send(self, text: str, image_url: str | None = None) -> ChatMessage | None:
        """Append a user message and the reply it produces.

        Args:
            text: Message text (trimmed before use)
            image_url: Optional image attachment as a data URI

        Returns:
            The appended ai or system message, or None if there was nothing to send
        """
        self._ensure_idle()
        text = text.strip()
        if not text and not image_url:
            return None

        history = history_for_request(self._messages)
        self._messages.append(ChatMessage(sender="user", text=text, image_url=image_url))
        self._changed()
        return await self._generate_reply(text, image_url, history)

    async def edit_and_resend(
        self,
        message_id: str,
        text: str,
        image_url: str | None = None,
        remove_image: bool = False,
    ) -> ChatMessage:
        """Replace a user message, drop everything after it and regenerate.

        Args:
            message_id: Id of the user message to edit
            text: New message text
            image_url: Replacement image; None keeps the current one
            remove_image: Drop the current image instead of keeping it

        Returns:
            The appended ai or system message

        Raises:
            ValueError: If the message does not exist, is not a user message,
                or the edit leaves it without text and image
        """
        self._ensure_idle()
        index = next(
            (i for i, message in enumerate(self._messages) if message.id == message_id),
            None,
        )
        if index is None:
            raise ValueError(f"No message with id {message_id}")
        original = self._messages[index]
        if original.sender != "user":
            raise ValueError("Only user messages can be edited")

        if image_url is None:
            image_url = None if remove_image else original.image_url
        text = text.strip()
        if not text and not image_url:
            raise ValueError("An edited message needs text or an image")

        dropped = len(self._messages) - index - 1
        edited = original.model_copy(update={"text": text, "image_url": image_url})
        history = history_for_request(self._messages[:index])
        self._messages = self._messages[:index] + [edited]
        self._changed()
        self._log("info", f"Edited message {index}, discarded {dropped} later message(s)")
        return await self._generate_reply(text, image_url, history)

    async def _generate_reply(
        self,
        text: str,
        image_url: str | None,
        history: list[ChatTurn],
    ) -> ChatMessage:
        self._state = ChatState.SENDING
        self._log("debug", f"Relaying prompt to {self._model} with {len(history)} prior turn(s)")
        try:
            output = await self._relay.generate(RelayInput(
                prompt=text,
                model=self._model,
                photo_data_uri=image_url,
                history=history,
                config=self._config,
            ))
            reply = ChatMessage(sender="ai", text=output.response)
        except Exception as e:
            error_text = str(e) or e.__class__.__name__
            self._log("error", f"Relay failed: {error_text}")
            reply = ChatMessage(sender="system", text=f"Error: {error_text}")
            if self._notify:
                self._notify(f"Failed to get response from AI: {error_text}", "error")
        finally:
            self._state = ChatState.IDLE

        self._messages.append(reply)
        self._changed()
        return reply

    def clear(self) -> None:
        """Reset the log to a fresh chat."""
        self._ensure_idle()
        self._messages = self._fresh_log()
        self._changed()
        self._log("info", "Chat cleared")

    def export_json(self) -> str:
        return transcript.dumps(self._messages)

    def load_json(self, raw: str | bytes) -> list[ChatMessage]:
        """Replace the log with an imported transcript.

        The imported messages are followed by a 'loaded' system notice.

        Raises:
            TranscriptFormatError: If the transcript is malformed; the log is left unchanged
        """
        self._ensure_idle()
        try:
            loaded = transcript.loads(raw)
        except TranscriptFormatError as e:
            self._log("error", f"Import rejected: {e}")
            if self._notify:
                self._notify(f"Invalid chat file: {e}", "error")
            raise
        self._messages = loaded + [ChatMessage(sender="system", text=LOADED_TEXT)]
        self._changed()
        self._log("info", f"Loaded {len(loaded)} message(s)")
        return loaded

    def save_file(self, path: str | Path) -> Path:
        saved = transcript.save(self._messages, path)
        self._log("info", f"Saved {len(self._messages)} message(s) to {saved}")
        return saved

    def load_file(self, path: str | Path) -> list[ChatMessage]:
        """Load a transcript file; see load_json."""
        file_path = Path(path).expanduser()
        try:
            raw = file_path.read_bytes()
        except OSError as e:
            error = TranscriptFormatError(f"Cannot read {file_path}: {e}")
            if self._notify:
                self._notify(str(error), "error")
            raise error from e
        return self.load_json(raw)
