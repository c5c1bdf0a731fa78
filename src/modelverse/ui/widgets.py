"""Custom Textual widgets for the TUI.

Hides widget implementation details:
- Chat message rendering (sender styling, attachments, per-message actions)
- Input history and image attachment state
- Log rendering and level filtering
"""

from collections import deque
from datetime import datetime

import pyperclip
from rich.markup import escape
from textual.containers import Horizontal, Vertical, VerticalScroll
from textual.events import Click
from textual.message import Message
from textual.widgets import Button, Markdown, RichLog, Static, TextArea

from ..chat.models import ChatMessage
from ..datauri import describe_data_uri
from .config import INPUT_HISTORY_MAX_SIZE, LOG_MAX_LINES, LOG_MAX_MESSAGE_LENGTH, LOG_TIMESTAMP_FORMAT, NOTIFY_SHORT, LogLevel


def copy_text(app, text: str) -> str:
    """Copy text to the system clipboard, falling back to the terminal (OSC 52).

    Returns:
        Notification text describing where the text went
    """
    try:
        pyperclip.copy(text)
        return "Copied to clipboard"
    except pyperclip.PyperclipException:
        app.copy_to_clipboard(text)
        return "Copied (terminal)"


class MessageButton(Button):
    """A button bound to one chat message."""

    def __init__(self, label: str, message_id: str, **kwargs) -> None:
        super().__init__(label, **kwargs)
        self.message_id = message_id


class MessageView(Vertical):
    """One chat message: header, content, attachment label and actions."""

    _SENDER_LABELS = {"user": "You", "ai": "Model", "system": "System"}

    def __init__(self, message: ChatMessage, editable: bool, **kwargs) -> None:
        super().__init__(classes=f"chat-message {message.sender}-message", **kwargs)
        self.message = message
        self._editable = editable

    def compose(self):
        msg = self.message
        if msg.sender == "system":
            yield Static(msg.text, classes="message-content")
            return

        yield Static(self._SENDER_LABELS[msg.sender], classes="message-header")
        if msg.text:
            if msg.sender == "ai":
                yield Markdown(msg.text, classes="message-content")
            else:
                yield Static(msg.text, classes="message-content", markup=False)
        if msg.image_url:
            yield Static(f"[image: {describe_data_uri(msg.image_url)}]", classes="message-attachment", markup=False)
        with Horizontal(classes="message-actions"):
            yield MessageButton("Copy", msg.id, classes="copy-btn")
            if self._editable:
                yield MessageButton("Edit", msg.id, classes="edit-btn")


class ChatHistoryWidget(VerticalScroll):
    """Scrollable chat history rendered from the controller's message log."""

    BORDER_TITLE = "Chat"
    BORDER_SUBTITLE = "Conversation history"
    ALLOW_MAXIMIZE = True

    class EditRequested(Message):
        """Posted when the user asks to edit one of their messages."""

        def __init__(self, message_id: str) -> None:
            super().__init__()
            self.message_id = message_id

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self._messages: tuple[ChatMessage, ...] = ()
        self._editing_enabled = True

    @property
    def messages(self) -> tuple[ChatMessage, ...]:
        return self._messages

    def set_editing_enabled(self, enabled: bool) -> None:
        """Show or hide edit actions (hidden while a request is in flight)."""
        self._editing_enabled = enabled
        for button in self.query(".edit-btn"):
            button.disabled = not enabled

    def render_messages(self, messages: tuple[ChatMessage, ...]) -> None:
        """Replace the displayed conversation with ``messages``."""
        self._messages = messages
        self.remove_children()
        views = [
            MessageView(message, editable=message.sender == "user")
            for message in messages
        ]
        if views:
            self.mount_all(views)
        self.border_subtitle = f"{len(messages)} messages"
        self.call_after_refresh(self.scroll_end, animate=False)
        self.call_after_refresh(self.set_editing_enabled, self._editing_enabled)

    def get_message(self, message_id: str) -> ChatMessage | None:
        return next((m for m in self._messages if m.id == message_id), None)

    def on_button_pressed(self, event: Button.Pressed) -> None:
        button = event.button
        if not isinstance(button, MessageButton):
            return
        event.stop()
        if button.has_class("edit-btn"):
            self.post_message(self.EditRequested(button.message_id))
        elif button.has_class("copy-btn"):
            message = self.get_message(button.message_id)
            if message is not None:
                self.app.notify(copy_text(self.app, message.text), timeout=NOTIFY_SHORT)


class InputHistory:
    """Previously submitted inputs, browsable with up/down.

    The cursor sits past the newest entry until the user starts browsing;
    moving forward past the newest entry returns to an empty input.
    """

    def __init__(self, max_size: int = INPUT_HISTORY_MAX_SIZE) -> None:
        self._entries: list[str] = []
        self._max_size = max_size
        self._cursor: int | None = None

    def __len__(self) -> int:
        return len(self._entries)

    def add(self, value: str) -> None:
        """Record a submission; consecutive duplicates are stored once."""
        self._cursor = None
        if not value or (self._entries and self._entries[-1] == value):
            return
        self._entries.append(value)
        del self._entries[:-self._max_size]

    def back(self) -> str | None:
        """Step to an older entry. Returns None when there is no history."""
        if not self._entries:
            return None
        if self._cursor is None:
            self._cursor = len(self._entries) - 1
        else:
            self._cursor = max(self._cursor - 1, 0)
        return self._entries[self._cursor]

    def forward(self) -> str | None:
        """Step to a newer entry; '' once past the newest, None if not browsing."""
        if self._cursor is None:
            return None
        if self._cursor >= len(self._entries) - 1:
            self._cursor = None
            return ""
        self._cursor += 1
        return self._entries[self._cursor]


class ChatInputBar(Horizontal):
    """Chat input bar with TextArea, Attach and Send buttons."""

    class Submitted(Message):
        """Posted with the trimmed text and the pending attachment."""

        def __init__(self, value: str, image_url: str | None) -> None:
            super().__init__()
            self.value = value
            self.image_url = image_url

    class AttachRequested(Message):
        """Posted when the user wants to pick an image file."""

    def __init__(self, *args, **kwargs) -> None:
        super().__init__(*args, **kwargs)
        self.history = InputHistory()
        self._image_url: str | None = None

    def compose(self):
        text_area = TextArea(id="chat-input", show_line_numbers=False)
        text_area.cursor_blink = False
        yield text_area
        yield Static("", id="attachment-label")
        yield Button("Attach", id="attach-btn", variant="default").with_tooltip(
            "Attach an image file, or detach the current one"
        )
        yield Button("Send", id="send-btn", variant="success").with_tooltip(
            "Submit message (Ctrl+J)"
        )

    @property
    def _text_area(self) -> TextArea:
        return self.query_one("#chat-input", TextArea)

    def on_mount(self) -> None:
        self._text_area.highlight_cursor_line = False
        self.focus_input()

    @property
    def image_url(self) -> str | None:
        return self._image_url

    def set_attachment(self, image_url: str | None) -> None:
        self._image_url = image_url
        label = self.query_one("#attachment-label", Static)
        label.update(describe_data_uri(image_url) if image_url else "")
        self.query_one("#attach-btn", Button).label = "Detach" if image_url else "Attach"

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "send-btn":
            event.stop()
            self._submit()
        elif event.button.id == "attach-btn":
            event.stop()
            if self._image_url:
                self.set_attachment(None)
            else:
                self.post_message(self.AttachRequested())

    def on_key(self, event) -> None:
        """Ctrl+J submits; up/down at the edges of the text browse history.

        Terminals do not report modifiers on Enter, so Ctrl+Enter is not an option.
        """
        if event.key == "ctrl+j":
            self._submit()
        elif event.key == "up" and self._text_area.cursor_location == (0, 0):
            self._show(self.history.back())
        elif event.key == "down" and self._cursor_at_end():
            self._show(self.history.forward())
        else:
            return
        event.prevent_default()
        event.stop()

    def _cursor_at_end(self) -> bool:
        lines = self._text_area.text.split("\n")
        return self._text_area.cursor_location == (len(lines) - 1, len(lines[-1]))

    def _show(self, value: str | None) -> None:
        if value is not None:
            self._text_area.text = value

    def _submit(self) -> None:
        if self.disabled:
            return
        value = self._text_area.text.strip()
        if not value and not self._image_url:
            return
        self.history.add(value)
        image_url = self._image_url
        self._text_area.text = ""
        self.set_attachment(None)
        self.post_message(self.Submitted(value, image_url))

    def focus_input(self) -> None:
        self._text_area.focus()


class DebugPanel(RichLog):
    """Level-filtered trace of (level, component, message) entries.

    Hidden until --log-level is given or Ctrl+D is pressed; click to copy.
    """

    BORDER_TITLE = "Log"

    _STYLES = {
        LogLevel.DEBUG: "dim white",
        LogLevel.INFO: "cyan",
        LogLevel.WARNING: "yellow",
        LogLevel.ERROR: "red",
    }

    _COMPONENT_STYLES = {
        "TUI": "cyan",
        "Chat": "green",
        "Relay": "magenta",
        "Config": "yellow",
    }

    def __init__(
        self, *args, log_level: LogLevel = LogLevel.DEBUG, max_lines: int = LOG_MAX_LINES, **kwargs
    ) -> None:
        super().__init__(*args, max_lines=max_lines, markup=True, highlight=False, auto_scroll=True, wrap=True, **kwargs)
        self._log_level = log_level
        self._plain: deque[str] = deque(maxlen=max_lines)

    def on_mount(self) -> None:
        self.display = False
        self._refresh_subtitle()

    @property
    def log_level(self) -> LogLevel:
        return self._log_level

    @log_level.setter
    def log_level(self, level: LogLevel) -> None:
        self._log_level = level
        self._refresh_subtitle()

    def _refresh_subtitle(self) -> None:
        self.border_subtitle = f"Level: {self._log_level.name}" if self.display else "Hidden"

    def log_entry(self, component: str, message: str, level: LogLevel = LogLevel.DEBUG) -> None:
        """Write one entry unless it is below the panel's threshold."""
        if level < self._log_level:
            return
        if len(message) > LOG_MAX_MESSAGE_LENGTH:
            message = message[:LOG_MAX_MESSAGE_LENGTH] + "..."
        timestamp = datetime.now().strftime(LOG_TIMESTAMP_FORMAT)
        self._plain.append(f"{timestamp} {level.name:<7} [{component}] {message}")

        style = self._STYLES.get(level, "white")
        component_style = self._COMPONENT_STYLES.get(component, "white")
        self.write(
            f"[dim]{timestamp}[/] [{style}]{level.name:<7}[/] "
            f"[{component_style}]\\[{escape(component)}][/] {escape(message)}"
        )

    def set_visible(self, visible: bool) -> None:
        self.display = visible
        self._refresh_subtitle()

    def toggle(self) -> bool:
        """Flip visibility and return the new state."""
        self.set_visible(not self.display)
        return bool(self.display)

    @property
    def plain_text(self) -> str:
        return "\n".join(self._plain)

    def on_click(self, event: Click) -> None:
        event.stop()
        if not self._plain:
            self.app.notify("Log is empty", timeout=NOTIFY_SHORT)
            return
        self.app.notify(copy_text(self.app, self.plain_text), timeout=NOTIFY_SHORT)
