"""Modal screens for the TUI.

This module hides the design decisions about:
- Dialog appearance (CSS, layout)
- How file paths, sampling parameters and message edits are collected
- Keyboard shortcuts for dialogs

Each screen dismisses with its result, or None when cancelled.
"""

from dataclasses import dataclass

from pydantic import ValidationError
from textual.app import ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal, Vertical
from textual.screen import ModalScreen
from textual.widgets import Button, Checkbox, Input, Label, Static, TextArea

from ..llm.models import ModelConfig

DIALOG_CSS = """
{screen} {{
    align: center middle;
    background: $background 70%;
}}

.dialog {{
    width: 70;
    height: auto;
    max-height: 32;
    border: tall $accent;
    background: $surface;
    padding: 1 2;
}}

.dialog-title {{
    width: 100%;
    text-align: center;
    text-style: bold;
    color: $accent;
    padding: 0 0 1 0;
    border-bottom: solid $border;
    margin-bottom: 1;
}}

.dialog-error {{
    color: $error;
    height: auto;
}}

.dialog-buttons {{
    width: 100%;
    height: 3;
    align: center middle;
    margin-top: 1;

    Button {{
        margin: 0 1;
        min-width: 10;
    }}
}}
"""


class PathPromptScreen(ModalScreen[str | None]):
    """Ask for a file path (attach image, save or load a chat)."""

    CSS = DIALOG_CSS.format(screen="PathPromptScreen")

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    def __init__(self, title: str, default: str = "", confirm_label: str = "OK") -> None:
        super().__init__()
        self._title = title
        self._default = default
        self._confirm_label = confirm_label

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static(self._title, classes="dialog-title")
            yield Input(value=self._default, placeholder="Path to file", id="path-input")
            with Horizontal(classes="dialog-buttons"):
                yield Button(self._confirm_label, id="btn-ok", variant="success")
                yield Button("Cancel", id="btn-cancel", variant="error")

    def on_mount(self) -> None:
        self.query_one("#path-input", Input).focus()

    def _confirm(self) -> None:
        value = self.query_one("#path-input", Input).value.strip()
        self.dismiss(value or None)

    def on_input_submitted(self, event: Input.Submitted) -> None:
        self._confirm()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-ok":
            self._confirm()
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


class SettingsScreen(ModalScreen[ModelConfig | None]):
    """Edit sampling parameters; empty fields mean provider default."""

    CSS = DIALOG_CSS.format(screen="SettingsScreen") + """
    .setting-row {
        height: 3;
    }

    .setting-row Label {
        width: 22;
        height: 3;
        content-align: left middle;
    }

    .setting-row Input {
        width: 1fr;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    # (field name, label, placeholder)
    _FIELDS = (
        ("max_output_tokens", "Max output tokens", "integer >= 1"),
        ("temperature", "Temperature", "0.0 - 2.0"),
        ("top_p", "Top P", "0.0 - 1.0"),
        ("top_k", "Top K", "integer >= 1"),
    )

    def __init__(self, config: ModelConfig) -> None:
        super().__init__()
        self._config = config

    def compose(self) -> ComposeResult:
        current = self._config.explicit_fields()
        with Vertical(classes="dialog"):
            yield Static("Model Settings", classes="dialog-title")
            for name, label, placeholder in self._FIELDS:
                with Horizontal(classes="setting-row"):
                    yield Label(label)
                    value = current.get(name)
                    yield Input(
                        value="" if value is None else str(value),
                        placeholder=f"default ({placeholder})",
                        id=f"setting-{name.replace('_', '-')}",
                    )
            yield Static("", id="settings-error", classes="dialog-error")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Save", id="btn-save", variant="success")
                yield Button("Reset", id="btn-reset", variant="warning")
                yield Button("Cancel", id="btn-cancel", variant="error")

    def _collect(self) -> ModelConfig | None:
        values = {}
        for name, _, _ in self._FIELDS:
            raw = self.query_one(f"#setting-{name.replace('_', '-')}", Input).value.strip()
            if raw:
                values[name] = raw
        try:
            return ModelConfig.model_validate(values)
        except ValidationError as e:
            error = e.errors()[0]
            field = ".".join(str(part) for part in error["loc"])
            self.query_one("#settings-error", Static).update(f"{field}: {error['msg']}")
            return None

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id == "btn-save":
            config = self._collect()
            if config is not None:
                self.dismiss(config)
        elif event.button.id == "btn-reset":
            self.dismiss(ModelConfig())
        else:
            self.dismiss(None)

    def action_cancel(self) -> None:
        self.dismiss(None)


@dataclass
class MessageEdit:
    """Result of the edit dialog."""

    text: str
    remove_image: bool = False


class EditMessageScreen(ModalScreen[MessageEdit | None]):
    """Edit a previous user message before resending it.

    Everything after the edited message is discarded on resend.
    """

    CSS = DIALOG_CSS.format(screen="EditMessageScreen") + """
    #edit-text {
        height: 8;
        margin-bottom: 1;
    }
    """

    BINDINGS = [Binding("escape", "cancel", "Cancel", show=False)]

    def __init__(self, text: str, has_image: bool) -> None:
        super().__init__()
        self._text = text
        self._has_image = has_image

    def compose(self) -> ComposeResult:
        with Vertical(classes="dialog"):
            yield Static("Edit Message", classes="dialog-title")
            yield TextArea(self._text, id="edit-text", show_line_numbers=False)
            if self._has_image:
                yield Checkbox("Remove attached image", id="remove-image")
            yield Static("", id="edit-error", classes="dialog-error")
            with Horizontal(classes="dialog-buttons"):
                yield Button("Resend", id="btn-resend", variant="success")
                yield Button("Cancel", id="btn-cancel", variant="error")

    def on_mount(self) -> None:
        self.query_one("#edit-text", TextArea).focus()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        if event.button.id != "btn-resend":
            self.dismiss(None)
            return
        text = self.query_one("#edit-text", TextArea).text.strip()
        remove_image = self._has_image and self.query_one("#remove-image", Checkbox).value
        if not text and (remove_image or not self._has_image):
            self.query_one("#edit-error", Static).update("A message needs text or an image")
            return
        self.dismiss(MessageEdit(text=text, remove_image=remove_image))

    def action_cancel(self) -> None:
        self.dismiss(None)
