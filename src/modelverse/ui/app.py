"""Main Textual TUI application.

Orchestrates the UI components and routes user interaction through the
ChatController. The controller owns the message log; the app only renders it.
"""

import asyncio
import contextlib

from textual import work
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Horizontal
from textual.css.query import NoMatches
from textual.widgets import Footer, Header, Select, Static

from ..chat import ChatController, ChatMessage, PromptRelay
from ..chat import transcript
from ..datauri import file_to_data_uri
from ..errors import ChatBusyError, TranscriptFormatError, UnknownModelError
from ..llm.models import ModelConfig
from ..llm.registry import ModelRegistry
from .config import NOTIFY_ERROR, NOTIFY_SHORT, SENDING_SUBTITLE, LogLevel
from .screens import EditMessageScreen, MessageEdit, PathPromptScreen, SettingsScreen
from .styles import APP_CSS
from .themes import MODELVERSE_NIGHT
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel, copy_text


class ModelVerseApp(App):
    """Textual TUI for multi-provider chat."""

    CSS = APP_CSS
    TITLE = "ModelVerse"

    BINDINGS = [
        Binding("ctrl+q", "quit", "Quit"),
        Binding("ctrl+k", "clear_chat", "Clear Chat"),
        Binding("ctrl+s", "save_chat", "Save"),
        Binding("ctrl+o", "load_chat", "Load"),
        Binding("ctrl+g", "open_settings", "Settings"),
        Binding("ctrl+r", "copy_last_response", "Copy Response"),
        Binding("ctrl+d", "toggle_debug", "Log"),
    ]

    def __init__(
        self,
        registry: ModelRegistry,
        model: str | None = None,
        timeout: float | None = None,
        log_level: str | None = None,
        startup_warnings: list[str] | None = None,
    ) -> None:
        super().__init__()
        self._model_registry = registry
        self._log_level = log_level
        self._startup_warnings = list(startup_warnings or [])
        self._pending_logs: list[tuple[str, str, str]] = []

        initial_model = model or self._pick_initial_model()
        try:
            registry.describe(initial_model)
        except UnknownModelError as e:
            fallback = self._pick_initial_model()
            self._startup_warnings.append(f"{e}; using {fallback}")
            initial_model = fallback
        self._relay = PromptRelay(registry, timeout=timeout, debug_callback=self._debug)
        self._controller = ChatController(
            self._relay,
            model=initial_model,
            notify=self._notify_user,
            debug_callback=self._debug,
            on_change=self._render_log,
        )

    def _pick_initial_model(self) -> str:
        available = self._model_registry.available_models()
        if available:
            return available[0].id
        return self._model_registry.models[0].id

    @property
    def controller(self) -> ChatController:
        return self._controller

    def _model_options(self) -> list[tuple[str, str]]:
        options = []
        for descriptor in self._model_registry.models:
            label = descriptor.label
            if not self._model_registry.is_available(descriptor.id):
                label += " (no key)"
            options.append((label, descriptor.id))
        if self._controller.model not in {value for _, value in options}:
            options.append((self._controller.model, self._controller.model))
        return options

    def compose(self) -> ComposeResult:
        yield Header(show_clock=True)
        with Horizontal(id="model-bar"):
            yield Select(
                self._model_options(),
                value=self._controller.model,
                allow_blank=False,
                id="model-select",
            )
            yield Static("", id="model-info")
        yield ChatHistoryWidget(id="chat-history")
        yield DebugPanel(id="debug-panel")
        yield ChatInputBar(id="chat-input-bar")
        yield Footer()

    def on_mount(self) -> None:
        """Called when app is mounted."""
        self.register_theme(MODELVERSE_NIGHT)
        self.theme = "modelverse-night"

        log_panel = self.query_one("#debug-panel", DebugPanel)
        if self._log_level is not None:
            log_panel.log_level = LogLevel.parse(self._log_level)
            log_panel.set_visible(True)
            log_panel.log_entry("TUI", f"Log panel enabled with level: {log_panel.log_level.name}", LogLevel.INFO)

        for level, component, message in self._pending_logs:
            self._debug(level, component, message)
        self._pending_logs.clear()
        for warning in self._startup_warnings:
            log_panel.log_entry("Config", warning, LogLevel.WARNING)

        if not self._model_registry.available_models():
            self.notify(
                "No provider API keys found. Set GEMINI_API_KEY, OPENAI_API_KEY or ANTHROPIC_API_KEY.",
                title="No providers",
                severity="warning",
                timeout=NOTIFY_ERROR,
            )

        self._update_model_info()
        self._render_log(self._controller.messages)
        self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def _debug(self, level: str, component: str, message: str) -> None:
        """Route (level, component, message) entries to the log panel."""
        try:
            log_panel = self.query_one("#debug-panel", DebugPanel)
        except NoMatches:
            self._pending_logs.append((level, component, message))
            return
        log_panel.log_entry(component, message, LogLevel.parse(level))

    def _notify_user(self, message: str, severity: str) -> None:
        self.notify(message, title="Error" if severity == "error" else "", severity=severity, timeout=NOTIFY_ERROR)

    def _render_log(self, messages: tuple[ChatMessage, ...]) -> None:
        with contextlib.suppress(NoMatches):
            self.query_one("#chat-history", ChatHistoryWidget).render_messages(messages)

    def _update_model_info(self) -> None:
        descriptor = self._model_registry.describe(self._controller.model)
        parts = ["images" if descriptor.supports_images else "text only"]
        if not self._model_registry.is_available(descriptor.id):
            parts.append("provider not configured")
        config = self._controller.config.explicit_fields()
        if config:
            parts.append(", ".join(f"{key}={value}" for key, value in config.items()))
        self.query_one("#model-info", Static).update(" | ".join(parts))
        self.sub_title = descriptor.label

    def _set_busy(self, busy: bool) -> None:
        """Disable every control that could change the log while a request runs."""
        self.query_one("#chat-input-bar", ChatInputBar).disabled = busy
        self.query_one("#model-select", Select).disabled = busy
        self.query_one("#chat-history", ChatHistoryWidget).set_editing_enabled(not busy)
        if busy:
            self.sub_title = SENDING_SUBTITLE
        else:
            self._update_model_info()
            self.query_one("#chat-input-bar", ChatInputBar).focus_input()

    def on_select_changed(self, event: Select.Changed) -> None:
        if event.select.id != "model-select" or event.value == Select.BLANK:
            return
        if event.value == self._controller.model:
            return
        try:
            self._controller.select_model(str(event.value))
        except ChatBusyError as e:
            self.notify(str(e), severity="warning", timeout=NOTIFY_SHORT)
            return
        self._update_model_info()

    def on_chat_input_bar_submitted(self, event: ChatInputBar.Submitted) -> None:
        """Handle user input submission."""
        if self._controller.is_busy:
            self.notify("Please wait for the current response", severity="warning", timeout=NOTIFY_SHORT)
            return
        self._set_busy(True)
        self._send(event.value, event.image_url)

    @work(exclusive=True)
    async def _send(self, text: str, image_url: str | None) -> None:
        """Run one send as a background async worker."""
        try:
            await self._controller.send(text, image_url)
        except asyncio.CancelledError:
            self.notify("Cancelled", severity="warning", timeout=NOTIFY_SHORT)
            raise
        finally:
            self._set_busy(False)

    def on_chat_input_bar_attach_requested(self, event: ChatInputBar.AttachRequested) -> None:
        def _attach(path: str | None) -> None:
            if not path:
                return
            try:
                image_url = file_to_data_uri(path)
            except ValueError as e:
                self.notify(str(e), title="Attach failed", severity="error", timeout=NOTIFY_ERROR)
                return
            self.query_one("#chat-input-bar", ChatInputBar).set_attachment(image_url)
            descriptor = self._model_registry.describe(self._controller.model)
            if not descriptor.supports_images:
                self.notify(
                    f"{descriptor.label} does not accept images; the image will not be sent",
                    severity="warning",
                    timeout=NOTIFY_ERROR,
                )

        self.push_screen(PathPromptScreen("Attach Image", confirm_label="Attach"), _attach)

    def on_chat_history_widget_edit_requested(self, event: ChatHistoryWidget.EditRequested) -> None:
        if self._controller.is_busy:
            return
        message = next((m for m in self._controller.messages if m.id == event.message_id), None)
        if message is None:
            return

        def _resend(edit: MessageEdit | None) -> None:
            if edit is None:
                return
            self._set_busy(True)
            self._edit(event.message_id, edit)

        self.push_screen(EditMessageScreen(message.text, has_image=bool(message.image_url)), _resend)

    @work(exclusive=True)
    async def _edit(self, message_id: str, edit: MessageEdit) -> None:
        try:
            await self._controller.edit_and_resend(message_id, edit.text, remove_image=edit.remove_image)
        except ValueError as e:
            self.notify(str(e), title="Edit failed", severity="error", timeout=NOTIFY_ERROR)
        finally:
            self._set_busy(False)

    def action_clear_chat(self) -> None:
        """Clear the chat history."""
        try:
            self._controller.clear()
        except ChatBusyError as e:
            self.notify(str(e), severity="warning", timeout=NOTIFY_SHORT)
            return
        self.notify("Chat cleared", timeout=NOTIFY_SHORT)

    def action_save_chat(self) -> None:
        """Save the chat to a JSON file."""
        def _save(path: str | None) -> None:
            if not path:
                return
            try:
                saved = self._controller.save_file(path)
            except OSError as e:
                self.notify(str(e), title="Save failed", severity="error", timeout=NOTIFY_ERROR)
                return
            self.notify(f"Chat saved to {saved}", timeout=NOTIFY_SHORT)

        self.push_screen(
            PathPromptScreen("Save Chat", default=transcript.default_filename(), confirm_label="Save"),
            _save,
        )

    def action_load_chat(self) -> None:
        """Replace the chat with one loaded from a JSON file."""
        if self._controller.is_busy:
            self.notify("Please wait for the current response", severity="warning", timeout=NOTIFY_SHORT)
            return
        self.push_screen(PathPromptScreen("Load Chat", confirm_label="Load"), self._load_transcript)

    def _load_transcript(self, path: str | None) -> None:
        if not path:
            return
        try:
            loaded = self._controller.load_file(path)
        except TranscriptFormatError:
            # The controller has already notified the user
            return
        except ChatBusyError as e:
            self.notify(str(e), severity="warning", timeout=NOTIFY_SHORT)
            return
        self.notify(f"Loaded {len(loaded)} messages", timeout=NOTIFY_SHORT)

    def action_open_settings(self) -> None:
        """Edit sampling parameters."""
        def _apply(config: ModelConfig | None) -> None:
            if config is None:
                return
            try:
                self._controller.update_config(config)
            except ChatBusyError as e:
                self.notify(str(e), severity="warning", timeout=NOTIFY_SHORT)
                return
            self._update_model_info()
            self.notify("Settings saved", timeout=NOTIFY_SHORT)

        self.push_screen(SettingsScreen(self._controller.config), _apply)

    def action_copy_last_response(self) -> None:
        """Copy last model response to clipboard."""
        response = self._controller.last_ai_response()
        if response:
            self.notify(copy_text(self, response), timeout=NOTIFY_SHORT)
        else:
            self.notify("No response to copy", severity="warning", timeout=NOTIFY_SHORT)

    def action_toggle_debug(self) -> None:
        """Toggle the log panel visibility."""
        log_panel = self.query_one("#debug-panel", DebugPanel)
        is_visible = log_panel.toggle()
        self.notify(f"Log panel {'shown' if is_visible else 'hidden'}", timeout=NOTIFY_SHORT)


async def run_textual_tui(
    registry: ModelRegistry,
    model: str | None = None,
    timeout: float | None = None,
    log_level: str | None = None,
    startup_warnings: list[str] | None = None,
) -> None:
    """Run the Textual TUI.

    Args:
        registry: Model registry with configured providers
        model: Initially selected model, None for the first available one
        timeout: Seconds per provider call, None to wait indefinitely
        log_level: Log level for panel (debug/info/warning/error), None to hide
        startup_warnings: Configuration warnings to show in the log panel
    """
    app = ModelVerseApp(
        registry=registry,
        model=model,
        timeout=timeout,
        log_level=log_level,
        startup_warnings=startup_warnings,
    )
    try:
        await app.run_async()
    except (KeyboardInterrupt, asyncio.CancelledError):
        pass
    finally:
        with contextlib.suppress(RuntimeError):
            await registry.close()
