"""Terminal UI module for ModelVerse.

Provides a Textual-based TUI for multi-provider chat.

Module structure (Parnas principle - each module hides a design decision):
- widgets.py: Custom widgets (message rendering, input history, log rendering)
- styles.py: CSS styling (layout decisions)
- themes.py: Color palettes and theme configuration
- screens.py: Modal dialogs (file paths, settings, message edits)
- app.py: Application orchestration (user interaction flow)

Chat state lives in modelverse.chat; this package only renders it.
"""

from .app import ModelVerseApp, run_textual_tui
from .config import LogLevel
from .widgets import ChatHistoryWidget, ChatInputBar, DebugPanel

__all__ = [
    "ChatHistoryWidget",
    "ChatInputBar",
    "DebugPanel",
    "LogLevel",
    "ModelVerseApp",
    "run_textual_tui",
]
