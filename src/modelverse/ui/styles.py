"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.
Uses Textual CSS features: nesting, pseudo-classes, variables.
"""

APP_CSS = """
Screen {
    layout: vertical;
    background: $background;
}

/* Model picker row */
#model-bar {
    height: 3;
    padding: 0 1;
    background: $panel;
    border-bottom: solid $border;
}

#model-select {
    width: 48;
}

#model-info {
    width: 1fr;
    height: 3;
    content-align: left middle;
    padding: 0 2;
    color: $text-muted;
}

/* Conversation */
#chat-history {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus-within {
        border: round $primary;
    }
}

MessageView {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;

    &.user-message {
        border-left: thick $primary;
        margin-left: 8;
    }

    &.ai-message {
        border-left: thick $secondary;
        margin-right: 8;
    }

    &.system-message {
        border-left: none;
        color: $text-muted;
        text-style: italic;
        content-align: center middle;
    }
}

.message-header {
    height: 1;
    color: $text-muted;
}

.message-content {
    height: auto;
}

.message-attachment {
    height: 1;
    color: $accent;
}

.message-actions {
    height: auto;
    align: right middle;

    Button {
        min-width: 8;
        height: 1;
        border: none;
        margin-left: 1;
    }
}

/* Log panel */
#debug-panel {
    height: auto;
    min-height: 6;
    max-height: 12;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    overflow-x: auto;
}

/* Input */
ChatInputBar {
    height: auto;
    max-height: 9;
    border: round $primary 60%;
    background: $panel;

    &:focus-within {
        border: round $primary;
    }

    &:disabled {
        border: round $warning;
        opacity: 70%;
    }
}

#chat-input {
    width: 1fr;
    height: 5;
    border: none;
    padding: 0 1;
    background: transparent;
}

#attachment-label {
    width: auto;
    max-width: 30;
    height: 3;
    content-align: center middle;
    color: $accent;
    padding: 0 1;
}

#attach-btn, #send-btn {
    min-width: 10;
    margin: 1 0 0 1;
}
"""
