"""CSS styles for the TUI.

Hides layout and styling decisions from the application logic.

Layout: history column on the left (search box above the title list),
conversation and question input on the right, status line and log panel
along the bottom.
"""

APP_CSS = """
Screen {
    layout: grid;
    grid-size: 2 2;
    grid-columns: 1fr 3fr;
    grid-rows: 1fr auto;
    background: $background;
}

/* ============================================
   History Column - Search + Titles
   ============================================ */
#history-column {
    height: 100%;
}

#search-input {
    height: 3;
    border: round $accent 60%;
    background: $panel;

    &:focus {
        border: round $accent;
    }
}

#history-list {
    height: 1fr;
    background: $panel;
    border: round $primary 60%;
    border-title-color: $primary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    scrollbar-gutter: stable;

    &:focus {
        border: round $primary;
    }

    & > ListItem {
        padding: 0 1;
    }
}

/* ============================================
   Conversation Column - Transcript + Question
   ============================================ */
#conversation-column {
    height: 100%;
}

#conversation {
    height: 1fr;
    background: $panel;
    border: round $secondary 60%;
    border-title-color: $secondary;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;

    &:focus {
        border: round $secondary;
    }
}

.chat-message {
    height: auto;
    margin: 1 0 0 0;
    padding: 0 1;
}

.user-message {
    border-left: thick $primary;
}

.assistant-message {
    border-left: thick $secondary;
}

.error-message {
    border-left: thick $error;
    color: $error;
}

.message-header {
    color: $text-muted;
    text-style: bold;
}

.message-content {
    height: auto;
}

.streaming {
    color: $foreground 80%;
}

QuestionInput {
    height: 6;
    border: round $primary 60%;
    border-subtitle-color: $warning;
    background: $panel;

    &:focus-within {
        border: round $primary;
    }

    &:disabled {
        border: round $warning 60%;
        opacity: 70%;
    }
}

#question-input {
    width: 1fr;
    height: 100%;
    border: none;
    padding: 0 1;
    background: transparent;
}

#send-btn {
    width: 10;
    height: 100%;
    margin: 0 0 0 1;
}

/* ============================================
   Bottom Bar - Status + Log
   ============================================ */
#bottom-bar {
    column-span: 2;
    height: auto;
    background: $panel;
    border-top: solid $border;
}

#status {
    height: 1;
    padding: 0 2;
    background: $surface;
}

#debug-panel {
    height: auto;
    min-height: 6;
    max-height: 14;
    background: $panel;
    border: round $warning 60%;
    border-title-color: $warning;
    border-title-style: bold;
    border-subtitle-color: $text-muted;
    border-subtitle-align: right;
    padding: 0 1;
    scrollbar-gutter: stable;
}

Toast {
    background: $surface;
    border-left: tall $accent;
}

Toast.-error {
    border-left: tall $error;
}
"""
