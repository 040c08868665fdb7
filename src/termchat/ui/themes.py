"""Theme definitions for the TUI.

Hides the color palette. To add a theme, define it here and register it
in the app.
"""

from textual.theme import Theme

# Gruvbox-flavoured dark palette
TERMCHAT_DARK = Theme(
    name="termchat-dark",
    primary="#83a598",      # Aqua blue - focused panels
    secondary="#d3869b",    # Purple - conversation panel
    accent="#fabd2f",       # Yellow - highlights
    foreground="#ebdbb2",
    background="#1d2021",
    success="#b8bb26",
    warning="#fe8019",
    error="#fb4934",
    surface="#282828",
    panel="#232524",
    dark=True,
    variables={
        "block-cursor-foreground": "#1d2021",
        "block-cursor-background": "#fabd2f",
        "block-cursor-text-style": "bold",
        "block-cursor-blurred-background": "#504945",

        "input-cursor-background": "#ebdbb2",
        "input-selection-background": "#83a598 30%",

        "border": "#504945",
        "border-blurred": "#3c3836",

        "scrollbar": "#3c3836",
        "scrollbar-hover": "#504945",
        "scrollbar-active": "#83a598",

        "footer-key-foreground": "#fabd2f",
        "footer-background": "#1d2021",

        "text-muted": "#928374",
    },
)
