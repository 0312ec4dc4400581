"""Fixed reply texts and message formatting."""

from __future__ import annotations

from tgterm.domain.models import MAX_OTP_TIMEOUT, MIN_OTP_TIMEOUT, WindowDescriptor
from tgterm.keyboard.glyphs import (
    ALT_GLYPH,
    CMD_GLYPH,
    CTRL_GLYPH,
    ENTER_GLYPH,
    ESCAPE_GLYPH,
    NO_NEWLINE_GLYPH,
    VARIATION_SELECTOR,
)

AUTHENTICATED = "Authenticated."
ENTER_OTP = "Enter OTP code."
NO_WINDOWS = "No terminal windows found."
INVALID_WINDOW = "Invalid window number."
WINDOW_CLOSED = "Window closed."

REFRESH_LABEL = "\U0001f504 Refresh"
REFRESH_ACTION = "refresh"

HELP_TEXT = (
    "Commands:\n"
    ".list - Show terminal windows\n"
    ".1 .2 ... - Connect to window\n"
    ".help - This help\n\n"
    "Once connected, text is sent as keystrokes.\n"
    f"Newline is auto-added; end with `{NO_NEWLINE_GLYPH}` to suppress it.\n\n"
    "Modifiers (tap to copy, then paste + key):\n"
    f"`{CTRL_GLYPH}{VARIATION_SELECTOR}` Ctrl  "
    f"`{ALT_GLYPH}` Alt  "
    f"`{CMD_GLYPH}` Cmd/Super  "
    f"`{ESCAPE_GLYPH}` ESC  "
    f"`{ENTER_GLYPH}` Enter\n\n"
    "Escape sequences: \\n=Enter \\t=Tab\n\n"
    f"`.otptimeout <seconds>` - Set OTP timeout ({MIN_OTP_TIMEOUT}-{MAX_OTP_TIMEOUT})"
)


def format_window_list(windows: list[WindowDescriptor]) -> str:
    """Numbered listing used by `.list` and when no window is connected."""
    if not windows:
        return NO_WINDOWS
    lines = ["Terminal windows:"]
    for number, window in enumerate(windows, start=1):
        line = f".{number} [{window.window_id}] {window.owner_label}"
        if window.title:
            line += f" - {window.title}"
        lines.append(line)
    return "\n".join(lines)


def format_timeout_set(seconds: int) -> str:
    return f"OTP timeout set to {seconds} seconds."


def format_connected(label: str) -> str:
    return f"Connected to {label}"
