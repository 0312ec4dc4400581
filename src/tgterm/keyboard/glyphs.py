"""The emoji vocabulary understood inside operator messages."""

from __future__ import annotations

from tgterm.domain.models import Modifier

VARIATION_SELECTOR = "\ufe0f"

CTRL_GLYPH = "\u2764"  # red heart, usually followed by VARIATION_SELECTOR
ALT_GLYPH = "\U0001f499"  # blue heart
CMD_GLYPH = "\U0001f49a"  # green heart
ESCAPE_GLYPH = "\U0001f49b"  # yellow heart
ENTER_GLYPH = "\U0001f9e1"  # orange heart
NO_NEWLINE_GLYPH = "\U0001f49c"  # purple heart

MODIFIER_GLYPHS: dict[str, Modifier] = {
    CTRL_GLYPH: Modifier.CTRL,
    ALT_GLYPH: Modifier.ALT,
    CMD_GLYPH: Modifier.CMD,
}

ACTION_GLYPHS: dict[str, str] = {
    ESCAPE_GLYPH: "escape",
    ENTER_GLYPH: "enter",
}

# Backslash escapes: second character -> meaning
ESCAPE_PAIRS: dict[str, str] = {
    "n": "newline",
    "t": "tab",
    "\\": "backslash",
}
