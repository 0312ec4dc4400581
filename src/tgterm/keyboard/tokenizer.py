"""Classify operator text into typed tokens.

The tokenizer knows about glyphs and escape pairs but nothing about key
events or modifier state; ``encoder.encode`` folds the token stream into
events. Tokens are produced lazily, left to right.
"""

from __future__ import annotations

import enum
from typing import Iterator, NamedTuple

from tgterm.keyboard.glyphs import (
    ACTION_GLYPHS,
    CTRL_GLYPH,
    ESCAPE_PAIRS,
    MODIFIER_GLYPHS,
    NO_NEWLINE_GLYPH,
    VARIATION_SELECTOR,
)


class TokenKind(str, enum.Enum):
    LITERAL = "literal"  # value: the character
    MODIFIER = "modifier"  # value: Modifier name
    ACTION = "action"  # value: "escape" | "enter"
    ESCAPE_PAIR = "escape_pair"  # value: "newline" | "tab" | "backslash"


class Token(NamedTuple):
    kind: TokenKind
    value: str
    source: str


def split_no_newline_marker(text: str) -> tuple[str, bool]:
    """Strip a trailing no-newline glyph.

    Returns:
        Tuple of (remaining text, whether the marker was present).
    """
    if text.endswith(NO_NEWLINE_GLYPH):
        return text[: -len(NO_NEWLINE_GLYPH)], True
    return text, False


def tokenize(text: str) -> Iterator[Token]:
    """Yield the tokens of ``text`` in order.

    The no-newline marker is not special here; strip it first with
    ``split_no_newline_marker``.
    """
    i = 0
    n = len(text)
    while i < n:
        ch = text[i]

        if ch in MODIFIER_GLYPHS:
            width = 1
            if ch == CTRL_GLYPH and text.startswith(VARIATION_SELECTOR, i + 1):
                width = 2
            yield Token(TokenKind.MODIFIER, MODIFIER_GLYPHS[ch].value, text[i : i + width])
            i += width
            continue

        if ch in ACTION_GLYPHS:
            yield Token(TokenKind.ACTION, ACTION_GLYPHS[ch], ch)
            i += 1
            continue

        if ch == "\\" and i + 1 < n and text[i + 1] in ESCAPE_PAIRS:
            yield Token(TokenKind.ESCAPE_PAIR, ESCAPE_PAIRS[text[i + 1]], text[i : i + 2])
            i += 2
            continue

        yield Token(TokenKind.LITERAL, ch, ch)
        i += 1
