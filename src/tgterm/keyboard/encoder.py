"""Fold a token stream into key events.

Modifier glyphs accumulate into a pending set that attaches to the next
emitted key and then resets. A Return is appended after the last event
unless one of these holds:

* the message ended with the no-newline glyph,
* exactly one key was emitted and it was a chord (carried a modifier, or
  was an Escape glyph), so a lone Ctrl-C is not followed by Enter,
* the last emitted key was already a Return.

Modifiers still pending at the end of the input attach to nothing.
"""

from __future__ import annotations

from tgterm.domain.models import EncodedKeys, KeyEvent, KeyKind, Modifier
from tgterm.keyboard.tokenizer import TokenKind, split_no_newline_marker, tokenize

_ESCAPE_PAIR_KEYS: dict[str, KeyKind] = {
    "newline": KeyKind.RETURN,
    "tab": KeyKind.TAB,
}

_ACTION_KEYS: dict[str, KeyKind] = {
    "escape": KeyKind.ESCAPE,
    "enter": KeyKind.RETURN,
}


def encode(text: str) -> EncodedKeys:
    """Encode an operator message into key events.

    Deterministic: the same text always yields the same result.
    """
    body, suppressed = split_no_newline_marker(text)

    events: list[KeyEvent] = []
    pending: set[Modifier] = set()
    had_chord = False
    last_was_newline = False

    for token in tokenize(body):
        if token.kind == TokenKind.MODIFIER:
            pending.add(Modifier(token.value))
            continue

        mods = frozenset(pending)
        if token.kind == TokenKind.ACTION:
            kind = _ACTION_KEYS[token.value]
            event = KeyEvent.special(kind, mods)
            # Escape is always a chord-like key for the single-key rule
            had_chord = had_chord or bool(mods) or kind == KeyKind.ESCAPE
            last_was_newline = kind == KeyKind.RETURN
        elif token.kind == TokenKind.ESCAPE_PAIR and token.value in _ESCAPE_PAIR_KEYS:
            kind = _ESCAPE_PAIR_KEYS[token.value]
            event = KeyEvent.special(kind, mods)
            had_chord = had_chord or bool(mods)
            last_was_newline = kind == KeyKind.RETURN
        else:
            char = "\\" if token.kind == TokenKind.ESCAPE_PAIR else token.value
            event = KeyEvent.char_key(char, mods)
            had_chord = had_chord or bool(mods)
            last_was_newline = False

        events.append(event)
        pending.clear()

    single_chord = len(events) == 1 and had_chord
    add_newline = not suppressed and not single_chord and not last_was_newline
    return EncodedKeys(events=tuple(events), add_newline=add_newline)
