"""Tests for folding operator text into key events."""

from __future__ import annotations

import pytest

from tgterm.domain.models import RETURN_KEY, KeyEvent, KeyKind, Modifier
from tgterm.keyboard.encoder import encode
from tgterm.keyboard.glyphs import (
    ALT_GLYPH,
    CMD_GLYPH,
    CTRL_GLYPH,
    ENTER_GLYPH,
    ESCAPE_GLYPH,
    NO_NEWLINE_GLYPH,
    VARIATION_SELECTOR,
)

CTRL = CTRL_GLYPH + VARIATION_SELECTOR


def chars(text: str) -> tuple[KeyEvent, ...]:
    return tuple(KeyEvent.char_key(c) for c in text)


class TestPlainText:
    def test_hello_gets_trailing_return(self) -> None:
        result = encode("hello")
        assert result.events == chars("hello")
        assert result.add_newline is True
        assert result.all_events() == chars("hello") + (RETURN_KEY,)

    def test_suppress_marker(self) -> None:
        result = encode("hello" + NO_NEWLINE_GLYPH)
        assert result.events == chars("hello")
        assert result.add_newline is False

    def test_empty_message_sends_only_return(self) -> None:
        result = encode("")
        assert result.events == ()
        assert result.add_newline is True

    def test_only_marker_sends_nothing(self) -> None:
        assert encode(NO_NEWLINE_GLYPH).all_events() == ()

    def test_non_ascii_is_forwarded_as_characters(self) -> None:
        assert encode("é€").events == chars("é€")


class TestEscapePairs:
    def test_embedded_newline(self) -> None:
        result = encode(r"a\nb")
        assert result.events == (
            KeyEvent.char_key("a"),
            RETURN_KEY,
            KeyEvent.char_key("b"),
        )
        assert result.add_newline is True

    def test_trailing_newline_is_not_doubled(self) -> None:
        result = encode(r"ls\n")
        assert result.events == chars("ls") + (RETURN_KEY,)
        assert result.add_newline is False

    def test_tab_and_backslash(self) -> None:
        result = encode(r"cd\t\\")
        assert result.events == chars("cd") + (
            KeyEvent.special(KeyKind.TAB),
            KeyEvent.char_key("\\"),
        )


class TestModifiers:
    def test_ctrl_c_has_no_trailing_return(self) -> None:
        result = encode(CTRL + "c")
        assert result.events == (KeyEvent.char_key("c", frozenset({Modifier.CTRL})),)
        assert result.add_newline is False

    def test_ctrl_without_variation_selector(self) -> None:
        assert encode(CTRL_GLYPH + "c") == encode(CTRL + "c")

    def test_modifiers_stack_and_reset(self) -> None:
        result = encode(CTRL + ALT_GLYPH + "x" + "y")
        assert result.events == (
            KeyEvent.char_key("x", frozenset({Modifier.CTRL, Modifier.ALT})),
            KeyEvent.char_key("y"),
        )
        # Two events, so the chord rule does not apply
        assert result.add_newline is True

    def test_cmd_modifier(self) -> None:
        result = encode(CMD_GLYPH + "v")
        assert result.events == (KeyEvent.char_key("v", frozenset({Modifier.CMD})),)
        assert result.add_newline is False

    def test_modifier_on_escape_pair(self) -> None:
        result = encode(CTRL + r"\t")
        assert result.events == (KeyEvent.special(KeyKind.TAB, frozenset({Modifier.CTRL})),)
        assert result.add_newline is False

    def test_dangling_modifier_is_discarded(self) -> None:
        result = encode("ls" + CTRL)
        assert result.events == chars("ls")
        assert result.add_newline is True

    def test_lone_modifier_sends_only_return(self) -> None:
        result = encode(CTRL)
        assert result.events == ()
        assert result.add_newline is True


class TestActionGlyphs:
    def test_escape_alone_has_no_trailing_return(self) -> None:
        result = encode(ESCAPE_GLYPH)
        assert result.events == (KeyEvent.special(KeyKind.ESCAPE),)
        assert result.add_newline is False

    def test_escape_then_text(self) -> None:
        result = encode(ESCAPE_GLYPH + ":wq")
        assert result.events == (KeyEvent.special(KeyKind.ESCAPE),) + chars(":wq")
        assert result.add_newline is True

    def test_escape_carries_pending_modifiers(self) -> None:
        result = encode(ALT_GLYPH + ESCAPE_GLYPH)
        assert result.events == (KeyEvent.special(KeyKind.ESCAPE, frozenset({Modifier.ALT})),)

    def test_enter_glyph_counts_as_newline(self) -> None:
        result = encode("y" + ENTER_GLYPH)
        assert result.events == (KeyEvent.char_key("y"), RETURN_KEY)
        assert result.add_newline is False

    def test_modifier_between_text_and_enter(self) -> None:
        result = encode("a" + CTRL + ENTER_GLYPH)
        assert result.events == (
            KeyEvent.char_key("a"),
            KeyEvent.special(KeyKind.RETURN, frozenset({Modifier.CTRL})),
        )
        assert result.add_newline is False


class TestDeterminism:
    @pytest.mark.parametrize(
        "text",
        ["hello", CTRL + "c", r"a\nb", ESCAPE_GLYPH + ":q!" + ENTER_GLYPH, "x" + NO_NEWLINE_GLYPH],
    )
    def test_same_input_same_output(self, text: str) -> None:
        assert encode(text) == encode(text)
