"""Tests for the shared window backend helpers."""

from __future__ import annotations

import pytest

from tgterm.windows.base import is_terminal, utf16_length


class TestUtf16Length:
    @pytest.mark.parametrize(
        "text,units",
        [("a", 1), ("é", 1), ("中", 1), ("\U0001f600", 2), ("a\U0001f680b", 4)],
    )
    def test_counts_code_units(self, text: str, units: int) -> None:
        assert utf16_length(text) == units


class TestIsTerminal:
    def test_matches_substring_case_insensitively(self) -> None:
        assert is_terminal("gnome-terminal-server.Gnome-terminal", ("gnome-terminal",))
        assert is_terminal("iTerm2", ("iterm",))

    def test_rejects_other_apps(self) -> None:
        assert not is_terminal("Navigator.firefox", ("kitty", "xterm"))
