"""Tests for the X11 window backend (helper tools mocked)."""

from __future__ import annotations

from unittest.mock import AsyncMock, call, patch

import pytest

from tgterm.domain.models import KeyEvent, KeyKind, Modifier
from tgterm.windows import X11WindowBackend, create_backend
from tgterm.windows.base import WindowBackendError
from tgterm.windows.x11 import char_to_keysym, key_combo, parse_geometry, parse_wmctrl_line

WMCTRL_OUTPUT = "\n".join([
    "0x03a00007  0 4242   10   40  1200 800  gnome-terminal-server.Gnome-terminal  host user@host: ~/src",
    "0x03a0000c  0 4242   60   90  1200 800  gnome-terminal-server.Gnome-terminal  host htop",
    "0x04c00003  0 5151    0    0  1920 1080 Navigator.firefox  host Mozilla Firefox",
    "0x05000001 -1 6000    0    0    40   30 kitty.kitty  host tiny",
    "0x06000002  0 7000    0    0   800 600  xterm.XTerm  host",
    "garbage line",
])


class TestParseWmctrlLine:
    def test_full_line(self) -> None:
        window, width, height = parse_wmctrl_line(WMCTRL_OUTPUT.splitlines()[0])
        assert window.window_id == 0x03A00007
        assert window.process_id == 4242
        assert window.owner_label == "Gnome-terminal"
        assert window.title == "user@host: ~/src"
        assert (width, height) == (1200, 800)

    def test_missing_title(self) -> None:
        window, _, _ = parse_wmctrl_line(WMCTRL_OUTPUT.splitlines()[4])
        assert window.owner_label == "XTerm"
        assert window.title == ""

    @pytest.mark.parametrize("line", ["", "garbage line", "zz 0 1 2 3 4 5 a.b host"])
    def test_malformed(self, line: str) -> None:
        assert parse_wmctrl_line(line) is None


class TestKeyCombo:
    def test_plain_char(self) -> None:
        assert key_combo(KeyEvent.char_key("a")) == "a"

    def test_ctrl_c(self) -> None:
        assert key_combo(KeyEvent.char_key("c", frozenset({Modifier.CTRL}))) == "ctrl+c"

    def test_modifier_order_is_fixed(self) -> None:
        event = KeyEvent.char_key("x", frozenset({Modifier.CMD, Modifier.CTRL, Modifier.ALT}))
        assert key_combo(event) == "ctrl+alt+super+x"

    @pytest.mark.parametrize(
        "kind,keysym",
        [(KeyKind.RETURN, "Return"), (KeyKind.TAB, "Tab"), (KeyKind.ESCAPE, "Escape")],
    )
    def test_special_keys(self, kind: KeyKind, keysym: str) -> None:
        assert key_combo(KeyEvent.special(kind)) == keysym

    @pytest.mark.parametrize("char,keysym", [(" ", "space"), ("-", "minus"), ("7", "7"), ("ü", "U00FC")])
    def test_char_to_keysym(self, char: str, keysym: str) -> None:
        assert char_to_keysym(char) == keysym


class TestParseGeometry:
    def test_shell_output(self) -> None:
        output = "WINDOW=60817415\nX=10\nY=40\nWIDTH=1200\nHEIGHT=800\nSCREEN=0\n"
        assert parse_geometry(output) == (10, 40, 1200, 800)

    def test_incomplete_output(self) -> None:
        with pytest.raises(WindowBackendError, match="Incomplete"):
            parse_geometry("X=1\nY=2\n")


class TestX11WindowBackend:
    @pytest.fixture
    def backend(self) -> X11WindowBackend:
        backend = X11WindowBackend(raise_delay=0, key_delay=0)
        backend._run = AsyncMock(return_value=WMCTRL_OUTPUT)
        return backend

    def test_name(self) -> None:
        assert X11WindowBackend().name == "x11"

    @pytest.mark.asyncio
    async def test_list_terminals_only(self, backend: X11WindowBackend) -> None:
        windows = await backend.list_windows()
        assert [w.window_id for w in windows] == [0x03A00007, 0x03A0000C, 0x06000002]

    @pytest.mark.asyncio
    async def test_list_all_still_skips_tiny_windows(self, backend: X11WindowBackend) -> None:
        windows = await backend.list_windows(include_all=True)
        assert 0x04C00003 in [w.window_id for w in windows]
        assert 0x05000001 not in [w.window_id for w in windows]

    @pytest.mark.asyncio
    async def test_window_exists(self, backend: X11WindowBackend) -> None:
        assert await backend.window_exists(0x03A0000C, 4242) == (True, 0x03A0000C)

    @pytest.mark.asyncio
    async def test_window_exists_retargets_same_process(self, backend: X11WindowBackend) -> None:
        assert await backend.window_exists(0x0BAD, 4242) == (True, 0x03A00007)

    @pytest.mark.asyncio
    async def test_window_gone(self, backend: X11WindowBackend) -> None:
        assert await backend.window_exists(0x0BAD, 9999) == (False, 0x0BAD)

    @pytest.mark.asyncio
    async def test_send_keys(self, backend: X11WindowBackend) -> None:
        backend._run.return_value = ""
        await backend.send_key(4242, KeyEvent.char_key("-"))
        await backend.send_key(4242, KeyEvent.char_key("c", frozenset({Modifier.CTRL})))
        await backend.send_key(4242, KeyEvent.special(KeyKind.RETURN))
        assert backend._run.await_args_list == [
            call("xdotool", "type", "--clearmodifiers", "--", "-"),
            call("xdotool", "key", "--clearmodifiers", "ctrl+c"),
            call("xdotool", "key", "--clearmodifiers", "Return"),
        ]

    @pytest.mark.asyncio
    async def test_raise_window(self, backend: X11WindowBackend) -> None:
        await backend.raise_window(4242, 0x03A00007)
        backend._run.assert_awaited_once_with("wmctrl", "-i", "-a", "0x3a00007")

    @pytest.mark.asyncio
    async def test_open_requires_display(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.delenv("DISPLAY", raising=False)
        with pytest.raises(WindowBackendError, match="DISPLAY"):
            await X11WindowBackend().open()

    @pytest.mark.asyncio
    async def test_open_requires_tools(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("DISPLAY", ":0")
        with patch("tgterm.windows.x11.shutil.which", return_value=None):
            with pytest.raises(WindowBackendError, match="wmctrl, xdotool"):
                await X11WindowBackend().open()

    @pytest.mark.asyncio
    async def test_failing_tool_raises(self) -> None:
        backend = X11WindowBackend()
        with pytest.raises(WindowBackendError, match="exited with"):
            await backend._run("sh", "-c", "exit 3")


class TestCreateBackend:
    def test_x11_by_name(self) -> None:
        backend = create_backend("x11", raise_delay=0.2)
        assert isinstance(backend, X11WindowBackend)
        assert backend._raise_delay == 0.2

    def test_auto_on_linux(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr("tgterm.windows.sys.platform", "linux")
        assert isinstance(create_backend("auto"), X11WindowBackend)

    def test_unknown_name(self) -> None:
        with pytest.raises(WindowBackendError, match="Unknown window backend"):
            create_backend("wayland")
