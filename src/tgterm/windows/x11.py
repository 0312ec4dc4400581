"""Linux/X11 window backend.

Windows are enumerated with ``wmctrl`` (which reads _NET_CLIENT_LIST
from the window manager), raised through _NET_ACTIVE_WINDOW, and typed
into with ``xdotool`` (XTest, so keys go to the focused window). Screen
regions are grabbed with mss and encoded to PNG with Pillow.
"""

from __future__ import annotations

import asyncio
import logging
import os
import shutil

import mss
from mss.exception import ScreenShotError
from PIL import Image

from tgterm.domain.models import KeyEvent, KeyKind, Modifier, WindowDescriptor
from tgterm.utils.imaging import encode_png
from tgterm.windows.base import MIN_WINDOW_SIZE, WindowBackend, WindowBackendError

logger = logging.getLogger(__name__)

# Known terminal WM_CLASS names
TERMINAL_APPS: tuple[str, ...] = (
    "gnome-terminal", "xterm", "kitty", "alacritty", "ghostty",
    "terminator", "tilix", "konsole", "xfce4-terminal", "mate-terminal",
    "lxterminal", "st", "stterm", "urxvt", "foot", "wezterm", "hyper",
    "tabby", "sakura", "terminology", "guake", "tilda",
)

REQUIRED_TOOLS = ("wmctrl", "xdotool")

# X keysym names for printable ASCII punctuation
KEYSYM_NAMES: dict[str, str] = {
    " ": "space", "!": "exclam", '"': "quotedbl", "#": "numbersign",
    "$": "dollar", "%": "percent", "&": "ampersand", "'": "apostrophe",
    "(": "parenleft", ")": "parenright", "*": "asterisk", "+": "plus",
    ",": "comma", "-": "minus", ".": "period", "/": "slash",
    ":": "colon", ";": "semicolon", "<": "less", "=": "equal",
    ">": "greater", "?": "question", "@": "at", "[": "bracketleft",
    "\\": "backslash", "]": "bracketright", "^": "asciicircum",
    "_": "underscore", "`": "grave", "{": "braceleft", "|": "bar",
    "}": "braceright", "~": "asciitilde",
}

SPECIAL_KEYSYMS: dict[KeyKind, str] = {
    KeyKind.RETURN: "Return",
    KeyKind.TAB: "Tab",
    KeyKind.ESCAPE: "Escape",
}

MODIFIER_KEYSYMS: dict[Modifier, str] = {
    Modifier.CTRL: "ctrl",
    Modifier.ALT: "alt",
    Modifier.CMD: "super",
}

# Fixed order so chords are pressed the same way every time
_MODIFIER_ORDER = (Modifier.CTRL, Modifier.ALT, Modifier.CMD)


def char_to_keysym(char: str) -> str:
    """Map one character to an X keysym name understood by xdotool."""
    if char.isascii() and char.isalnum():
        return char
    if char in KEYSYM_NAMES:
        return KEYSYM_NAMES[char]
    return f"U{ord(char):04X}"


def key_combo(event: KeyEvent) -> str:
    """Render a key event as an xdotool key combination, e.g. 'ctrl+c'."""
    if event.kind == KeyKind.CHAR:
        key = char_to_keysym(event.char)
    else:
        key = SPECIAL_KEYSYMS[event.kind]
    mods = [MODIFIER_KEYSYMS[m] for m in _MODIFIER_ORDER if m in event.modifiers]
    return "+".join(mods + [key])


def parse_wmctrl_line(line: str) -> tuple[WindowDescriptor, int, int] | None:
    """Parse one line of ``wmctrl -l -p -G -x`` output.

    Columns: id, desktop, pid, x, y, width, height, res_name.res_class,
    host, title. The title may be missing.

    Returns:
        Tuple of (descriptor, width, height), or None if malformed.
    """
    parts = line.split(None, 9)
    if len(parts) < 9:
        return None
    try:
        window_id = int(parts[0], 16)
        pid = int(parts[2])
        width = int(parts[5])
        height = int(parts[6])
    except ValueError:
        return None
    wm_class = parts[7]
    # res_class is the application name shown to users
    owner = wm_class.split(".", 1)[1] if "." in wm_class else wm_class
    title = parts[9].strip() if len(parts) > 9 else ""
    window = WindowDescriptor(
        window_id=window_id,
        process_id=max(pid, 0),
        owner_label=owner,
        title=title,
    )
    return window, width, height


def parse_geometry(output: str) -> tuple[int, int, int, int]:
    """Parse ``xdotool getwindowgeometry --shell`` into (x, y, w, h)."""
    values: dict[str, int] = {}
    for line in output.splitlines():
        key, sep, value = line.partition("=")
        if sep and key in ("X", "Y", "WIDTH", "HEIGHT"):
            values[key] = int(value)
    try:
        return values["X"], values["Y"], values["WIDTH"], values["HEIGHT"]
    except KeyError as e:
        raise WindowBackendError(f"Incomplete window geometry: {output!r}", backend="x11") from e


class X11WindowBackend(WindowBackend):
    """Window backend for X11 desktops with an EWMH window manager."""

    terminal_apps = TERMINAL_APPS

    def __init__(
        self,
        raise_delay: float = 0.1,
        key_delay: float = 0.005,
        max_dimension: int = 2560,
    ) -> None:
        self._raise_delay = raise_delay
        self._key_delay = key_delay
        self._max_dimension = max_dimension

    @property
    def name(self) -> str:
        return "x11"

    async def open(self) -> None:
        """Verify that an X display and the helper tools are available."""
        if not os.environ.get("DISPLAY"):
            raise WindowBackendError("Cannot open X display. Is DISPLAY set?", backend="x11")
        missing = [tool for tool in REQUIRED_TOOLS if shutil.which(tool) is None]
        if missing:
            raise WindowBackendError(
                f"Required tools not installed: {', '.join(missing)}", backend="x11"
            )
        logger.info("X11 backend ready on display %s", os.environ["DISPLAY"])

    async def list_windows(self, include_all: bool = False) -> list[WindowDescriptor]:
        output = await self._run("wmctrl", "-l", "-p", "-G", "-x")
        windows = []
        for line in output.splitlines():
            parsed = parse_wmctrl_line(line)
            if parsed is None:
                continue
            window, width, height = parsed
            if not include_all and not self.is_terminal(window.owner_label):
                continue
            if width <= MIN_WINDOW_SIZE or height <= MIN_WINDOW_SIZE:
                continue
            windows.append(window)
        logger.debug("Listed %d windows", len(windows))
        return windows

    async def window_exists(self, window_id: int, process_id: int) -> tuple[bool, int]:
        output = await self._run("wmctrl", "-l", "-p", "-G", "-x")
        fallback: int | None = None
        for line in output.splitlines():
            parsed = parse_wmctrl_line(line)
            if parsed is None:
                continue
            window = parsed[0]
            if window.window_id == window_id:
                return True, window_id
            if fallback is None and window.process_id == process_id:
                fallback = window.window_id
        if fallback is not None:
            logger.info("Window %d gone, retargeting to %d (pid %d)", window_id, fallback, process_id)
            return True, fallback
        return False, window_id

    async def capture_window(self, window_id: int) -> bytes:
        output = await self._run("xdotool", "getwindowgeometry", "--shell", str(window_id))
        x, y, width, height = parse_geometry(output)
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, self._grab_sync, x, y, width, height)

    def _grab_sync(self, x: int, y: int, width: int, height: int) -> bytes:
        """Grab a root-window region, clipped to the screen (runs in thread pool).

        Capturing from the root window is more reliable with compositing
        window managers than reading the window drawable.
        """
        try:
            with mss.mss() as sct:
                screen = sct.monitors[0]
                left = max(x, screen["left"])
                top = max(y, screen["top"])
                right = min(x + width, screen["left"] + screen["width"])
                bottom = min(y + height, screen["top"] + screen["height"])
                if right <= left or bottom <= top:
                    raise WindowBackendError("Window is off screen", backend="x11")
                shot = sct.grab(
                    {"left": left, "top": top, "width": right - left, "height": bottom - top}
                )
        except ScreenShotError as e:
            raise WindowBackendError(f"Screen grab failed: {e}", backend="x11") from e
        image = Image.frombytes("RGB", shot.size, shot.bgra, "raw", "BGRX")
        return encode_png(image, self._max_dimension)

    async def raise_window(self, process_id: int, window_id: int) -> None:
        await self._run("wmctrl", "-i", "-a", hex(window_id))
        await asyncio.sleep(self._raise_delay)

    async def send_key(self, process_id: int, event: KeyEvent) -> None:
        # XTest delivers to the focused window, so the pid is not needed
        if event.kind == KeyKind.CHAR and not event.modifiers:
            await self._run("xdotool", "type", "--clearmodifiers", "--", event.char)
        else:
            await self._run("xdotool", "key", "--clearmodifiers", key_combo(event))
        logger.debug("Sent key: %s", event)
        await asyncio.sleep(self._key_delay)

    async def _run(self, *args: str) -> str:
        """Run a helper tool and return its stdout."""
        try:
            proc = await asyncio.create_subprocess_exec(
                *args,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            raise WindowBackendError(f"Cannot run {args[0]}: {e}", backend="x11") from e
        stdout, stderr = await proc.communicate()
        if proc.returncode != 0:
            raise WindowBackendError(
                f"{args[0]} exited with {proc.returncode}: {stderr.decode(errors='replace').strip()}",
                backend="x11",
            )
        return stdout.decode("utf-8", errors="replace")
