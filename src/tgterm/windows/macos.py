"""macOS window backend using Core Graphics through pyobjc.

Windows come from CGWindowListCopyWindowInfo, screenshots from
CGWindowListCreateImage, and keystrokes are posted straight to the
owning process with CGEventPostToPid, so the window does not need focus.
Requires the Screen Recording and Accessibility permissions.
"""

from __future__ import annotations

import asyncio
import logging
import time
from functools import partial

import AppKit
import Foundation
import Quartz

from tgterm.domain.models import KeyEvent, KeyKind, Modifier, WindowDescriptor
from tgterm.utils.imaging import normalize_png
from tgterm.windows.base import (
    MIN_WINDOW_SIZE,
    WindowBackend,
    WindowBackendError,
    utf16_length,
)

logger = logging.getLogger(__name__)

TERMINAL_APPS: tuple[str, ...] = (
    "Terminal", "iTerm2", "iTerm", "Ghostty", "kitty", "Alacritty",
    "Hyper", "Warp", "WezTerm", "Tabby",
)

# Virtual keycodes, US layout
SPECIAL_KEYCODES: dict[KeyKind, int] = {
    KeyKind.RETURN: 0x24,
    KeyKind.TAB: 0x30,
    KeyKind.ESCAPE: 0x35,
}

_LETTER_KEYCODES = (
    0x00, 0x0B, 0x08, 0x02, 0x0E, 0x03, 0x05, 0x04, 0x22, 0x26,
    0x28, 0x25, 0x2E, 0x2D, 0x1F, 0x23, 0x0C, 0x0F, 0x01, 0x11,
    0x20, 0x09, 0x0D, 0x07, 0x10, 0x06,
)
_DIGIT_KEYCODES = (0x1D, 0x12, 0x13, 0x14, 0x15, 0x17, 0x16, 0x1A, 0x1C, 0x19)
_PUNCT_KEYCODES: dict[str, int] = {
    "-": 0x1B, "=": 0x18, "[": 0x21, "]": 0x1E, "\\": 0x2A, ";": 0x29,
    "'": 0x27, ",": 0x2B, ".": 0x2F, "/": 0x2C, "`": 0x32, " ": 0x31,
}

MODIFIER_FLAGS: dict[Modifier, int] = {
    Modifier.CTRL: Quartz.kCGEventFlagMaskControl,
    Modifier.ALT: Quartz.kCGEventFlagMaskAlternate,
    Modifier.CMD: Quartz.kCGEventFlagMaskCommand,
}

_LIST_OPTIONS = (
    Quartz.kCGWindowListOptionOnScreenOnly | Quartz.kCGWindowListExcludeDesktopElements
)


def keycode_for_char(char: str) -> int | None:
    """Virtual keycode of an ASCII character on a US keyboard, if any."""
    lower = char.lower()
    if "a" <= lower <= "z":
        return _LETTER_KEYCODES[ord(lower) - ord("a")]
    if "0" <= char <= "9":
        return _DIGIT_KEYCODES[ord(char) - ord("0")]
    return _PUNCT_KEYCODES.get(char)


class MacOSWindowBackend(WindowBackend):
    """Window backend for macOS (Core Graphics + AppKit)."""

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
        return "macos"

    async def list_windows(self, include_all: bool = False) -> list[WindowDescriptor]:
        return await self._call(self._list_sync, include_all)

    def _list_sync(self, include_all: bool) -> list[WindowDescriptor]:
        windows = []
        for info in Quartz.CGWindowListCopyWindowInfo(_LIST_OPTIONS, Quartz.kCGNullWindowID) or []:
            owner = info.get(Quartz.kCGWindowOwnerName)
            if not owner:
                continue
            if not include_all and not self.is_terminal(owner):
                continue
            if info.get(Quartz.kCGWindowLayer, 0) != 0:
                continue
            bounds = info.get(Quartz.kCGWindowBounds) or {}
            if bounds.get("Width", 0) <= MIN_WINDOW_SIZE or bounds.get("Height", 0) <= MIN_WINDOW_SIZE:
                continue
            windows.append(
                WindowDescriptor(
                    window_id=int(info[Quartz.kCGWindowNumber]),
                    process_id=int(info[Quartz.kCGWindowOwnerPID]),
                    owner_label=str(owner),
                    title=str(info.get(Quartz.kCGWindowName) or ""),
                )
            )
        return windows

    async def window_exists(self, window_id: int, process_id: int) -> tuple[bool, int]:
        return await self._call(self._exists_sync, window_id, process_id)

    def _exists_sync(self, window_id: int, process_id: int) -> tuple[bool, int]:
        fallback: int | None = None
        for info in Quartz.CGWindowListCopyWindowInfo(_LIST_OPTIONS, Quartz.kCGNullWindowID) or []:
            wid = int(info.get(Quartz.kCGWindowNumber, 0))
            if wid == window_id:
                return True, window_id
            if (
                fallback is None
                and int(info.get(Quartz.kCGWindowOwnerPID, -1)) == process_id
                and info.get(Quartz.kCGWindowLayer, 0) == 0
            ):
                fallback = wid
        if fallback is not None:
            logger.info("Window %d gone, retargeting to %d (pid %d)", window_id, fallback, process_id)
            return True, fallback
        return False, window_id

    async def capture_window(self, window_id: int) -> bytes:
        return await self._call(self._capture_sync, window_id)

    def _capture_sync(self, window_id: int) -> bytes:
        image = Quartz.CGWindowListCreateImage(
            Quartz.CGRectNull,
            Quartz.kCGWindowListOptionIncludingWindow,
            window_id,
            Quartz.kCGWindowImageBoundsIgnoreFraming | Quartz.kCGWindowImageNominalResolution,
        )
        if image is None:
            raise WindowBackendError(f"Cannot capture window {window_id}", backend="macos")
        data = Foundation.NSMutableData.data()
        dest = Quartz.CGImageDestinationCreateWithData(data, "public.png", 1, None)
        if dest is None:
            raise WindowBackendError("Cannot create PNG encoder", backend="macos")
        Quartz.CGImageDestinationAddImage(dest, image, None)
        if not Quartz.CGImageDestinationFinalize(dest):
            raise WindowBackendError("PNG encoding failed", backend="macos")
        return normalize_png(bytes(data), self._max_dimension)

    async def raise_window(self, process_id: int, window_id: int) -> None:
        await self._call(self._raise_sync, process_id)
        await asyncio.sleep(self._raise_delay)

    def _raise_sync(self, process_id: int) -> None:
        app = AppKit.NSRunningApplication.runningApplicationWithProcessIdentifier_(process_id)
        if app is None:
            logger.warning("No running application with pid %d", process_id)
            return
        app.activateWithOptions_(AppKit.NSApplicationActivateIgnoringOtherApps)

    async def send_key(self, process_id: int, event: KeyEvent) -> None:
        await self._call(self._send_key_sync, process_id, event)
        logger.debug("Sent key: %s", event)
        await asyncio.sleep(self._key_delay)

    def _send_key_sync(self, process_id: int, event: KeyEvent) -> None:
        unicode_char = None
        if event.kind == KeyKind.CHAR:
            keycode = keycode_for_char(event.char) if event.modifiers else None
            if keycode is None:
                # Let the unicode string carry the character
                keycode = 0
                unicode_char = event.char
        else:
            keycode = SPECIAL_KEYCODES[event.kind]

        flags = 0
        for mod in event.modifiers:
            flags |= MODIFIER_FLAGS[mod]

        for key_down in (True, False):
            cg_event = Quartz.CGEventCreateKeyboardEvent(None, keycode, key_down)
            if cg_event is None:
                raise WindowBackendError("Cannot create keyboard event", backend="macos")
            if flags:
                Quartz.CGEventSetFlags(cg_event, flags)
            if unicode_char is not None:
                Quartz.CGEventKeyboardSetUnicodeString(
                    cg_event, utf16_length(unicode_char), unicode_char
                )
            Quartz.CGEventPostToPid(process_id, cg_event)
            if key_down:
                time.sleep(0.001)

    async def _call(self, func, *args):
        """Run a blocking Quartz call in the thread pool."""
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(None, partial(func, *args))
