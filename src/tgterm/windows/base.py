"""Abstract base class for window backends.

All platform backends must conform to this interface, enabling the
router to list, raise, capture and type into windows on X11 or macOS
without branching on the platform.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from tgterm.domain.models import KeyEvent, WindowDescriptor

logger = logging.getLogger(__name__)

# Windows this small are tooltips, docks or other decorations
MIN_WINDOW_SIZE = 50


class WindowBackend(ABC):
    """Abstract interface to the desktop's windows.

    Example usage::

        async with create_backend("x11") as backend:
            windows = await backend.list_windows(include_all=False)
            await backend.raise_window(windows[0].process_id, windows[0].window_id)
            await backend.send_key(windows[0].process_id, KeyEvent.char_key("l"))
    """

    #: Known terminal application names, matched case-insensitively as substrings
    terminal_apps: tuple[str, ...] = ()

    @property
    @abstractmethod
    def name(self) -> str:
        """Short backend name used in logs and errors."""
        ...

    async def open(self) -> None:
        """Acquire platform resources. Called once at startup.

        Raises:
            WindowBackendError: If the platform is unusable (no display,
                missing tools or permissions).
        """

    async def close(self) -> None:
        """Release platform resources. Safe to call multiple times."""

    @abstractmethod
    async def list_windows(self, include_all: bool = False) -> list[WindowDescriptor]:
        """List on-screen windows in a stable order.

        Args:
            include_all: List every application window, not only
                         windows belonging to known terminal apps.
        """
        ...

    @abstractmethod
    async def window_exists(self, window_id: int, process_id: int) -> tuple[bool, int]:
        """Check whether a window is still on screen.

        If ``window_id`` is gone but ``process_id`` owns another window,
        that window is returned instead.

        Returns:
            Tuple of (a window was found, its possibly updated id).
        """
        ...

    @abstractmethod
    async def capture_window(self, window_id: int) -> bytes:
        """Capture a window and return PNG bytes.

        Raises:
            WindowBackendError: If the window cannot be captured.
        """
        ...

    @abstractmethod
    async def raise_window(self, process_id: int, window_id: int) -> None:
        """Bring a window to the front and give it keyboard focus."""
        ...

    @abstractmethod
    async def send_key(self, process_id: int, event: KeyEvent) -> None:
        """Press and release one key, holding the event's modifiers.

        Raises:
            WindowBackendError: If the key cannot be injected.
        """
        ...

    def is_terminal(self, owner_label: str) -> bool:
        return is_terminal(owner_label, self.terminal_apps)

    async def __aenter__(self) -> WindowBackend:
        await self.open()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.close()


def is_terminal(owner_label: str, terminal_apps: tuple[str, ...]) -> bool:
    """Whether ``owner_label`` contains one of the terminal app names."""
    label = owner_label.lower()
    return any(app.lower() in label for app in terminal_apps)


def utf16_length(text: str) -> int:
    """Length of ``text`` in UTF-16 code units, as native key APIs count it."""
    return len(text.encode("utf-16-le")) // 2


class WindowBackendError(Exception):
    """Raised when a window backend operation fails."""

    def __init__(self, message: str, backend: str = "") -> None:
        super().__init__(message)
        self.backend = backend
