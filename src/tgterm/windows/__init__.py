"""Window backends for tgterm.

Enumerate windows, capture screenshots, raise windows and inject
keystrokes through pluggable platform backends. The rest of the system
only talks to the abstract interface and never checks the platform.

Public API:
    WindowBackend -- Abstract base class
    X11WindowBackend -- Linux/X11 backend (wmctrl, xdotool, mss)
    MacOSWindowBackend -- macOS backend (Quartz)
    create_backend -- pick a backend by name at startup
"""

from __future__ import annotations

import sys

from tgterm.windows.base import WindowBackend, WindowBackendError, is_terminal

__all__ = [
    "WindowBackend",
    "WindowBackendError",
    "X11WindowBackend",
    "MacOSWindowBackend",
    "create_backend",
    "is_terminal",
]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "X11WindowBackend":
        from tgterm.windows.x11 import X11WindowBackend
        return X11WindowBackend
    if name == "MacOSWindowBackend":
        from tgterm.windows.macos import MacOSWindowBackend
        return MacOSWindowBackend
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


def create_backend(name: str = "auto", **kwargs: object) -> WindowBackend:
    """Build the window backend selected in the configuration.

    Args:
        name: 'x11', 'macos', or 'auto' to choose from the running platform.
        **kwargs: Passed to the backend constructor.

    Raises:
        WindowBackendError: If the name is unknown.
    """
    if name == "auto":
        name = "macos" if sys.platform == "darwin" else "x11"
    if name == "x11":
        from tgterm.windows.x11 import X11WindowBackend
        return X11WindowBackend(**kwargs)
    if name == "macos":
        from tgterm.windows.macos import MacOSWindowBackend
        return MacOSWindowBackend(**kwargs)
    raise WindowBackendError(f"Unknown window backend: {name!r}", backend=name)
