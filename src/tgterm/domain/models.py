"""Core domain models for the tgterm system.

These models represent the data flowing through the system: inbound chat
requests, the authentication state, windows reported by the backend, the
currently connected window and the key events produced by the encoder.
"""

from __future__ import annotations

import enum

from pydantic import BaseModel, ConfigDict, Field

MIN_OTP_TIMEOUT = 30
MAX_OTP_TIMEOUT = 28800
DEFAULT_OTP_TIMEOUT = 300


# ---------------------------------------------------------------------------
# Enumerations
# ---------------------------------------------------------------------------


class KeyKind(str, enum.Enum):
    """Kind of key carried by a KeyEvent."""

    CHAR = "char"
    RETURN = "return"
    TAB = "tab"
    ESCAPE = "escape"


class Modifier(str, enum.Enum):
    """Modifier keys that can be held while a key is pressed."""

    CTRL = "ctrl"
    ALT = "alt"
    CMD = "cmd"  # Cmd on macOS, Super on Linux


# ---------------------------------------------------------------------------
# Window Models
# ---------------------------------------------------------------------------


class WindowDescriptor(BaseModel):
    """A window as reported by the window backend."""

    model_config = ConfigDict(frozen=True)

    window_id: int = Field(description="Platform window identifier")
    process_id: int = Field(ge=0, description="PID of the process owning the window")
    owner_label: str = Field(description="Application name or WM_CLASS of the owner")
    title: str = Field(default="", description="Window title, empty when unknown")


class Connection(BaseModel):
    """The terminal window currently targeted by keystrokes.

    Either absent (``None`` on the session) or fully populated.
    """

    model_config = ConfigDict(frozen=True)

    window_id: int
    process_id: int
    owner_label: str
    title: str = ""

    @classmethod
    def from_window(cls, window: WindowDescriptor) -> Connection:
        return cls(
            window_id=window.window_id,
            process_id=window.process_id,
            owner_label=window.owner_label,
            title=window.title,
        )

    @property
    def label(self) -> str:
        """Human-readable 'owner - title' label."""
        if self.title:
            return f"{self.owner_label} - {self.title}"
        return self.owner_label


# ---------------------------------------------------------------------------
# Keystroke Models
# ---------------------------------------------------------------------------


class KeyEvent(BaseModel):
    """One key press-and-release, optionally with modifiers held."""

    model_config = ConfigDict(frozen=True)

    kind: KeyKind
    char: str = Field(default="", description="Character to type, only for CHAR events")
    modifiers: frozenset[Modifier] = Field(default_factory=frozenset)

    @classmethod
    def char_key(cls, char: str, modifiers: frozenset[Modifier] = frozenset()) -> KeyEvent:
        return cls(kind=KeyKind.CHAR, char=char, modifiers=modifiers)

    @classmethod
    def special(cls, kind: KeyKind, modifiers: frozenset[Modifier] = frozenset()) -> KeyEvent:
        return cls(kind=kind, modifiers=modifiers)

    def __str__(self) -> str:
        key = self.char if self.kind == KeyKind.CHAR else self.kind.value.capitalize()
        if not self.modifiers:
            return key
        mods = "+".join(sorted(m.value for m in self.modifiers))
        return f"{mods}+{key}"


RETURN_KEY = KeyEvent(kind=KeyKind.RETURN)


class EncodedKeys(BaseModel):
    """Result of encoding one text command."""

    model_config = ConfigDict(frozen=True)

    events: tuple[KeyEvent, ...] = Field(default=())
    add_newline: bool = Field(
        default=True, description="Whether a trailing Return follows the events"
    )

    def all_events(self) -> tuple[KeyEvent, ...]:
        """The events including the automatic trailing Return, if any."""
        if self.add_newline:
            return self.events + (RETURN_KEY,)
        return self.events


# ---------------------------------------------------------------------------
# Session Models
# ---------------------------------------------------------------------------


class AccessState(BaseModel):
    """Authentication state of the pinned owner."""

    authenticated: bool = False
    last_activity: float = Field(default=0.0, description="Unix time of the last accepted request")
    timeout_seconds: int = Field(
        default=DEFAULT_OTP_TIMEOUT, ge=MIN_OTP_TIMEOUT, le=MAX_OTP_TIMEOUT
    )

    def is_expired(self, now: float) -> bool:
        return now - self.last_activity > self.timeout_seconds


class InboundRequest(BaseModel):
    """A message or button press received from the messaging gateway."""

    model_config = ConfigDict(frozen=True)

    sender_id: int = Field(description="Identifier of the user who sent the request")
    sender_name: str = Field(default="", description="Display name or username of the sender")
    chat_id: int = Field(description="Chat to reply to")
    text: str = Field(default="", description="Message text, empty for callbacks")
    message_id: int | None = Field(default=None, description="Message the request refers to")
    callback_id: str | None = Field(default=None, description="Callback query identifier")
    callback_data: str = Field(default="", description="Opaque action string of the button")

    @property
    def is_callback(self) -> bool:
        return self.callback_id is not None
