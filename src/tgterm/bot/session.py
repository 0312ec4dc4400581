"""Mutable state of the running bot.

The router owns exactly one Session and passes it to the gate and the
command handlers; nothing else keeps state between requests.
"""

from __future__ import annotations

from pydantic import BaseModel, Field

from tgterm.domain.models import AccessState, Connection, WindowDescriptor


class Session(BaseModel):
    """Owner, authentication and window state shared across requests."""

    owner_id: int | None = Field(default=None, description="Pinned owner, None until the first request")
    access: AccessState = Field(default_factory=AccessState)
    connection: Connection | None = Field(default=None, description="Connected window, if any")
    windows: list[WindowDescriptor] = Field(
        default_factory=list, description="Window list from the last refresh, indexed 1-based by users"
    )

    @property
    def is_connected(self) -> bool:
        return self.connection is not None

    def disconnect(self) -> None:
        self.connection = None

    def window_at(self, number: int) -> WindowDescriptor | None:
        """The window shown as ``.number`` in the last listing."""
        if 1 <= number <= len(self.windows):
            return self.windows[number - 1]
        return None
