"""Domain models for tgterm.

This package contains the core data structures shared by the gate, the
keystroke encoder, the router and the backends. All models use Pydantic v2
for validation.
"""

from tgterm.domain.models import (
    AccessState,
    Connection,
    EncodedKeys,
    InboundRequest,
    KeyEvent,
    KeyKind,
    Modifier,
    WindowDescriptor,
)

__all__ = [
    "AccessState",
    "Connection",
    "EncodedKeys",
    "InboundRequest",
    "KeyEvent",
    "KeyKind",
    "Modifier",
    "WindowDescriptor",
]
