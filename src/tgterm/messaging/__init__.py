"""Messaging gateways for tgterm.

Receive operator requests and send replies and screenshots through a
bot messaging service.

Public API:
    MessagingGateway -- Abstract base class
    TelegramGateway -- Telegram Bot API over HTTPS
"""

from tgterm.messaging.base import MessagingError, MessagingGateway

__all__ = ["MessagingError", "MessagingGateway", "TelegramGateway"]


def __getattr__(name: str) -> type:
    """Lazy import for concrete implementations that require external deps."""
    if name == "TelegramGateway":
        from tgterm.messaging.telegram import TelegramGateway
        return TelegramGateway
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
