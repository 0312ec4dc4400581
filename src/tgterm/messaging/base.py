"""Abstract base class for the bot messaging gateway.

The router only needs to send text, send a screenshot with a single
inline button, replace the screenshot of an earlier message and clear
the spinner of a pressed button. Inbound traffic is fetched in batches
by the polling loop.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod

from tgterm.domain.models import InboundRequest

logger = logging.getLogger(__name__)


class MessagingGateway(ABC):
    """Abstract interface to the chat service.

    Example usage::

        async with TelegramGateway(token) as gateway:
            for request in await gateway.get_requests():
                await gateway.send_message(request.chat_id, "hello")
    """

    @abstractmethod
    async def connect(self) -> None:
        """Open the connection and verify the credentials.

        Raises:
            MessagingError: If the service rejects the credentials or is
                unreachable.
        """
        ...

    @abstractmethod
    async def disconnect(self) -> None:
        """Close the connection. Safe to call multiple times."""
        ...

    @abstractmethod
    async def get_requests(self) -> list[InboundRequest]:
        """Wait for and return the next batch of inbound requests.

        May return an empty list when the wait times out.
        """
        ...

    @abstractmethod
    async def send_message(self, chat_id: int, text: str, markdown: bool = False) -> None:
        """Send a text message."""
        ...

    @abstractmethod
    async def send_image_with_button(
        self, chat_id: int, image: bytes, button_label: str, button_action: str
    ) -> None:
        """Send a PNG image with one inline button carrying ``button_action``."""
        ...

    @abstractmethod
    async def edit_message_image(
        self,
        chat_id: int,
        message_id: int,
        image: bytes,
        button_label: str,
        button_action: str,
    ) -> None:
        """Replace the image of an earlier message, keeping its button."""
        ...

    @abstractmethod
    async def answer_callback(self, callback_id: str) -> None:
        """Acknowledge a button press so the client stops its spinner."""
        ...

    async def __aenter__(self) -> MessagingGateway:
        await self.connect()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.disconnect()


class MessagingError(Exception):
    """Raised when the messaging service rejects or fails a call."""

    def __init__(self, message: str, method: str = "") -> None:
        super().__init__(message)
        self.method = method
