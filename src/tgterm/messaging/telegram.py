"""Telegram Bot API gateway.

Long-polls ``getUpdates`` and turns text messages and inline-button
presses into InboundRequest objects. Replies go out through
``sendMessage``, ``sendPhoto``, ``editMessageMedia`` and
``answerCallbackQuery``.
"""

from __future__ import annotations

import json
import logging
from typing import Any

import httpx

from tgterm.domain.models import InboundRequest
from tgterm.messaging.base import MessagingError, MessagingGateway

logger = logging.getLogger(__name__)

ALLOWED_UPDATES = ["message", "callback_query"]
SCREENSHOT_FILENAME = "screenshot.png"


def _inline_button(label: str, action: str) -> str:
    return json.dumps({"inline_keyboard": [[{"text": label, "callback_data": action}]]})


def parse_update(update: dict[str, Any]) -> InboundRequest | None:
    """Convert one Telegram update into an InboundRequest.

    Returns None for updates that carry neither text nor a button press.
    """
    callback = update.get("callback_query")
    if callback is not None:
        sender = callback.get("from") or {}
        message = callback.get("message") or {}
        chat = message.get("chat") or {}
        return InboundRequest(
            sender_id=sender.get("id", 0),
            sender_name=sender.get("username") or sender.get("first_name", ""),
            chat_id=chat.get("id", sender.get("id", 0)),
            message_id=message.get("message_id"),
            callback_id=str(callback["id"]),
            callback_data=callback.get("data") or "",
        )

    message = update.get("message")
    if message is None or "text" not in message:
        return None
    sender = message.get("from") or {}
    return InboundRequest(
        sender_id=sender.get("id", 0),
        sender_name=sender.get("username") or sender.get("first_name", ""),
        chat_id=message["chat"]["id"],
        text=message["text"],
        message_id=message.get("message_id"),
    )


class TelegramGateway(MessagingGateway):
    """Talks to the Telegram Bot API with an httpx.AsyncClient."""

    def __init__(
        self,
        token: str,
        base_url: str = "https://api.telegram.org",
        poll_timeout: int = 30,
        timeout: float = 60.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self._token = token
        self._base_url = f"{base_url.rstrip('/')}/bot{token}/"
        self._poll_timeout = poll_timeout
        self._timeout = timeout
        self._transport = transport
        self._client: httpx.AsyncClient | None = None
        self._offset = 0

    async def connect(self) -> None:
        """Create the HTTP client and check the token with ``getMe``."""
        if not self._token:
            raise MessagingError("Telegram bot token is not configured", method="getMe")
        self._client = httpx.AsyncClient(
            base_url=self._base_url,
            timeout=self._timeout,
            transport=self._transport,
        )
        try:
            me = await self._call("getMe")
        except MessagingError:
            await self.disconnect()
            raise
        logger.info("Connected to Telegram as @%s", me.get("username", "?"))

    async def disconnect(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None
            logger.info("Disconnected from Telegram")

    async def get_requests(self) -> list[InboundRequest]:
        updates = await self._call(
            "getUpdates",
            {
                "offset": self._offset,
                "timeout": self._poll_timeout,
                "allowed_updates": ALLOWED_UPDATES,
            },
        )
        requests = []
        for update in updates:
            self._offset = max(self._offset, update["update_id"] + 1)
            request = parse_update(update)
            if request is not None:
                requests.append(request)
        if requests:
            logger.debug("Received %d requests", len(requests))
        return requests

    async def send_message(self, chat_id: int, text: str, markdown: bool = False) -> None:
        data: dict[str, Any] = {"chat_id": chat_id, "text": text}
        if markdown:
            data["parse_mode"] = "Markdown"
        await self._call("sendMessage", data)

    async def send_image_with_button(
        self, chat_id: int, image: bytes, button_label: str, button_action: str
    ) -> None:
        await self._call(
            "sendPhoto",
            {"chat_id": chat_id, "reply_markup": _inline_button(button_label, button_action)},
            files={"photo": (SCREENSHOT_FILENAME, image, "image/png")},
        )

    async def edit_message_image(
        self,
        chat_id: int,
        message_id: int,
        image: bytes,
        button_label: str,
        button_action: str,
    ) -> None:
        await self._call(
            "editMessageMedia",
            {
                "chat_id": chat_id,
                "message_id": message_id,
                "media": json.dumps({"type": "photo", "media": "attach://photo"}),
                "reply_markup": _inline_button(button_label, button_action),
            },
            files={"photo": (SCREENSHOT_FILENAME, image, "image/png")},
        )

    async def answer_callback(self, callback_id: str) -> None:
        await self._call("answerCallbackQuery", {"callback_query_id": callback_id})

    async def _call(
        self,
        method: str,
        data: dict[str, Any] | None = None,
        files: dict[str, tuple[str, bytes, str]] | None = None,
    ) -> Any:
        """POST a Bot API method and return its ``result``."""
        if self._client is None:
            raise MessagingError("Not connected to Telegram", method=method)
        try:
            if files:
                form = {k: str(v) for k, v in (data or {}).items()}
                resp = await self._client.post(method, data=form, files=files)
            else:
                resp = await self._client.post(method, json=data or {})
        except httpx.HTTPError as e:
            # str(e) may contain the URL, and therefore the token
            raise MessagingError(
                f"Telegram request {method} failed: {type(e).__name__}", method=method
            ) from e

        try:
            payload = resp.json()
        except ValueError as e:
            raise MessagingError(
                f"Telegram returned non-JSON for {method} (HTTP {resp.status_code})",
                method=method,
            ) from e
        if not payload.get("ok", False):
            raise MessagingError(
                f"Telegram API error calling {method}: "
                f"{payload.get('error_code')} {payload.get('description', '')}",
                method=method,
            )
        return payload["result"]
