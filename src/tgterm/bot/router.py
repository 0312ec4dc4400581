"""The command router: one inbound request, end to end.

``CommandRouter.handle_request`` runs the access gate and then either
answers a button press, executes a dot-command, or types the message
into the connected window and replies with a screenshot. It is the only
code that mutates the Session and it never raises: every failure is
logged and, where the operator should know, answered in the chat.
"""

from __future__ import annotations

import asyncio
import logging
import re

from pydantic import BaseModel, Field

from tgterm.auth.gate import AccessGate, GateOutcome
from tgterm.bot import messages
from tgterm.bot.session import Session
from tgterm.domain.models import RETURN_KEY, Connection, InboundRequest
from tgterm.keyboard.encoder import encode
from tgterm.messaging.base import MessagingError, MessagingGateway
from tgterm.windows.base import WindowBackend, WindowBackendError

logger = logging.getLogger(__name__)

_CONNECT_RE = re.compile(r"\.([0-9]+)")
_LEADING_INT_RE = re.compile(r"\s*([+-]?[0-9]+)")
_OTPTIMEOUT_PREFIX = ".otptimeout"


class RouterTiming(BaseModel):
    """Real-time pauses that give the target application time to react."""

    newline_delay: float = Field(default=0.05, ge=0, description="Pause before the automatic Return")
    repaint_delay: float = Field(default=2.0, ge=0, description="Pause before the follow-up screenshot")


def parse_leading_int(text: str) -> int:
    """Parse a leading integer, ignoring what follows; garbage yields 0."""
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else 0


class CommandRouter:
    """Dispatches requests to command handlers or the keystroke encoder.

    Must only be driven by a SingleFlightExecutor: handlers assume no
    other request touches the session while they run.
    """

    def __init__(
        self,
        gate: AccessGate,
        backend: WindowBackend,
        gateway: MessagingGateway,
        session: Session | None = None,
        show_all_windows: bool = False,
        timing: RouterTiming | None = None,
    ) -> None:
        self._gate = gate
        self._backend = backend
        self._gateway = gateway
        self._session = session if session is not None else Session()
        self._show_all_windows = show_all_windows
        self._timing = timing or RouterTiming()

    @property
    def session(self) -> Session:
        return self._session

    async def handle_request(self, request: InboundRequest) -> None:
        """Handle one request. Never raises."""
        try:
            await self._dispatch(request)
        except asyncio.CancelledError:
            raise
        except WindowBackendError as e:
            logger.error("Window backend failed: %s", e)
            await self._report_failure(request, e)
        except MessagingError as e:
            logger.error("Could not reply to %d: %s", request.sender_id, e)
        except Exception as e:
            logger.exception("Unexpected error handling request: %s", e)

    async def _dispatch(self, request: InboundRequest) -> None:
        session = self._session
        outcome = self._gate.evaluate(session, request)

        if outcome == GateOutcome.DROPPED:
            return
        if outcome == GateOutcome.CALLBACK_ACK:
            await self._gateway.answer_callback(request.callback_id)
            return
        if outcome == GateOutcome.AUTHENTICATED:
            await self._reply(request, messages.AUTHENTICATED)
            return
        if outcome == GateOutcome.CHALLENGED:
            await self._reply(request, messages.ENTER_OTP)
            return

        if request.is_callback:
            await self._handle_callback(request)
            return

        text = request.text
        lowered = text.lower()
        connect = _CONNECT_RE.match(text)

        if lowered == ".list":
            session.disconnect()
            await self._reply(request, await self._list_message())
        elif lowered == ".help":
            await self._reply(request, messages.HELP_TEXT, markdown=True)
        elif lowered.startswith(_OTPTIMEOUT_PREFIX):
            await self._handle_otp_timeout(request, text[len(_OTPTIMEOUT_PREFIX):])
        elif connect is not None:
            await self._handle_connect(request, int(connect.group(1)))
        elif not session.is_connected:
            await self._reply(request, await self._list_message())
        else:
            await self._handle_keys(request)

    # -----------------------------------------------------------------------
    # Command handlers
    # -----------------------------------------------------------------------

    async def _handle_callback(self, request: InboundRequest) -> None:
        await self._gateway.answer_callback(request.callback_id)
        if request.callback_data != messages.REFRESH_ACTION:
            logger.debug("Ignoring unknown callback action %r", request.callback_data)
            return
        connection = self._session.connection
        if connection is None or request.message_id is None:
            return
        image = await self._capture(connection)
        if image is None:
            return
        await self._gateway.edit_message_image(
            request.chat_id,
            request.message_id,
            image,
            messages.REFRESH_LABEL,
            messages.REFRESH_ACTION,
        )

    async def _handle_otp_timeout(self, request: InboundRequest, argument: str) -> None:
        applied = self._gate.set_timeout(self._session, parse_leading_int(argument))
        await self._reply(request, messages.format_timeout_set(applied))

    async def _handle_connect(self, request: InboundRequest, number: int) -> None:
        session = self._session
        await self._refresh_windows()
        window = session.window_at(number)
        if window is None:
            await self._reply(request, messages.INVALID_WINDOW)
            return

        session.connection = Connection.from_window(window)
        logger.info("Connected to window %d (%s)", window.window_id, session.connection.label)
        await self._reply(request, messages.format_connected(session.connection.label))

        await self._backend.raise_window(window.process_id, window.window_id)
        await self._send_screenshot(request)

    async def _handle_keys(self, request: InboundRequest) -> None:
        session = self._session
        if not await self._check_connection():
            session.disconnect()
            listing = await self._list_message()
            await self._reply(request, f"{messages.WINDOW_CLOSED}\n\n{listing}")
            return

        connection = session.connection
        await self._backend.raise_window(connection.process_id, connection.window_id)
        encoded = encode(request.text)
        logger.info(
            "Sending %d keys to window %d%s",
            len(encoded.events),
            connection.window_id,
            " + Return" if encoded.add_newline else "",
        )
        for event in encoded.events:
            await self._backend.send_key(connection.process_id, event)
        if encoded.add_newline:
            await asyncio.sleep(self._timing.newline_delay)
            await self._backend.send_key(connection.process_id, RETURN_KEY)

        await asyncio.sleep(self._timing.repaint_delay)
        if await self._check_connection():
            await self._send_screenshot(request)

    # -----------------------------------------------------------------------
    # Helpers
    # -----------------------------------------------------------------------

    async def _refresh_windows(self) -> None:
        self._session.windows = await self._backend.list_windows(
            include_all=self._show_all_windows
        )

    async def _list_message(self) -> str:
        await self._refresh_windows()
        return messages.format_window_list(self._session.windows)

    async def _check_connection(self) -> bool:
        """Confirm the connected window exists, following a retarget."""
        connection = self._session.connection
        if connection is None:
            return False
        exists, window_id = await self._backend.window_exists(
            connection.window_id, connection.process_id
        )
        if exists and window_id != connection.window_id:
            self._session.connection = connection.model_copy(update={"window_id": window_id})
        return exists

    async def _capture(self, connection: Connection) -> bytes | None:
        """Screenshot the connected window; failures are logged and skipped."""
        try:
            return await self._backend.capture_window(connection.window_id)
        except WindowBackendError as e:
            logger.warning("Screenshot of window %d failed: %s", connection.window_id, e)
            return None

    async def _send_screenshot(self, request: InboundRequest) -> None:
        connection = self._session.connection
        if connection is None:
            return
        image = await self._capture(connection)
        if image is None:
            return
        await self._gateway.send_image_with_button(
            request.chat_id, image, messages.REFRESH_LABEL, messages.REFRESH_ACTION
        )

    async def _reply(self, request: InboundRequest, text: str, markdown: bool = False) -> None:
        await self._gateway.send_message(request.chat_id, text, markdown=markdown)

    async def _report_failure(self, request: InboundRequest, error: WindowBackendError) -> None:
        try:
            await self._reply(request, f"Error: {error}")
        except MessagingError as e:
            logger.error("Could not report failure to %d: %s", request.sender_id, e)
