"""Application wiring: poll the gateway, serialize, route.

BotApp owns the lifetime of the window backend, the messaging gateway
and the single-flight executor, and runs the long-polling loop until
stopped.
"""

from __future__ import annotations

import asyncio
import logging

from tgterm.bot.executor import SingleFlightExecutor
from tgterm.bot.router import CommandRouter
from tgterm.messaging.base import MessagingError, MessagingGateway
from tgterm.windows.base import WindowBackend

logger = logging.getLogger(__name__)

# Pause after a failed poll before trying again
POLL_RETRY_DELAY = 5.0


def _consume_result(future: asyncio.Future[None]) -> None:
    """Mark a handled request's outcome as retrieved; the worker logged errors."""
    if not future.cancelled():
        future.exception()


class BotApp:
    """Runs the bot until ``stop()`` is called or the task is cancelled."""

    def __init__(
        self,
        router: CommandRouter,
        backend: WindowBackend,
        gateway: MessagingGateway,
        poll_retry_delay: float = POLL_RETRY_DELAY,
    ) -> None:
        self._router = router
        self._backend = backend
        self._gateway = gateway
        self._executor = SingleFlightExecutor(router.handle_request)
        self._poll_retry_delay = poll_retry_delay
        self._running = False

    @property
    def is_running(self) -> bool:
        return self._running

    async def run(self) -> None:
        """Open all components and poll for requests until stopped."""
        self._running = True
        logger.info("Bot starting")
        try:
            async with self._backend, self._gateway, self._executor:
                while self._running:
                    try:
                        requests = await self._gateway.get_requests()
                    except MessagingError as e:
                        logger.error("Polling failed, retrying in %.0fs: %s", self._poll_retry_delay, e)
                        await asyncio.sleep(self._poll_retry_delay)
                        continue
                    for request in requests:
                        future = self._executor.submit(request)
                        future.add_done_callback(_consume_result)
        finally:
            self._running = False
            logger.info("Bot stopped")

    async def stop(self) -> None:
        """Signal the polling loop to stop after the current poll."""
        self._running = False
        logger.info("Bot stop requested")
