"""Single-flight execution of inbound requests.

Requests can arrive faster than they are handled, but handling one may
connect a window and then screenshot it, or disconnect and re-list;
another request must never observe that half done. All requests
therefore go through one queue drained by exactly one worker task.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Callable

from tgterm.domain.models import InboundRequest

logger = logging.getLogger(__name__)

Handler = Callable[[InboundRequest], Awaitable[None]]


class SingleFlightExecutor:
    """Queue with a concurrency of one.

    Example usage::

        async with SingleFlightExecutor(router.handle_request) as executor:
            done = executor.submit(request)
            await done
    """

    def __init__(self, handler: Handler) -> None:
        self._handler = handler
        self._queue: asyncio.Queue[tuple[InboundRequest, asyncio.Future[None]]] = asyncio.Queue()
        self._worker: asyncio.Task[None] | None = None
        self._in_flight = 0

    @property
    def is_running(self) -> bool:
        return self._worker is not None and not self._worker.done()

    @property
    def in_flight(self) -> int:
        """Requests currently being handled (0 or 1)."""
        return self._in_flight

    @property
    def pending(self) -> int:
        """Requests waiting behind the one in flight."""
        return self._queue.qsize()

    def start(self) -> None:
        if self.is_running:
            return
        self._worker = asyncio.create_task(self._run(), name="tgterm-request-worker")
        logger.debug("Request worker started")

    async def stop(self) -> None:
        """Cancel the worker. Requests still queued are cancelled too."""
        if self._worker is None:
            return
        self._worker.cancel()
        try:
            await self._worker
        except asyncio.CancelledError:
            pass
        self._worker = None
        while not self._queue.empty():
            _, future = self._queue.get_nowait()
            future.cancel()
        logger.debug("Request worker stopped")

    def submit(self, request: InboundRequest) -> asyncio.Future[None]:
        """Queue a request; the returned future resolves once it was handled."""
        if not self.is_running:
            raise RuntimeError("Executor is not running. Call start() first.")
        future: asyncio.Future[None] = asyncio.get_running_loop().create_future()
        self._queue.put_nowait((request, future))
        return future

    async def _run(self) -> None:
        while True:
            request, future = await self._queue.get()
            if future.cancelled():
                continue
            self._in_flight += 1
            try:
                await self._handler(request)
            except asyncio.CancelledError:
                future.cancel()
                raise
            except Exception as e:
                logger.exception("Unhandled error while handling request: %s", e)
                if not future.done():
                    future.set_exception(e)
            else:
                if not future.done():
                    future.set_result(None)
            finally:
                self._in_flight -= 1
                self._queue.task_done()

    async def __aenter__(self) -> SingleFlightExecutor:
        self.start()
        return self

    async def __aexit__(self, exc_type: type | None, exc_val: Exception | None, exc_tb: object) -> None:
        await self.stop()
