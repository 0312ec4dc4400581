"""Shared test fixtures for the tgterm test suite.

Provides common fixtures used across unit tests: an in-memory store,
a controllable clock, sample windows, mock window backends and mock
messaging gateways, and a factory for inbound requests.
"""

from __future__ import annotations

from typing import Callable, Iterator
from unittest.mock import AsyncMock

import pytest

from tgterm.auth.gate import AccessGate
from tgterm.auth.totp import TotpEngine
from tgterm.bot.router import CommandRouter, RouterTiming
from tgterm.domain.models import InboundRequest, WindowDescriptor
from tgterm.messaging.base import MessagingGateway
from tgterm.storage import TOTP_SECRET_KEY, SqliteKeyValueStore
from tgterm.windows.base import WindowBackend

OWNER_ID = 42

# RFC 4226 Appendix D test secret
RFC_SECRET = b"12345678901234567890"


class FakeClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, now: float = 1_700_000_000.0) -> None:
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


# ---------------------------------------------------------------------------
# Storage / Auth Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def store() -> Iterator[SqliteKeyValueStore]:
    """A throwaway in-memory key-value store."""
    s = SqliteKeyValueStore(":memory:")
    yield s
    s.close()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def secret(store: SqliteKeyValueStore) -> bytes:
    """The RFC test secret, already persisted in the store."""
    store.set(TOTP_SECRET_KEY, RFC_SECRET.hex())
    return RFC_SECRET


@pytest.fixture
def totp(store: SqliteKeyValueStore, clock: FakeClock, secret: bytes) -> TotpEngine:
    return TotpEngine(store, clock=clock)


@pytest.fixture
def gate(store: SqliteKeyValueStore, totp: TotpEngine, clock: FakeClock) -> AccessGate:
    return AccessGate(store, totp, clock=clock)


# ---------------------------------------------------------------------------
# Window Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def sample_windows() -> list[WindowDescriptor]:
    """Two terminal windows as a backend would list them."""
    return [
        WindowDescriptor(window_id=101, process_id=1001, owner_label="kitty", title="~/src"),
        WindowDescriptor(window_id=202, process_id=2002, owner_label="xterm", title=""),
    ]


# ---------------------------------------------------------------------------
# Mock Fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def mock_backend(sample_windows: list[WindowDescriptor]) -> AsyncMock:
    """A mock WindowBackend where every window exists and captures succeed."""
    mock = AsyncMock(spec=WindowBackend)
    mock.list_windows.return_value = sample_windows
    mock.window_exists.side_effect = lambda window_id, process_id: (True, window_id)
    mock.capture_window.return_value = b"\x89PNG fake"
    return mock


@pytest.fixture
def mock_gateway() -> AsyncMock:
    """A mock MessagingGateway recording every reply."""
    return AsyncMock(spec=MessagingGateway)


@pytest.fixture
def make_request() -> Callable[..., InboundRequest]:
    """Factory for inbound requests from the owner unless told otherwise."""

    def _make(text: str = "", sender_id: int = OWNER_ID, **kwargs) -> InboundRequest:
        kwargs.setdefault("chat_id", sender_id)
        kwargs.setdefault("sender_name", "owner")
        return InboundRequest(sender_id=sender_id, text=text, **kwargs)

    return _make


@pytest.fixture
def router(gate: AccessGate, mock_backend: AsyncMock, mock_gateway: AsyncMock) -> CommandRouter:
    """A router with no pauses between keystrokes and screenshots."""
    return CommandRouter(
        gate=gate,
        backend=mock_backend,
        gateway=mock_gateway,
        timing=RouterTiming(newline_delay=0, repaint_delay=0),
    )


@pytest.fixture
def authed_router(router: CommandRouter, clock: FakeClock) -> CommandRouter:
    """A router whose owner is pinned and logged in."""
    session = router.session
    session.owner_id = OWNER_ID
    session.access.authenticated = True
    session.access.last_activity = clock.now
    return router
