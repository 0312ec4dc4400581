"""Access gate: owner pinning, OTP login and session timeout.

Every inbound request passes through ``AccessGate.evaluate`` before the
router looks at it. The first sender ever observed becomes the owner;
requests from anyone else are dropped without a reply. The owner must
then log in with a TOTP code, and stays logged in until no request has
been accepted for ``timeout_seconds``.
"""

from __future__ import annotations

import enum
import logging
import time
from typing import TYPE_CHECKING, Callable

from tgterm.auth.totp import TotpEngine, is_code_format
from tgterm.domain.models import MAX_OTP_TIMEOUT, MIN_OTP_TIMEOUT, InboundRequest
from tgterm.storage import OTP_TIMEOUT_KEY, OWNER_KEY, KeyValueStore

if TYPE_CHECKING:
    from tgterm.bot.session import Session

logger = logging.getLogger(__name__)


class GateOutcome(str, enum.Enum):
    """What the router should do with a request after the gate."""

    DROPPED = "dropped"  # Not from the owner: no reply at all
    CALLBACK_ACK = "callback_ack"  # Button press while logged out: acknowledge only
    AUTHENTICATED = "authenticated"  # Valid OTP: reply with an acknowledgment
    CHALLENGED = "challenged"  # Logged out and no valid OTP: prompt for one
    ADMITTED = "admitted"  # Logged in: handle as a command


def clamp_timeout(seconds: int) -> int:
    return max(MIN_OTP_TIMEOUT, min(MAX_OTP_TIMEOUT, seconds))


class AccessGate:
    """Decides whether a request may reach the command handlers.

    Args:
        store: Key-value store holding the owner id and the timeout.
        totp: Engine used to verify submitted codes.
        weak_security: Treat every owner request as authenticated.
        clock: Returns the current Unix time. Overridable for tests.
    """

    def __init__(
        self,
        store: KeyValueStore,
        totp: TotpEngine,
        weak_security: bool = False,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self._store = store
        self._totp = totp
        self._weak_security = weak_security
        self._clock = clock

    @property
    def weak_security(self) -> bool:
        return self._weak_security

    def restore(self, session: Session) -> None:
        """Load the pinned owner and a persisted timeout into ``session``.

        Persisted timeouts outside the allowed range are ignored.
        """
        session.owner_id = self._load_owner()
        raw = self._store.get(OTP_TIMEOUT_KEY)
        if raw is None:
            return
        try:
            seconds = int(raw)
        except ValueError:
            logger.warning("Ignoring malformed stored OTP timeout %r", raw)
            return
        if MIN_OTP_TIMEOUT <= seconds <= MAX_OTP_TIMEOUT:
            session.access.timeout_seconds = seconds
        else:
            logger.warning("Ignoring out-of-range stored OTP timeout %d", seconds)

    def evaluate(self, session: Session, request: InboundRequest) -> GateOutcome:
        """Run the owner filter and the authentication state machine."""
        if not self._is_owner(session, request):
            logger.info("Ignoring request from non-owner %d", request.sender_id)
            return GateOutcome.DROPPED

        if self._weak_security:
            return GateOutcome.ADMITTED

        access = session.access
        now = self._clock()
        if not access.authenticated or access.is_expired(now):
            if access.authenticated:
                logger.info("Session expired after %d seconds of inactivity", access.timeout_seconds)
            access.authenticated = False
            if request.is_callback:
                return GateOutcome.CALLBACK_ACK
            code = request.text
            if is_code_format(code) and self._totp.verify(code):
                access.authenticated = True
                access.last_activity = now
                logger.info("Owner authenticated")
                return GateOutcome.AUTHENTICATED
            logger.info("Authentication required, rejected request")
            return GateOutcome.CHALLENGED

        access.last_activity = now
        return GateOutcome.ADMITTED

    def set_timeout(self, session: Session, seconds: int) -> int:
        """Clamp, persist and apply a new session timeout.

        Returns:
            The timeout actually applied.
        """
        applied = clamp_timeout(seconds)
        self._store.set(OTP_TIMEOUT_KEY, str(applied))
        session.access.timeout_seconds = applied
        logger.info("OTP timeout set to %d seconds", applied)
        return applied

    def _is_owner(self, session: Session, request: InboundRequest) -> bool:
        if session.owner_id is None:
            session.owner_id = self._load_owner()
        if session.owner_id is None:
            self._store.set(OWNER_KEY, str(request.sender_id))
            session.owner_id = request.sender_id
            logger.info("Registered owner: %d (%s)", request.sender_id, request.sender_name)
            return True
        return request.sender_id == session.owner_id

    def _load_owner(self) -> int | None:
        raw = self._store.get(OWNER_KEY)
        if not raw:
            return None
        try:
            owner = int(raw)
        except ValueError:
            logger.error("Stored owner id %r is not a number", raw)
            return None
        return owner or None
