"""Time-based one-time passwords (RFC 6238) for the owner login.

The shared secret is 20 random bytes, persisted hex-encoded in the
key-value store and shown to the operator once, Base32-encoded, for
enrollment in an authenticator app.
"""

from __future__ import annotations

import base64
import hmac
import logging
import re
import secrets
import time
from typing import Callable
from urllib.parse import quote

import pyotp

from tgterm.storage import TOTP_SECRET_KEY, KeyValueStore

logger = logging.getLogger(__name__)

SECRET_LENGTH = 20
TIME_STEP_SECONDS = 30
CODE_DIGITS = 6
# Accepted drift in time steps on either side of the current one
SKEW_STEPS = 1
ISSUER = "tgterm"

_CODE_RE = re.compile(r"[0-9]{6}")


class SecretUnavailableError(Exception):
    """Raised when a new TOTP secret cannot be generated.

    The process must not start without a secret.
    """


def to_base32(secret: bytes) -> str:
    """Encode raw secret bytes as unpadded RFC 4648 Base32."""
    return base64.b32encode(secret).decode("ascii").rstrip("=")


def from_base32(text: str) -> bytes:
    padded = text.upper() + "=" * (-len(text) % 8)
    return base64.b32decode(padded)


def is_code_format(text: str) -> bool:
    """Whether ``text`` is exactly six ASCII digits."""
    return _CODE_RE.fullmatch(text) is not None


class TotpEngine:
    """Generates, persists and verifies TOTP codes.

    Args:
        store: Key-value store holding the hex-encoded secret.
        clock: Returns the current Unix time. Overridable for tests.
        random_source: Returns ``n`` cryptographically secure bytes.
    """

    def __init__(
        self,
        store: KeyValueStore,
        clock: Callable[[], float] = time.time,
        random_source: Callable[[int], bytes] = secrets.token_bytes,
    ) -> None:
        self._store = store
        self._clock = clock
        self._random_source = random_source

    def ensure_secret(self) -> tuple[bytes, bool]:
        """Return the persisted secret, generating one if storage is empty.

        Returns:
            Tuple of (secret bytes, whether it was newly generated).

        Raises:
            SecretUnavailableError: If the random source fails or returns
                fewer than 20 bytes.
        """
        existing = self.load_secret()
        if existing is not None:
            return existing, False

        try:
            secret = self._random_source(SECRET_LENGTH)
        except (OSError, NotImplementedError) as e:
            raise SecretUnavailableError(
                f"Secure random source unavailable: {e}"
            ) from e
        if len(secret) != SECRET_LENGTH:
            raise SecretUnavailableError(
                f"Short read from secure random source: got {len(secret)} of {SECRET_LENGTH} bytes"
            )

        self._store.set(TOTP_SECRET_KEY, secret.hex())
        logger.info("Generated new TOTP secret")
        return secret, True

    def load_secret(self) -> bytes | None:
        """Read the persisted secret, or None if absent or malformed."""
        hex_secret = self._store.get(TOTP_SECRET_KEY)
        if not hex_secret:
            return None
        try:
            secret = bytes.fromhex(hex_secret)
        except ValueError:
            logger.error("Stored TOTP secret is not valid hex")
            return None
        if len(secret) != SECRET_LENGTH:
            logger.error("Stored TOTP secret has %d bytes, expected %d", len(secret), SECRET_LENGTH)
            return None
        return secret

    def current_time_step(self) -> int:
        return int(self._clock()) // TIME_STEP_SECONDS

    @staticmethod
    def compute_code(secret: bytes, time_step: int) -> str:
        """Compute the 6-digit code for ``time_step`` (RFC 4226 truncation)."""
        return pyotp.HOTP(to_base32(secret), digits=CODE_DIGITS).at(time_step)

    def verify(self, code: str) -> bool:
        """Check ``code`` against the previous, current and next time step."""
        if not is_code_format(code):
            return False
        secret = self.load_secret()
        if secret is None:
            return False
        now = self.current_time_step()
        matched = False
        for step in range(now - SKEW_STEPS, now + SKEW_STEPS + 1):
            if hmac.compare_digest(self.compute_code(secret, step), code):
                matched = True
        return matched

    @staticmethod
    def provisioning_uri(secret: bytes) -> str:
        """otpauth:// URI for enrolling the secret in an authenticator app."""
        return (
            f"otpauth://totp/{quote(ISSUER)}?secret={to_base32(secret)}"
            f"&issuer={quote(ISSUER)}"
        )
